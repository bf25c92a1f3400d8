"""
Reward services package.

- matrix_engine: placement-tree purchase bonus
- referral_bonus: direct sponsor purchase bonus
- rank_engine: daily rank re-evaluation
- team_reward_engine: team deposit milestones
- active_member_reward: weekly member milestones
- provision_distributor: new member provision share
"""

from app.services.rewards.active_member_reward import ActiveMemberRewardService
from app.services.rewards.matrix_engine import MatrixEngine
from app.services.rewards.provision_distributor import ProvisionDistributor
from app.services.rewards.rank_engine import RankEngine, evaluate_rank
from app.services.rewards.referral_bonus import ReferralBonusService
from app.services.rewards.result import RewardResult
from app.services.rewards.team_reward_engine import TeamRewardEngine


__all__ = [
    "ActiveMemberRewardService",
    "MatrixEngine",
    "ProvisionDistributor",
    "RankEngine",
    "ReferralBonusService",
    "RewardResult",
    "TeamRewardEngine",
    "evaluate_rank",
]
