"""
Services.

Business logic layer.
"""

from app.services.investment_service import InvestmentService
from app.services.purchase_service import PackagePurchaseService, PurchaseResult
from app.services.runner import DistributionRunner, RunSummary


__all__ = [
    "DistributionRunner",
    "InvestmentService",
    "PackagePurchaseService",
    "PurchaseResult",
    "RunSummary",
]
