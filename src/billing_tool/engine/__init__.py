"""Engine subpackage - core billing logic and reconciliation."""
from .billing_engine import calculate_bill
from .models import (
    BillingResult,
    BillingStatus,
    CompanyRecord,
    DashboardStats,
    PricingModel,
    PricingRule,
)
from .normalizer import normalize_identifier
from .reconciler import (
    build_rule_index,
    reconcile,
    remove_company,
    summarize,
    update_active_count,
)

__all__ = [
    'calculate_bill', 'normalize_identifier', 'build_rule_index', 'reconcile',
    'update_active_count', 'remove_company', 'summarize',
    'BillingResult', 'BillingStatus', 'CompanyRecord', 'DashboardStats',
    'PricingModel', 'PricingRule',
]
