"""
Reconciler - Joins company records with contract rules and prices them.

Rules are indexed by normalized CNPJ. When two rules normalize to the same
CNPJ the one that appears later in the list replaces the earlier one.
"""
import logging
from typing import Iterable

from .billing_engine import calculate_bill
from .models import BillingResult, CompanyRecord, DashboardStats, PricingRule
from .normalizer import normalize_identifier

logger = logging.getLogger(__name__)


def build_rule_index(rules: Iterable[PricingRule]) -> dict[str, PricingRule]:
    """
    Index rules by normalized identifier, in input order.

    Later rules overwrite earlier ones on a key collision (last write wins).
    """
    index: dict[str, PricingRule] = {}
    for rule in rules:
        key = normalize_identifier(rule.identifier)
        if key in index:
            logger.debug("Rule for %s replaces an earlier rule with the same CNPJ", rule.identifier)
        index[key] = rule
    return index


def reconcile(records: Iterable[CompanyRecord], rules: Iterable[PricingRule]) -> list[BillingResult]:
    """
    Price every company record against its contract rule.

    Returns one result per record, in the same order as ``records``.
    """
    index = build_rule_index(rules)
    results = [
        calculate_bill(record, index.get(normalize_identifier(record.identifier)))
        for record in records
    ]
    logger.debug(
        "Reconciled %d companies against %d rules (%d missing)",
        len(results), len(index), sum(1 for r in results if not r.is_ready),
    )
    return results


def update_active_count(results: Iterable[BillingResult], identifier: str, new_count: int) -> list[BillingResult]:
    """
    Change the active count for a company and re-price it.

    Matches the raw (unnormalized) identifier exactly and keeps the rule the
    result already holds. Every other result is passed through unchanged.
    """
    updated = []
    for result in results:
        if result.company.identifier == identifier:
            record = result.company.with_active_count(new_count)
            result = calculate_bill(record, result.pricing_rule)
        updated.append(result)
    return updated


def remove_company(results: Iterable[BillingResult], identifier: str) -> list[BillingResult]:
    """Drop every result whose raw identifier equals ``identifier``."""
    return [r for r in results if r.company.identifier != identifier]


def summarize(results: Iterable[BillingResult]) -> DashboardStats:
    """Total revenue and READY / pending counts for a result list."""
    stats = DashboardStats()
    for result in results:
        stats.total_revenue += result.amount
        if result.is_ready:
            stats.companies_processed += 1
        else:
            stats.companies_missing_rules += 1
    return stats
