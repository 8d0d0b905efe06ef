"""
Billing Engine - Prices one company record against its contract rule.

Resolution per contract model:
- TIERED: base fee up to the included head count, then a rate per extra employee
- PER_HEAD_MIN: rate per employee, billing at least the contract minimum
- FLAT: fixed monthly fee regardless of head count

Missing or invalid numbers are treated as 0, so pricing never raises.
A company without a rule is reported with MISSING_RULE instead of failing
the whole reconciliation.
"""
import logging
from typing import Optional

from .models import (
    BillingResult,
    BillingStatus,
    CompanyRecord,
    FlatTerms,
    PerHeadTerms,
    PricingRule,
    TieredTerms,
    to_count,
)

logger = logging.getLogger(__name__)

MISSING_RULE_MESSAGE = 'Regra de contrato não encontrada'
FLAT_FEE_MESSAGE = 'Valor fixo mensal'
UNKNOWN_MODEL_MESSAGE = 'Modelo desconhecido'


def format_number(value: float) -> str:
    """Render a number for explanations: 129 instead of 129.0, 12.5 as is."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def calculate_bill(record: CompanyRecord, rule: Optional[PricingRule] = None) -> BillingResult:
    """
    Compute the billed amount for a company under its contract rule.

    Args:
        record: Company with its active employee count
        rule: Matched contract rule, or None when no contract was found

    Returns:
        BillingResult with amount, explanation and status
    """
    if rule is None:
        return BillingResult(
            company=record,
            pricing_rule=None,
            amount=0.0,
            explanation=MISSING_RULE_MESSAGE,
            status=BillingStatus.MISSING_RULE,
        )

    active = to_count(record.active_count)
    terms = rule.terms()
    warnings = ()

    if isinstance(terms, TieredTerms):
        amount, explanation = _price_tiered(active, terms)
    elif isinstance(terms, PerHeadTerms):
        amount, explanation = _price_per_head(active, terms)
    elif isinstance(terms, FlatTerms):
        amount, explanation = terms.monthly_fee, FLAT_FEE_MESSAGE
    else:
        # Unknown models keep READY with a zero bill; the warning marks the row for review.
        logger.warning("Unknown pricing model %r for %s", rule.model, record.identifier)
        amount, explanation = 0.0, UNKNOWN_MODEL_MESSAGE
        warnings = (f"Modelo de preço não reconhecido: {rule.model!r}",)

    return BillingResult(
        company=record,
        pricing_rule=rule,
        amount=amount,
        explanation=explanation,
        status=BillingStatus.READY,
        warnings=warnings,
    )


def _price_tiered(active: int, terms: TieredTerms) -> tuple[float, str]:
    included = terms.included_count
    if active <= included:
        return terms.base_fee, f"Fixo (Até {included} func.)"

    excess_count = active - included
    amount = terms.base_fee + excess_count * terms.excess_unit_price
    explanation = (
        f"Base R${format_number(terms.base_fee)} + "
        f"({excess_count} extras x R${format_number(terms.excess_unit_price)})"
    )
    return amount, explanation


def _price_per_head(active: int, terms: PerHeadTerms) -> tuple[float, str]:
    billable_count = max(active, terms.minimum_count)
    amount = billable_count * terms.unit_price
    explanation = (
        f"{billable_count} faturados x R${format_number(terms.unit_price)} "
        f"(Mínimo: {terms.minimum_count})"
    )
    return amount, explanation
