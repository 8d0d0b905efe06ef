"""
Pricing cases for the billing engine.
These capture the billed amount and explanation for each contract model
and should fail if pricing logic changes unexpectedly.
"""
import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from billing_tool.engine import BillingStatus, CompanyRecord, PricingRule, calculate_bill
from billing_tool.engine.billing_engine import (
    FLAT_FEE_MESSAGE,
    MISSING_RULE_MESSAGE,
    UNKNOWN_MODEL_MESSAGE,
    format_number,
)
from billing_tool.engine.models import FlatTerms, PerHeadTerms, TieredTerms


def company(active_count, identifier="12.345.678/0001-90"):
    return CompanyRecord(identifier=identifier, name="Empresa Alpha Ltda", active_count=active_count)


@pytest.fixture
def tiered_rule():
    return PricingRule(
        identifier="12.345.678/0001-90", model="TIERED",
        base_price=129, included_count=5, excess_unit_price=12,
    )


def test_missing_rule():
    result = calculate_bill(company(10))

    assert result.status == BillingStatus.MISSING_RULE
    assert result.amount == 0
    assert result.pricing_rule is None
    assert result.explanation == MISSING_RULE_MESSAGE


def test_tiered_within_included(tiered_rule):
    result = calculate_bill(company(4), tiered_rule)

    assert result.amount == 129, f"Expected base fee 129, got {result.amount}"
    assert result.status == BillingStatus.READY
    assert result.explanation == "Fixo (Até 5 func.)"


def test_tiered_at_included_boundary(tiered_rule):
    result = calculate_bill(company(5), tiered_rule)
    assert result.amount == 129


def test_tiered_with_excess(tiered_rule):
    result = calculate_bill(company(8), tiered_rule)

    assert result.amount == 165, f"Expected 129 + 3 x 12 = 165, got {result.amount}"
    assert result.explanation == "Base R$129 + (3 extras x R$12)"


def test_tiered_missing_optional_fields_default_to_zero():
    rule = PricingRule(identifier="1", model="TIERED", base_price=129)

    # included defaults to 0, so every employee is excess at rate 0
    result = calculate_bill(company(4), rule)
    assert result.amount == 129
    assert result.explanation == "Base R$129 + (4 extras x R$0)"

    assert calculate_bill(company(0), rule).explanation == "Fixo (Até 0 func.)"


def test_per_head_above_minimum():
    rule = PricingRule(identifier="1", model="PER_HEAD_MIN", base_price=13, minimum_count=10)
    result = calculate_bill(company(15), rule)

    assert result.amount == 195
    assert result.explanation == "15 faturados x R$13 (Mínimo: 10)"


def test_per_head_minimum_enforced():
    rule = PricingRule(identifier="1", model="PER_HEAD_MIN", base_price=13, minimum_count=10)
    result = calculate_bill(company(4), rule)

    assert result.amount == 130, f"Minimum of 10 should bill 130, got {result.amount}"
    assert result.explanation == "10 faturados x R$13 (Mínimo: 10)"


@pytest.mark.parametrize("active", [0, 1, 50, 10_000])
def test_flat_ignores_head_count(active):
    rule = PricingRule(identifier="1", model="FLAT", base_price=500)
    result = calculate_bill(company(active), rule)

    assert result.amount == 500
    assert result.explanation == FLAT_FEE_MESSAGE
    assert result.status == BillingStatus.READY


def test_unknown_model_is_zero_and_flagged():
    rule = PricingRule(identifier="1", model="PER_SEAT", base_price=99)
    result = calculate_bill(company(3), rule)

    assert result.amount == 0
    assert result.status == BillingStatus.READY
    assert result.explanation == UNKNOWN_MODEL_MESSAGE
    assert result.pricing_rule is rule
    assert len(result.warnings) == 1 and "PER_SEAT" in result.warnings[0]


def test_invalid_numbers_default_to_zero():
    rule = PricingRule(
        identifier="1", model="TIERED",
        base_price=float('nan'), included_count=None, excess_unit_price=-5,
    )
    result = calculate_bill(company(3), rule)

    assert result.amount == 0
    assert result.amount >= 0


def test_fractional_prices_in_explanation():
    rule = PricingRule(identifier="1", model="TIERED", base_price=129.9, included_count=1, excess_unit_price=12.5)
    result = calculate_bill(company(3), rule)

    assert abs(result.amount - 154.9) < 0.001
    assert result.explanation == "Base R$129.9 + (2 extras x R$12.5)"


def test_terms_resolve_base_price_per_model():
    assert PricingRule("1", "FLAT", 500).terms() == FlatTerms(monthly_fee=500)
    assert PricingRule("1", "PER_HEAD_MIN", 13, minimum_count=10).terms() == PerHeadTerms(unit_price=13, minimum_count=10)
    assert PricingRule("1", "TIERED", 129, 5, 12).terms() == TieredTerms(base_fee=129, included_count=5, excess_unit_price=12)
    assert PricingRule("1", "tiered", 129).terms() is None


def test_format_number():
    assert format_number(129.0) == "129"
    assert format_number(12.5) == "12.5"
    assert format_number(0) == "0"
