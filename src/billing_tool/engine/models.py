"""
Data models for the billing engine.

Uses dataclasses for structured, type-safe data representation.
Records and results are frozen: every change produces a new instance.
"""
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Union


class PricingModel(str, Enum):
    """Contract pricing formulas."""
    TIERED = 'TIERED'              # Base fee up to N employees, then a rate per extra
    PER_HEAD_MIN = 'PER_HEAD_MIN'  # Rate per employee with a minimum billable count
    FLAT = 'FLAT'                  # Fixed monthly fee


class BillingStatus(str, Enum):
    READY = 'READY'
    MISSING_RULE = 'MISSING_RULE'


def to_amount(value) -> float:
    """Money/rate value, with missing or invalid input defaulted to 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number


def to_count(value) -> int:
    """Head count, with missing or invalid input defaulted to 0."""
    return int(to_amount(value))


@dataclass(frozen=True)
class CompanyRecord:
    """One billable company for the current period."""
    identifier: str  # CNPJ as imported (unnormalized)
    name: str
    active_count: int = 0

    def with_active_count(self, active_count: int) -> 'CompanyRecord':
        """Copy of this record with a new active employee count."""
        return replace(self, active_count=to_count(active_count))


@dataclass(frozen=True)
class FlatTerms:
    monthly_fee: float


@dataclass(frozen=True)
class TieredTerms:
    base_fee: float
    included_count: int
    excess_unit_price: float


@dataclass(frozen=True)
class PerHeadTerms:
    unit_price: float
    minimum_count: int


ContractTerms = Union[FlatTerms, TieredTerms, PerHeadTerms]


@dataclass(frozen=True)
class PricingRule:
    """
    A contract pricing rule as imported from the contracts sheet.

    The flat row shape overloads ``base_price``: it is the base fee for
    TIERED and FLAT contracts and the per-employee rate for PER_HEAD_MIN.
    ``terms()`` resolves the row into the payload for its model.
    """
    identifier: str
    model: str
    base_price: float = 0.0
    included_count: Optional[int] = None
    excess_unit_price: Optional[float] = None
    minimum_count: Optional[int] = None

    @property
    def pricing_model(self) -> Optional[PricingModel]:
        """The recognized pricing model, or None for an unknown model string."""
        try:
            return PricingModel(self.model)
        except ValueError:
            return None

    def terms(self) -> Optional[ContractTerms]:
        """Build the model-specific contract terms with numeric defaulting."""
        model = self.pricing_model
        if model is PricingModel.TIERED:
            return TieredTerms(
                base_fee=to_amount(self.base_price),
                included_count=to_count(self.included_count),
                excess_unit_price=to_amount(self.excess_unit_price),
            )
        if model is PricingModel.PER_HEAD_MIN:
            return PerHeadTerms(
                unit_price=to_amount(self.base_price),
                minimum_count=to_count(self.minimum_count),
            )
        if model is PricingModel.FLAT:
            return FlatTerms(monthly_fee=to_amount(self.base_price))
        return None


@dataclass(frozen=True)
class BillingResult:
    """Billing outcome for one company record."""
    company: CompanyRecord
    pricing_rule: Optional[PricingRule]
    amount: float
    explanation: str
    status: BillingStatus
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_ready(self) -> bool:
        return self.status == BillingStatus.READY


@dataclass
class DashboardStats:
    """Aggregate figures shown above the results table."""
    total_revenue: float = 0.0
    companies_processed: int = 0
    companies_missing_rules: int = 0
