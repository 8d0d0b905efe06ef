"""
Pydantic models for the billing API and their conversion to engine models.
"""
from typing import Optional

from pydantic import BaseModel, Field

from ..engine.models import (
    BillingResult,
    BillingStatus,
    CompanyRecord,
    DashboardStats,
    PricingRule,
)


class CompanyIn(BaseModel):
    """A company row: CNPJ, name, active employees."""
    identifier: str
    name: str = "Desconhecida"
    active_count: int = Field(default=0, ge=0)

    def to_record(self) -> CompanyRecord:
        return CompanyRecord(identifier=self.identifier, name=self.name, active_count=self.active_count)

    @classmethod
    def from_record(cls, record: CompanyRecord) -> 'CompanyIn':
        return cls(identifier=record.identifier, name=record.name, active_count=record.active_count)


class PricingRuleIn(BaseModel):
    """A contract row. ``model`` is kept as sent so unknown models can be reported."""
    identifier: str
    model: str
    base_price: float = Field(default=0.0, ge=0)
    included_count: Optional[int] = Field(default=None, ge=0)
    excess_unit_price: Optional[float] = Field(default=None, ge=0)
    minimum_count: Optional[int] = Field(default=None, ge=0)

    def to_rule(self) -> PricingRule:
        return PricingRule(**self.model_dump())

    @classmethod
    def from_rule(cls, rule: PricingRule) -> 'PricingRuleIn':
        return cls(
            identifier=rule.identifier,
            model=rule.model,
            base_price=rule.base_price,
            included_count=rule.included_count,
            excess_unit_price=rule.excess_unit_price,
            minimum_count=rule.minimum_count,
        )


class BillingResultModel(BaseModel):
    company: CompanyIn
    pricing_rule: Optional[PricingRuleIn] = None
    amount: float
    explanation: str
    status: BillingStatus
    warnings: list[str] = []

    def to_result(self) -> BillingResult:
        return BillingResult(
            company=self.company.to_record(),
            pricing_rule=self.pricing_rule.to_rule() if self.pricing_rule else None,
            amount=self.amount,
            explanation=self.explanation,
            status=self.status,
            warnings=tuple(self.warnings),
        )

    @classmethod
    def from_result(cls, result: BillingResult) -> 'BillingResultModel':
        return cls(
            company=CompanyIn.from_record(result.company),
            pricing_rule=PricingRuleIn.from_rule(result.pricing_rule) if result.pricing_rule else None,
            amount=result.amount,
            explanation=result.explanation,
            status=result.status,
            warnings=list(result.warnings),
        )


class StatsModel(BaseModel):
    total_revenue: float
    companies_processed: int
    companies_missing_rules: int

    @classmethod
    def from_stats(cls, stats: DashboardStats) -> 'StatsModel':
        return cls(
            total_revenue=stats.total_revenue,
            companies_processed=stats.companies_processed,
            companies_missing_rules=stats.companies_missing_rules,
        )


class ReconcileRequest(BaseModel):
    companies: list[CompanyIn]
    rules: list[PricingRuleIn] = []


class ResultsRequest(BaseModel):
    results: list[BillingResultModel]

    def to_results(self) -> list[BillingResult]:
        return [r.to_result() for r in self.results]


class UpdateCountRequest(ResultsRequest):
    identifier: str
    active_count: int = Field(ge=0)


class RemoveCompanyRequest(ResultsRequest):
    identifier: str


class ViewRequest(ResultsRequest):
    search: str = ""
    status_filter: str = "ALL"
    sort_key: str = "status"
    direction: str = "asc"


class ResultsResponse(BaseModel):
    results: list[BillingResultModel]
    stats: StatsModel


class DemoResponse(BaseModel):
    companies: list[CompanyIn]
    rules: list[PricingRuleIn]


class SummaryResponse(BaseModel):
    summary: str
