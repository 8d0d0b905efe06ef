"""
Results View - Search, status filter and sorting for the results table.
"""
from typing import Iterable

from ..engine.models import BillingResult, BillingStatus, PricingModel

STATUS_FILTERS = ('ALL', 'READY', 'ERROR')
SORT_KEYS = ('status', 'company_name', 'active_count', 'amount')
SORT_DIRECTIONS = ('asc', 'desc')

RULE_LABELS = {
    PricingModel.TIERED.value: 'Escalonado',
    PricingModel.PER_HEAD_MIN.value: 'Mínimo/Vidas',
    PricingModel.FLAT.value: 'Valor Fixo',
}


def rule_label(model) -> str:
    """Display label for a pricing model string."""
    if isinstance(model, PricingModel):
        model = model.value
    return RULE_LABELS.get(model, '-')


def status_label(status) -> str:
    return 'Pronto' if status == BillingStatus.READY else 'Erro'


def filter_results(
    results: Iterable[BillingResult],
    search_term: str = '',
    status_filter: str = 'ALL',
) -> list[BillingResult]:
    """
    Filter by search term and status.

    The term matches the company name case-insensitively or the raw CNPJ
    as typed. ERROR keeps every result that is not READY.
    """
    if status_filter not in STATUS_FILTERS:
        raise ValueError(f"Unknown status filter '{status_filter}'")

    data = list(results)
    if search_term:
        term = search_term.lower()
        data = [
            r for r in data
            if term in r.company.name.lower() or term in r.company.identifier
        ]

    if status_filter != 'ALL':
        want_ready = status_filter == 'READY'
        data = [r for r in data if r.is_ready == want_ready]

    return data


def _sort_value(result: BillingResult, key: str):
    if key == 'company_name':
        return result.company.name.lower()
    if key == 'active_count':
        return result.company.active_count
    if key == 'amount':
        return result.amount
    # status: pending rows first in ascending order
    return 1 if result.is_ready else 0


def sort_results(
    results: Iterable[BillingResult],
    key: str = 'status',
    direction: str = 'asc',
) -> list[BillingResult]:
    """Stable sort by a table column; unknown keys keep the input order."""
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Unknown sort direction '{direction}'")

    data = list(results)
    if key not in SORT_KEYS:
        return data
    return sorted(data, key=lambda r: _sort_value(r, key), reverse=(direction == 'desc'))
