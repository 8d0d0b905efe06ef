"""
Export Service - Spreadsheet export of billing results.
"""
from typing import Iterable

import pandas as pd

from ..engine.models import BillingResult
from .results_view import rule_label, status_label

EXPORT_COLUMNS = [
    'Status', 'CNPJ', 'Empresa', 'Funcionários Ativos',
    'Modelo de Preço', 'Detalhes do Cálculo', 'Valor Total',
]

CURRENCY_SYMBOLS = {'BRL': 'R$', 'USD': 'US$', 'EUR': '€'}


def format_currency(value: float, currency: str = 'BRL') -> str:
    """Format money the pt-BR way: R$ 1.234,56."""
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    amount = round(float(value or 0), 2)
    # 1,234.56 -> 1.234,56
    digits = f"{abs(amount):,.2f}".replace(',', '_').replace('.', ',').replace('_', '.')
    sign = '-' if amount < 0 else ''
    return f"{sign}{symbol} {digits}"


def results_to_frame(
    results: Iterable[BillingResult],
    money_format: bool = True,
    currency: str = 'BRL',
) -> pd.DataFrame:
    """One row per result, in the given order."""
    rows = []
    for item in results:
        rows.append({
            'Status': status_label(item.status),
            'CNPJ': item.company.identifier,
            'Empresa': item.company.name,
            'Funcionários Ativos': item.company.active_count,
            'Modelo de Preço': rule_label(item.pricing_rule.model if item.pricing_rule else None),
            'Detalhes do Cálculo': item.explanation,
            'Valor Total': format_currency(item.amount, currency) if money_format else round(item.amount, 2),
        })
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def results_to_csv(results: Iterable[BillingResult], currency: str = 'BRL') -> str:
    """CSV text for the download button and the export endpoint."""
    return results_to_frame(results, currency=currency).to_csv(index=False)
