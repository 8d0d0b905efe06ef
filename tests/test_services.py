"""
Tests for the services around the engine: import parsing, results view,
CSV export and the LLM summary.
"""
import io
import os
import sys
from types import SimpleNamespace

import pandas as pd
import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from billing_tool.config.settings import Settings
from billing_tool.engine import BillingStatus, reconcile
from billing_tool.services import import_service, summary_service
from billing_tool.services.export_service import EXPORT_COLUMNS, format_currency, results_to_csv, results_to_frame
from billing_tool.services.results_view import filter_results, rule_label, sort_results, status_label


@pytest.fixture
def demo_results():
    companies = import_service.parse_company_text(import_service.DEMO_COMPANY_TEXT)
    rules = import_service.parse_pricing_text(import_service.DEMO_PRICING_TEXT)
    return reconcile(companies, rules)


# ----------------------------------------------------------------------------
# Import
# ----------------------------------------------------------------------------

def test_parse_demo_text():
    companies = import_service.parse_company_text(import_service.DEMO_COMPANY_TEXT)
    rules = import_service.parse_pricing_text(import_service.DEMO_PRICING_TEXT)

    assert len(companies) == 4
    assert companies[1].identifier == "98.765.432/0001-10"
    assert companies[1].name == "Beta Industries"
    assert companies[1].active_count == 15

    assert len(rules) == 3
    assert rules[1].model == "PER_HEAD_MIN"
    assert rules[1].base_price == 13
    assert rules[1].minimum_count == 10


def test_parse_company_rows_defaults():
    records = import_service.parse_company_rows([
        ["  123 ", "", "4.7"],
        ["456"],
        ["", "No CNPJ", "3"],
        ["789", "Acme", "abc"],
    ])

    assert [r.identifier for r in records] == ["123", "456", "789"]
    assert records[0].name == import_service.UNKNOWN_COMPANY_NAME
    assert records[0].active_count == 4
    assert records[1].active_count == 0
    assert records[2].active_count == 0


def test_parse_pricing_rows_defaults():
    rules = import_service.parse_pricing_rows([["123", " FLAT ", "500"]])

    assert rules[0].model == "FLAT"
    assert rules[0].base_price == 500
    assert rules[0].included_count == 0
    assert rules[0].excess_unit_price == 0
    assert rules[0].minimum_count == 0


def test_parse_text_skips_blank_lines():
    text = "\n123,Alpha,2\n\n   \n456,Beta,3\n"
    assert len(import_service.parse_company_text(text)) == 2
    assert import_service.parse_company_text("") == []


def test_parse_numbers_like_a_spreadsheet():
    assert import_service.parse_int("12abc") == 12
    assert import_service.parse_int("") == 0
    assert import_service.parse_float("129.90") == pytest.approx(129.9)
    assert import_service.parse_float("1e2") == 100
    assert import_service.parse_float("R$ 10") == 0


def test_read_table_csv():
    data = b"12.345.678/0001-90,Alpha,4\n98.765.432/0001-10,Beta,15\n"
    text = import_service.read_table("ativos.csv", data)

    records = import_service.parse_company_text(text)
    assert [r.active_count for r in records] == [4, 15]
    assert records[0].identifier == "12.345.678/0001-90"


def test_read_table_csv_short_row_before_full_row():
    data = b"12.345.678/0001-90,FLAT,500\n98.765.432/0001-10,TIERED,129,5,12,0\n"
    text = import_service.read_table("contratos.csv", data)

    rules = import_service.parse_pricing_text(text)
    assert len(rules) == 2, f"Expected both rows to be read, got {text!r}"
    assert rules[0].model == "FLAT"
    assert rules[0].base_price == 500
    assert rules[0].included_count == 0
    assert rules[1].model == "TIERED"
    assert rules[1].included_count == 5
    assert rules[1].excess_unit_price == 12


def test_read_table_keeps_na_like_text():
    text = import_service.read_table("ativos.csv", b"123,NA,4\nN/A,null,2\n")

    records = import_service.parse_company_text(text)
    assert [r.identifier for r in records] == ["123", "N/A"]
    assert records[0].name == "NA"
    assert records[1].name == "null"


def test_read_table_excel_keeps_na_like_text():
    buffer = io.BytesIO()
    pd.DataFrame([["123", "NA", 4]]).to_excel(buffer, index=False, header=False)

    records = import_service.parse_company_text(import_service.read_table("ativos.xlsx", buffer.getvalue()))
    assert records[0].name == "NA"


def test_read_table_excel():
    buffer = io.BytesIO()
    pd.DataFrame([["12.345.678/0001-90", "FLAT", 500]]).to_excel(buffer, index=False, header=False)

    text = import_service.read_table("contratos.xlsx", buffer.getvalue())
    rules = import_service.parse_pricing_text(text)

    assert len(rules) == 1
    assert rules[0].model == "FLAT"
    assert rules[0].base_price == 500


def test_read_table_rejects_unsupported_file():
    with pytest.raises(import_service.DataImportError):
        import_service.read_table("notes.txt", b"hello")


def test_read_table_rejects_unreadable_excel():
    with pytest.raises(import_service.DataImportError):
        import_service.read_table("broken.xlsx", b"not a workbook")


# ----------------------------------------------------------------------------
# Results view
# ----------------------------------------------------------------------------

def test_filter_by_search_term(demo_results):
    assert [r.company.name for r in filter_results(demo_results, "beta")] == ["Beta Industries"]
    assert len(filter_results(demo_results, "11.222")) == 1
    # CNPJ search is on the raw text
    assert filter_results(demo_results, "11222") == []


def test_filter_by_status(demo_results):
    ready = filter_results(demo_results, status_filter="READY")
    errors = filter_results(demo_results, status_filter="ERROR")

    assert len(ready) == 3
    assert [r.company.name for r in errors] == ["Delta Services"]

    with pytest.raises(ValueError):
        filter_results(demo_results, status_filter="PENDING")


def test_sort_by_status_puts_pending_first(demo_results):
    ordered = sort_results(demo_results, "status", "asc")
    assert ordered[0].status == BillingStatus.MISSING_RULE
    # Stable among equal keys
    assert [r.company.name for r in ordered[1:]] == ["Empresa Alpha Ltda", "Beta Industries", "Gamma Tech"]


def test_sort_by_amount_desc(demo_results):
    ordered = sort_results(demo_results, "amount", "desc")
    assert [r.amount for r in ordered] == [195, 165, 129, 0]


def test_sort_by_name_and_count(demo_results):
    by_name = sort_results(demo_results, "company_name")
    assert by_name[0].company.name == "Beta Industries"

    by_count = sort_results(demo_results, "active_count", "desc")
    assert by_count[0].company.active_count == 200


def test_sort_unknown_key_keeps_order(demo_results):
    assert sort_results(demo_results, "rating") == demo_results
    with pytest.raises(ValueError):
        sort_results(demo_results, "amount", "up")


def test_labels():
    assert rule_label("TIERED") == "Escalonado"
    assert rule_label("PER_HEAD_MIN") == "Mínimo/Vidas"
    assert rule_label("FLAT") == "Valor Fixo"
    assert rule_label(None) == "-"
    assert status_label(BillingStatus.READY) == "Pronto"
    assert status_label(BillingStatus.MISSING_RULE) == "Erro"


# ----------------------------------------------------------------------------
# Export
# ----------------------------------------------------------------------------

def test_format_currency():
    assert format_currency(1234.5) == "R$ 1.234,50"
    assert format_currency(0) == "R$ 0,00"
    assert format_currency(1000000) == "R$ 1.000.000,00"
    assert format_currency(-12.5) == "-R$ 12,50"


def test_results_to_frame(demo_results):
    df = results_to_frame(demo_results)

    assert list(df.columns) == EXPORT_COLUMNS
    assert len(df) == 4
    assert df.iloc[0]['Valor Total'] == "R$ 129,00"
    assert df.iloc[1]['Modelo de Preço'] == "Mínimo/Vidas"
    assert df.iloc[3]['Status'] == "Erro"
    assert df.iloc[3]['Modelo de Preço'] == "-"

    raw = results_to_frame(demo_results, money_format=False)
    assert raw.iloc[2]['Valor Total'] == 165


def test_results_to_csv(demo_results):
    text = results_to_csv(demo_results)
    lines = text.strip().splitlines()

    assert lines[0].startswith("Status,CNPJ,Empresa")
    assert len(lines) == 5


# ----------------------------------------------------------------------------
# Summary
# ----------------------------------------------------------------------------

class StubCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def stub_client(content=None, error=None):
    completions = StubCompletions(content, error)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


@pytest.fixture
def settings(tmp_path):
    return Settings(project_root=tmp_path, openai_api_key="test-key", summary_sample_size=2)


def test_summary_prompt_uses_ready_results_only(demo_results):
    prompt = summary_service.build_summary_prompt(demo_results, sample_size=30)

    assert "Total Faturado: R$ 489.00" in prompt
    assert "Empresas Processadas: 3" in prompt
    assert "Delta Services" not in prompt
    assert "Gamma Tech" in prompt


def test_summary_prompt_truncates_sample(demo_results):
    prompt = summary_service.build_summary_prompt(demo_results, sample_size=1)
    assert "Empresa Alpha Ltda" in prompt
    assert "Beta Industries" not in prompt


def test_generate_summary(demo_results, settings):
    client, completions = stub_client(content="# Relatório")
    report = summary_service.generate_summary(demo_results, client=client, settings=settings)

    assert report == "# Relatório"
    assert completions.calls[0]['model'] == settings.summary_model
    assert completions.calls[0]['messages'][0]['role'] == "system"


def test_generate_summary_empty_response(demo_results, settings):
    client, _ = stub_client(content=None)
    report = summary_service.generate_summary(demo_results, client=client, settings=settings)
    assert report == summary_service.EMPTY_RESPONSE_MESSAGE


def test_generate_summary_client_error(demo_results, settings):
    client, _ = stub_client(error=RuntimeError("timeout"))
    report = summary_service.generate_summary(demo_results, client=client, settings=settings)
    assert report == summary_service.ERROR_MESSAGE


def test_generate_summary_not_configured(demo_results, tmp_path):
    report = summary_service.generate_summary(demo_results, settings=Settings(project_root=tmp_path))
    assert report == summary_service.NOT_CONFIGURED_MESSAGE
