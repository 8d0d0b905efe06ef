"""
Streamlit UI for the Billing Reconciliation dashboard.

Features:
- Import of company and contract sheets (upload, paste or demo data)
- Editable results grid (active employees) with automatic re-pricing
- Search, status filter and sorting
- CSV export
- LLM executive report
"""
import streamlit as st
import pandas as pd
from datetime import datetime

from billing_tool.config.settings import configure_logging, get_settings
from billing_tool.engine import reconcile, remove_company, summarize, update_active_count
from billing_tool.services import import_service
from billing_tool.services.export_service import format_currency, results_to_csv
from billing_tool.services.results_view import (
    SORT_KEYS,
    STATUS_FILTERS,
    filter_results,
    rule_label,
    sort_results,
    status_label,
)
from billing_tool.services.summary_service import generate_summary


st.set_page_config(
    page_title="BillingMaster",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_settings_cached():
    """Get cached settings and configure logging once per server."""
    configure_logging()
    return get_settings()


settings = get_settings_cached()

for key, default in (('results', []), ('analysis', None), ('company_text', ''), ('pricing_text', '')):
    if key not in st.session_state:
        st.session_state[key] = default


def money(value: float) -> str:
    return format_currency(value, settings.currency)


def set_results(results):
    """Store new results; any change invalidates the previous report."""
    st.session_state.results = results
    st.session_state.analysis = None


# ============================================================================
# SIDEBAR: Data Import
# ============================================================================
with st.sidebar:
    st.header("1. Importação")

    if st.button("Demo", use_container_width=True):
        st.session_state.company_text = import_service.DEMO_COMPANY_TEXT
        st.session_state.pricing_text = import_service.DEMO_PRICING_TEXT

    soc_tab, pricing_tab = st.tabs(["SOC (Ativos)", "Contratos (Omie)"])

    for tab, state_key, caption in (
        (soc_tab, 'company_text', "CNPJ, Nome, Ativos"),
        (pricing_tab, 'pricing_text', "CNPJ, Regra, Preço Base, Inclusos, Excedente, Mínimo"),
    ):
        with tab:
            uploaded = st.file_uploader(
                "Suporta Excel (.xlsx) e CSV",
                type=["csv", "xlsx", "xls"],
                key=f"upload_{state_key}",
            )
            # Load each upload once so later edits in the text area are kept
            if uploaded is not None and st.session_state.get(f"loaded_{state_key}") != uploaded.file_id:
                st.session_state[f"loaded_{state_key}"] = uploaded.file_id
                try:
                    st.session_state[state_key] = import_service.read_table(uploaded.name, uploaded.getvalue())
                except import_service.DataImportError as e:
                    st.error(str(e))
            st.caption(caption)
            st.text_area(
                caption,
                key=state_key,
                height=180,
                placeholder="Cole os dados ou use o upload acima...",
                label_visibility="collapsed",
            )

    if st.button("Processar Conciliação", type="primary", use_container_width=True):
        companies = import_service.parse_company_text(st.session_state.company_text)
        rules = import_service.parse_pricing_text(st.session_state.pricing_text)
        set_results(reconcile(companies, rules))
        st.rerun()


# ============================================================================
# MAIN CONTENT
# ============================================================================
st.title("BillingMaster")
st.caption(f"Conciliação SOC + Omie | {datetime.now().strftime('%Y-%m-%d')}")

results = st.session_state.results

if not results:
    st.info("Aguardando dados")
    st.caption("Importe os dados do SOC e as regras de preço para iniciar a conciliação.")
    st.stop()

stats = summarize(results)
m1, m2, m3 = st.columns(3)
m1.metric("Faturamento", money(stats.total_revenue))
m2.metric("Processados", stats.companies_processed)
m3.metric("Pendentes", stats.companies_missing_rules)

st.divider()

# Table controls
c1, c2, c3, c4 = st.columns([2, 1, 1, 1])
with c1:
    search_term = st.text_input("Buscar", placeholder="Empresa ou CNPJ...", label_visibility="collapsed")
with c2:
    status_filter = st.selectbox("Status", STATUS_FILTERS, format_func={
        'ALL': "Todos", 'READY': "Prontos", 'ERROR': "Com erro"}.get)
with c3:
    sort_key = st.selectbox("Ordenar por", SORT_KEYS, format_func={
        'status': "Status", 'company_name': "Empresa",
        'active_count': "Ativos", 'amount': "Total"}.get)
with c4:
    direction = st.radio("Ordem", ["asc", "desc"], horizontal=True, label_visibility="collapsed")

view = sort_results(filter_results(results, search_term, status_filter), sort_key, direction)

# Editable grid: only the active employee count can change
grid = pd.DataFrame([{
    'Status': status_label(item.status),
    'CNPJ': item.company.identifier,
    'Empresa': item.company.name,
    'Ativos': item.company.active_count,
    'Modelo': rule_label(item.pricing_rule.model if item.pricing_rule else None),
    'Total': money(item.amount),
} for item in view], columns=['Status', 'CNPJ', 'Empresa', 'Ativos', 'Modelo', 'Total'])

edited_df = st.data_editor(
    grid,
    use_container_width=True,
    column_config={
        "Status": st.column_config.TextColumn("Status", disabled=True),
        "CNPJ": st.column_config.TextColumn("CNPJ", disabled=True),
        "Empresa": st.column_config.TextColumn("Empresa", disabled=True),
        "Ativos": st.column_config.NumberColumn("Ativos", min_value=0, step=1),
        "Modelo": st.column_config.TextColumn("Modelo", disabled=True),
        "Total": st.column_config.TextColumn("Total", disabled=True),
    },
    hide_index=True,
    key="results_editor"
)

btn1, btn2, btn3 = st.columns(3)
with btn1:
    if st.button("💾 Atualizar Ativos", use_container_width=True):
        updated = results
        for original, (_, row) in zip(view, edited_df.iterrows()):
            new_count = 0 if pd.isna(row['Ativos']) else int(row['Ativos'])
            if new_count != original.company.active_count:
                updated = update_active_count(updated, original.company.identifier, new_count)
        set_results(updated)
        st.rerun()
with btn2:
    st.download_button(
        "📥 Exportar CSV",
        data=results_to_csv(view, currency=settings.currency),
        file_name=settings.export_filename,
        mime="text/csv",
        use_container_width=True
    )
with btn3:
    to_remove = st.multiselect(
        "Excluir", [r.company.identifier for r in view], label_visibility="collapsed",
        placeholder="Selecionar CNPJs para excluir"
    )
    if to_remove and st.button("🗑️ Excluir", use_container_width=True):
        remaining = results
        for identifier in to_remove:
            remaining = remove_company(remaining, identifier)
        set_results(remaining)
        st.rerun()

# Detailed breakdown
with st.expander("📊 Detalhes do Cálculo"):
    for item in view:
        title = "Detalhes do Cálculo" if item.is_ready else "Erro na Conciliação"
        st.markdown(f"**{item.company.name}** ({item.company.identifier}) | {title}")
        st.caption(item.explanation)
        for warning in item.warnings:
            st.warning(warning)
        rule = item.pricing_rule
        if rule:
            parts = [f"Regra: `{rule.model}`", f"Preço Base: {money(rule.base_price)}"]
            if rule.excess_unit_price:
                parts.append(f"Custo Excedente: {money(rule.excess_unit_price)} / vida")
            if rule.included_count:
                parts.append(f"Vidas Inclusas: {rule.included_count}")
            if rule.minimum_count:
                parts.append(f"Mínimo Vidas: {rule.minimum_count}")
            st.caption(" | ".join(parts))

st.divider()

# ============================================================================
# AI ANALYSIS
# ============================================================================
st.subheader("✨ Insights")
if st.button("Gerar Relatório Executivo"):
    with st.spinner("Processando IA..."):
        st.session_state.analysis = generate_summary(results, settings=settings)

if st.session_state.analysis:
    with st.container(border=True):
        st.markdown(st.session_state.analysis)
else:
    st.caption("Clique para gerar uma análise financeira detalhada.")
