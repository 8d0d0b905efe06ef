"""
Summary Service - LLM-generated executive report for a billing run.

Only READY results are sent, with the total revenue and a sample of rows
to stay within token limits. Failures never propagate: the caller always
gets a Markdown string to display.
"""
import json
import logging
from typing import Iterable, Optional

from openai import OpenAI

from ..config.settings import Settings, get_settings
from ..engine.models import BillingResult

logger = logging.getLogger(__name__)

NOT_CONFIGURED_MESSAGE = "Análise por IA indisponível: configure OPENAI_API_KEY."
EMPTY_RESPONSE_MESSAGE = "Não foi possível gerar a análise no momento."
ERROR_MESSAGE = "Erro ao conectar com a IA para análise."

SYSTEM_PROMPT = "Você é um assistente financeiro especialista em faturamento B2B."

USER_PROMPT_TEMPLATE = """Analise os dados de faturamento deste mês abaixo.

Resumo Estatístico:
- Total Faturado: R$ {total:.2f}
- Empresas Processadas: {count}

Dados Detalhados (Amostra):
{sample_json}
(Nota: A lista pode estar truncada se for muito longa).

Por favor, gere um "Relatório Executivo de Faturamento" curto e profissional em Markdown.
1. Destaque o faturamento total.
2. Identifique as 3 empresas que mais pagam.
3. Sugira ações se houver empresas com faturamento muito baixo ou anomalias visíveis.
4. Use um tom formal em Português.
"""


def build_summary_prompt(results: Iterable[BillingResult], sample_size: int = 30) -> str:
    """User prompt with totals and a sample of READY rows."""
    ready = [r for r in results if r.is_ready]
    total = sum(r.amount for r in ready)
    sample = [
        {
            'company': r.company.name,
            'employees': r.company.active_count,
            'amount': r.amount,
            'details': r.explanation,
        }
        for r in ready[:max(sample_size, 0)]
    ]
    return USER_PROMPT_TEMPLATE.format(
        total=total,
        count=len(ready),
        sample_json=json.dumps(sample, ensure_ascii=False),
    )


def generate_summary(
    results: Iterable[BillingResult],
    client: Optional[OpenAI] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Ask the LLM for an executive billing report.

    Args:
        results: Billing results of the current run
        client: OpenAI client; built from settings when omitted
        settings: Settings override (tests)

    Returns:
        Markdown report, or a fixed fallback message
    """
    settings = settings or get_settings()
    if client is None:
        if not settings.summary_enabled:
            return NOT_CONFIGURED_MESSAGE
        client = OpenAI(api_key=settings.openai_api_key)

    user_prompt = build_summary_prompt(results, settings.summary_sample_size)

    try:
        completion = client.chat.completions.create(
            model=settings.summary_model,
            temperature=settings.summary_temperature,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_prompt},
            ],
        )
        report_md = completion.choices[0].message.content or ""
    except Exception as e:
        logger.error(f"Summary generation failed: {e}", exc_info=True)
        return ERROR_MESSAGE

    return report_md or EMPTY_RESPONSE_MESSAGE
