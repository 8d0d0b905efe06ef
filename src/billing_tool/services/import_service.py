"""
Import Service - Parses pasted text and uploaded sheets into billing records.

Columns are positional and there is no header row:
- Companies: CNPJ, Name, Active employees
- Contracts: CNPJ, Model, Base price, Included employees, Excess price, Minimum employees

Missing cells default to 0 (or "Desconhecida" for the company name); rows
without a CNPJ are dropped.
"""
import csv
import io
import logging
import re
from pathlib import Path
from typing import Iterable, Sequence

import pandas as pd

from ..engine.models import CompanyRecord, PricingRule, to_amount, to_count

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY_NAME = 'Desconhecida'
SUPPORTED_EXTENSIONS = ('.csv', '.xlsx', '.xls')

DEMO_COMPANY_TEXT = """12.345.678/0001-90,Empresa Alpha Ltda,4
98.765.432/0001-10,Beta Industries,15
11.222.333/0001-55,Gamma Tech,8
44.555.666/0001-99,Delta Services,200"""

DEMO_PRICING_TEXT = """12.345.678/0001-90,TIERED,129,5,12,0
98.765.432/0001-10,PER_HEAD_MIN,13,0,0,10
11.222.333/0001-55,TIERED,129,5,12,0"""

_LEADING_INT = re.compile(r'^\s*([+-]?\d+)')
_LEADING_FLOAT = re.compile(r'^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)')


class DataImportError(ValueError):
    """Raised when an uploaded file cannot be read as a table."""


def parse_int(value) -> int:
    """Leading integer part of a cell ("4.7" -> 4); 0 when there is none."""
    match = _LEADING_INT.match(str(value or ''))
    return to_count(match.group(1)) if match else 0


def parse_float(value) -> float:
    """Leading decimal number of a cell ("129,90" -> 129.0); 0 when there is none."""
    match = _LEADING_FLOAT.match(str(value or ''))
    return to_amount(match.group(1)) if match else 0.0


def _cell(row: Sequence, position: int) -> str:
    if position < len(row) and row[position] is not None:
        return str(row[position]).strip()
    return ''


def parse_company_rows(rows: Iterable[Sequence]) -> list[CompanyRecord]:
    """Build company records from positional rows."""
    records = []
    for row in rows:
        identifier = _cell(row, 0)
        if not identifier:
            continue
        records.append(CompanyRecord(
            identifier=identifier,
            name=_cell(row, 1) or UNKNOWN_COMPANY_NAME,
            active_count=parse_int(_cell(row, 2)),
        ))
    return records


def parse_pricing_rows(rows: Iterable[Sequence]) -> list[PricingRule]:
    """Build contract rules from positional rows."""
    rules = []
    for row in rows:
        identifier = _cell(row, 0)
        if not identifier:
            continue
        rules.append(PricingRule(
            identifier=identifier,
            model=_cell(row, 1),
            base_price=parse_float(_cell(row, 2)),
            included_count=to_count(parse_float(_cell(row, 3))),
            excess_unit_price=parse_float(_cell(row, 4)),
            minimum_count=to_count(parse_float(_cell(row, 5))),
        ))
    return rules


def _split_text(text: str) -> list[list[str]]:
    lines = [line for line in (text or '').strip().splitlines() if line.strip()]
    return list(csv.reader(lines))


def parse_company_text(text: str) -> list[CompanyRecord]:
    """Parse pasted comma-separated company rows."""
    return parse_company_rows(_split_text(text))


def parse_pricing_text(text: str) -> list[PricingRule]:
    """Parse pasted comma-separated contract rows."""
    return parse_pricing_rows(_split_text(text))


def read_table(file_name: str, data: bytes) -> str:
    """
    Convert an uploaded CSV or Excel file into comma-separated text.

    Only the first sheet of a workbook is read. The text has no header row
    so it can be reviewed and edited before parsing.

    Raises:
        DataImportError: if the file type is unsupported or the content is unreadable
    """
    suffix = Path(file_name or '').suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise DataImportError(
            f"Tipo de arquivo não suportado: {file_name}. Use Excel (.xlsx, .xls) ou CSV."
        )

    try:
        if suffix == '.csv':
            text = data.decode('utf-8-sig')
            # Rows may have fewer trailing cells than later ones
            width = max((len(row) for row in csv.reader(io.StringIO(text))), default=1)
            df = pd.read_csv(
                io.StringIO(text), header=None, names=range(width), dtype=str,
                skip_blank_lines=True, keep_default_na=False,
            )
        else:
            df = pd.read_excel(
                io.BytesIO(data), sheet_name=0, header=None, dtype=str, keep_default_na=False,
            )
    except Exception as e:
        logger.error("Could not read uploaded file %s: %s", file_name, e)
        raise DataImportError(
            "Erro ao ler o arquivo. Verifique se é um Excel ou CSV válido."
        ) from e

    df = df.fillna('')
    logger.info("Read %d rows from %s", len(df), file_name)
    return df.to_csv(index=False, header=False, lineterminator='\n').strip()
