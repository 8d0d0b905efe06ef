"""
Identifier normalization for CNPJ matching.

Contract sheets and HR exports format the same CNPJ differently
("12.345.678/0001-90" vs "12345678000190"), so lookups compare digits only.
"""
import re

_NON_DIGITS = re.compile(r'[^0-9]')


def normalize_identifier(identifier: str) -> str:
    """Strip every non-digit character from an identifier."""
    if not identifier:
        return ''
    return _NON_DIGITS.sub('', str(identifier))
