"""
Scalar converters and DataFrame helpers for SPED data.

SPED files use a decimal-comma, dot-thousands convention ("1.234,56") and
DDMMYYYY dates. The converters here never raise on bad input: government
exports are frequently hand-edited and a single broken field must not abort
an import.
"""

import math

import pandas as pd


def parse_decimal(value):
    """
    Convert a SPED numeric field to float.

    Thousands separators ('.') are removed and the decimal comma becomes a
    decimal point. Empty, missing or unparseable values yield 0.

    Example:
        parse_decimal("1.234,56") -> 1234.56
    """
    result = parse_decimal_strict(value)
    return 0.0 if result is None else result


def parse_decimal_strict(value):
    """
    Same conversion as parse_decimal(), but returns None instead of 0 when the
    value is absent or cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return None if math.isnan(value) else float(value)

    text = str(value).strip()
    if not text:
        return None

    text = text.replace('.', '').replace(',', '.', 1)
    try:
        result = float(text)
    except ValueError:
        return None

    if math.isnan(result) or math.isinf(result):
        return None
    return result


def process_date(value):
    """
    Convert a DDMMYYYY date to ISO YYYY-MM-DD.

    Any value that is not exactly 8 characters long yields an empty string.

    Example:
        process_date("25122024") -> "2024-12-25"
    """
    if not isinstance(value, str) or len(value) != 8:
        return ''

    return f"{value[4:8]}-{value[2:4]}-{value[0:2]}"


def clean_and_convert_numeric(df, columns, inplace=True):
    """
    Turn SPED value columns ("1.234,56") into float columns.

    Columns missing from the frame are ignored. Cells that still fail to
    parse after the separators are normalised end up as 0.0.

    With inplace=False the frame is copied and the copy is returned;
    otherwise df itself is changed and nothing is returned.

    Example:
        clean_and_convert_numeric(df, ['VL_TOT_DEBITOS', 'VL_ICMS_RECOLHER'])
    """
    if not inplace:
        df = df.copy()

    columns = [c for c in columns if c in df.columns]
    if columns:
        df[columns] = df[columns].replace(r'\.', '', regex=True)
        df[columns] = df[columns].replace(',', '.', regex=True)
        df[columns] = df[columns].apply(pd.to_numeric, errors='coerce').fillna(0.0)

    if not inplace:
        return df


def only_digits(value) -> str:
    """Strip every non-digit character from a document number."""
    if value is None:
        return ''
    return ''.join(c for c in str(value) if c.isdigit())


def is_valid_cnpj(cnpj) -> bool:
    """A CNPJ is accepted when it carries exactly 14 digits once punctuation is removed."""
    return len(only_digits(cnpj)) == 14


def format_cnpj(cnpj) -> str:
    """Render a 14-digit CNPJ as NN.NNN.NNN/NNNN-NN; anything else comes back as text, unchanged."""
    digits = only_digits(cnpj)
    if len(digits) != 14:
        return '' if cnpj is None else str(cnpj)
    return f"{digits[0:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:14]}"


def format_value(value) -> str:
    """
    Short human-readable rendering used in report messages.

    Example:
        format_value(1500000) -> "R$ 1.50M"
    """
    if isinstance(value, bool):
        return 'Sim' if value else 'Não'
    if isinstance(value, (int, float)):
        if value > 1_000_000:
            return f"R$ {value / 1_000_000:.2f}M"
        if value > 1000:
            return f"R$ {value / 1000:.2f}K"
        return f"R$ {value:.2f}"
    return str(value)
