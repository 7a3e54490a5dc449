"""
Shared SPED samples for the test suite.

Lines are built field by field so that every value sits at the index the
layout tables expect, without counting pipes by hand.
"""

from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))


def sped_line(code, size, values=None):
    """'|code|...|' with `size` fields (code included) and the given index -> value map."""
    fields = [''] * size
    fields[0] = code
    for index, value in (values or {}).items():
        fields[index] = value
    return '|' + '|'.join(fields) + '|'


def header_line(finalidade, extra=None, size=14):
    values = {
        2: '017',
        3: finalidade,
        4: '01012024',
        5: '31012024',
        6: 'ACME INDUSTRIA LTDA',
        7: '11222333000181',
        8: 'SP',
        9: '3550308',
        10: '123456789',
    }
    values.update(extra or {})
    return sped_line('0000', size, values)


@pytest.fixture
def fiscal_text():
    lines = [
        header_line('1'),
        sped_line('0150', 4, {1: 'PART01', 2: 'CLIENTE'}),
        # outbound invoice
        sped_line('C100', 29, {
            1: '1', 5: '55', 8: '1', 9: '1001', 10: 'NFE1',
            11: '1500,00', 17: '1.500,00', 19: '1.500,00', 20: '270,00', 24: '0,00',
        }),
        # outbound invoice
        sped_line('C100', 29, {1: '1', 5: '55', 9: '1002', 11: '500,00', 17: '500,00'}),
        # inbound invoice
        sped_line('C100', 29, {1: '0', 5: '55', 9: '2001', 11: '800,00', 17: '800,00'}),
        sped_line('C190', 12, {1: '000', 2: '5102', 3: '18,00', 4: '1.500,00'}),
        sped_line('E110', 15, {
            1: '1.000,00', 2: '200,00', 3: '0,00', 4: '0,00',
            5: '300,00', 6: '100,00', 7: '0,00', 8: '0,00',
            11: '800,00', 13: '800,00',
        }),
        '|9999|12|',
    ]
    return '\r\n'.join(lines) + '\r\n'


@pytest.fixture
def contrib_text():
    lines = [
        # IND_ATIV at index 13: 1 = servicos
        header_line('11', {13: '1'}),
        # COD_INC_TRIB at index 1 (simulator view) and index 2 (extractor view)
        sped_line('0110', 5, {1: '1', 2: '2'}),
        sped_line('C100', 29, {1: '1', 11: '2.000,00', 17: '2.000,00'}),
        sped_line('M200', 13, {1: '330,00', 2: '120,00', 8: '210,00'}),
        sped_line('M210', 17, {
            1: '01', 3: '20.000,00', 7: '20.000,00', 8: '1,65', 11: '330,00', 16: '330,00',
        }),
        sped_line('M600', 13, {1: '1.520,00', 2: '560,00', 8: '960,00'}),
        '|9999|6|',
    ]
    return '\n'.join(lines)


@pytest.fixture
def flat_data():
    return {
        'faturamento': 100000.0,
        'margem': 0.2,
        'pmr': 30,
        'pmp': 30,
        'pme': 30,
        'percVista': 0.3,
        'percPrazo': 0.7,
    }


@pytest.fixture
def baseline():
    return {'diferencaCapitalGiro': -50000.0, 'percentualImpacto': -12.5}
