import io

from splitsim import loaders
from splitsim.models import DocumentKind

from conftest import header_line, sped_line


def test_tokenize_strips_bracketing_delimiters():
    records = loaders.tokenize("|0000|017|0|1|\n|E110|1,00|2,00|")

    assert records == [['0000', '017', '0', '1'], ['E110', '1,00', '2,00']]


def test_tokenize_drops_short_records_and_blank_lines():
    text = "|A|B|\n\n   \n|C|\n|E110|1,00|2,00|\r\n"

    assert loaders.tokenize(text) == [['E110', '1,00', '2,00']]


def test_tokenize_removes_only_one_empty_field_per_side():
    assert loaders.tokenize("||a|b||") == [['', 'a', 'b', '']]


def test_tokenize_keeps_unbracketed_lines():
    assert loaders.tokenize("X|Y|Z") == [['X', 'Y', 'Z']]


def test_tokenize_never_returns_short_records(fiscal_text, contrib_text):
    for text in (fiscal_text, contrib_text, "|9999|1|\n||\n|"):
        assert all(len(record) >= 3 for record in loaders.tokenize(text))


def test_tokenize_empty_input():
    assert loaders.tokenize('') == []
    assert loaders.tokenize(None) == []


def test_classify_by_purpose_code():
    assert loaders.classify([['0000', 'a', 'b', '1']]) is DocumentKind.FISCAL
    assert loaders.classify([['0000', 'a', 'b', '0']]) is DocumentKind.FISCAL
    assert loaders.classify([['0000', 'a', 'b', '11']]) is DocumentKind.CONTRIBUTIONS
    assert loaders.classify([['0000', 'a', 'b', '10']]) is DocumentKind.CONTRIBUICOES
    assert loaders.classify([['0000', 'a', 'b', '5']]) is DocumentKind.UNKNOWN


def test_classify_without_header():
    assert loaders.classify([]) is DocumentKind.DESCONHECIDO
    assert loaders.classify([['C100', '1', '2']]) is DocumentKind.DESCONHECIDO
    # header too short to carry a purpose code
    assert loaders.classify([['0000', 'a', 'b']]) is DocumentKind.DESCONHECIDO


def test_index_records_builds_header_and_blocks(fiscal_text):
    records = loaders.tokenize(fiscal_text)
    document = loaders.index_records(records)

    assert document.header.tipo == 'FISCAL'
    assert document.header.nome == 'ACME INDUSTRIA LTDA'
    assert document.header.cnpj == '11222333000181'
    assert document.header.data_inicial == '2024-01-01'
    assert document.header.data_final == '2024-01-31'
    assert sorted(document.blocos) == ['0', 'C', 'E']
    assert len(document.registros('C100')) == 3
    assert sum(len(block) for block in document.blocos.values()) == len(records)


def test_index_records_without_header_keeps_records():
    records = [['C100', '1', '2'], ['E110', '1,00', '2,00']]
    document = loaders.index_records(records)

    assert document.header.nome == ''
    assert document.header.tipo == ''
    assert document.registros('C100') == [['C100', '1', '2']]


def test_index_records_empty_input():
    assert loaders.index_records([]) is None


def test_indexing_is_idempotent(contrib_text):
    records = loaders.tokenize(contrib_text)

    first = loaders.index_records(records, loaders.classify(records))
    second = loaders.index_records(records, loaders.classify(records))

    assert first == second


def test_read_sped_text_cuts_after_closing_register():
    raw = "|0000|a|b|1|\n|9999|2|\nSIGNATURE\x00\xff".encode('latin-1')

    text = loaders.read_sped_text(io.BytesIO(raw))

    assert text == "|0000|a|b|1|\n|9999|2|"


def test_read_sped_text_decodes_latin1():
    raw = "|0000|a|b|1|SÃO PAULO|".encode('latin-1')

    assert 'SÃO PAULO' in loaders.read_sped_text(raw)


def test_load_sped_returns_kind(contrib_text):
    document, kind = loaders.load_sped(contrib_text)

    assert kind is DocumentKind.CONTRIBUICOES
    assert document.header.tipo == 'CONTRIBUICOES'


def test_load_sped_pair_reads_both_sources(fiscal_text, contrib_text):
    fiscal, contrib = loaders.load_sped_pair(
        io.BytesIO(fiscal_text.encode('latin-1')),
        io.BytesIO(contrib_text.encode('latin-1')),
    )

    assert fiscal.header.tipo == 'FISCAL'
    assert contrib.header.tipo == 'CONTRIBUICOES'


def test_load_sped_pair_tolerates_missing_or_empty_source(fiscal_text):
    fiscal, contrib = loaders.load_sped_pair(io.BytesIO(fiscal_text.encode('latin-1')), None)
    assert fiscal is not None
    assert contrib is None

    fiscal, contrib = loaders.load_sped_pair(io.BytesIO(b'not a sped file'), None)
    assert fiscal is None
    assert contrib is None


def test_load_sped_pair_keeps_misclassified_document():
    text = '\n'.join([header_line('11'), sped_line('M200', 13, {1: '10,00'})])

    fiscal, _ = loaders.load_sped_pair(text, None)

    assert fiscal is not None
    assert fiscal.header.tipo == 'CONTRIBUICOES'
