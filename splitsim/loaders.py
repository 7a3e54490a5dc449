"""
Reading SPED text into records and indexed documents.

The pipeline is tokenize -> classify -> index_records. Each stage is pure and
never raises on malformed lines; bad input shrinks the result instead.
"""

import logging

from . import config
from .models import Document, DocumentKind, Header
from .utils import process_date

logger = logging.getLogger(__name__)


def read_sped_text(uploaded_file):
    """
    Decode an uploaded SPED file and cut it at the closing register.

    Everything after the |9999| line (typically the digital certificate) is
    dropped so binary signature bytes never reach the tokenizer.

    Args:
        uploaded_file: file-like object (Streamlit upload, open file), bytes or str

    Returns:
        Decoded text up to and including the |9999| line
    """
    if hasattr(uploaded_file, 'read'):
        if hasattr(uploaded_file, 'seek'):
            uploaded_file.seek(0)
        file_content = uploaded_file.read()
    else:
        file_content = uploaded_file

    if file_content is None:
        return ''
    if isinstance(file_content, (bytes, bytearray)):
        file_content = bytes(file_content).decode(config.ENCODING, errors='ignore')

    closing = f"{config.DELIMITER}{config.CLOSING_REG}{config.DELIMITER}"
    lines = file_content.split('\n')
    for idx, line in enumerate(lines):
        if line.startswith(closing):
            return '\n'.join(lines[:idx + 1])
    return file_content


def tokenize(text):
    """
    Split raw SPED text into records.

    Blank lines are skipped. One leading and one trailing empty field (left by
    the bracketing delimiters) are removed, then records with fewer than
    MIN_FIELDS fields are discarded.

    Example:
        tokenize("|0000|017|0|\\n|E110|1,00|") -> [['0000', '017', '0']]
    """
    if not text:
        return []

    records = []
    for line in text.split('\n'):
        line = line.rstrip('\r')
        if not line.strip():
            continue

        fields = line.split(config.DELIMITER)
        if fields and fields[0] == '':
            fields.pop(0)
        if fields and fields[-1] == '':
            fields.pop()

        if len(fields) < config.MIN_FIELDS:
            continue
        records.append(fields)

    return records


def classify(records):
    """Decide the document kind from the purpose code of the opening register."""
    if not records:
        return DocumentKind.DESCONHECIDO

    first = records[0]
    if not first or first[0] != config.HEADER_REG:
        return DocumentKind.DESCONHECIDO

    offset = config.LAYOUT_OFFSETS[config.LAYOUT_VERSION][config.HEADER_REG]['finalidade']
    purpose = first[offset] if len(first) > offset else None

    if purpose in config.PURPOSE_FISCAL:
        return DocumentKind.FISCAL
    if purpose in config.PURPOSE_CONTRIB:
        return DocumentKind.CONTRIBUICOES
    return DocumentKind.DESCONHECIDO


def _field(record, offset):
    return record[offset] if len(record) > offset else ''


def _build_header(record, kind, layout):
    offsets = config.LAYOUT_OFFSETS[layout][config.HEADER_REG]
    return Header(
        tipo=kind.value,
        versao_leiaute=_field(record, offsets['versaoLeiaute']),
        finalidade=_field(record, offsets['finalidade']),
        data_inicial=process_date(_field(record, offsets['dataInicial'])),
        data_final=process_date(_field(record, offsets['dataFinal'])),
        nome=_field(record, offsets['nome']),
        cnpj=_field(record, offsets['cnpj']),
        uf=_field(record, offsets['uf']),
        cod_municipio=_field(record, offsets['codMunicipio']),
        inscricao_estadual=_field(record, offsets['inscricaoEstadual']),
    )


def index_records(records, kind=None, layout=config.LAYOUT_VERSION):
    """
    Group records into blocks keyed by the first character of the register code.

    The header is filled from records[0] when it is the 0000 register; otherwise
    every header field stays empty. No record is dropped here.

    Args:
        records: output of tokenize()
        kind: DocumentKind; computed with classify() when omitted
        layout: key into config.LAYOUT_OFFSETS

    Returns:
        Document, or None for empty input
    """
    if not records:
        return None

    if kind is None:
        kind = classify(records)

    header = Header()
    if records[0] and records[0][0] == config.HEADER_REG:
        header = _build_header(records[0], kind, layout)

    blocos = {}
    for record in records:
        blocos.setdefault(record[0][:1], []).append(list(record))

    logger.debug("Indexed %d records into blocks %s", len(records), sorted(blocos))
    return Document(header=header, blocos=blocos)


def load_sped(text):
    """
    Tokenize, classify and index SPED text in one call.

    Returns:
        (Document or None, DocumentKind)
    """
    records = tokenize(text)
    kind = classify(records)
    if kind is DocumentKind.DESCONHECIDO and records:
        logger.warning("Unrecognized SPED purpose code; document kind is %s", kind.value)
    return index_records(records, kind), kind


def _load_source(uploaded_file, expected, label):
    if uploaded_file is None:
        logger.warning("%s not provided", label)
        return None

    try:
        document, kind = load_sped(read_sped_text(uploaded_file))
    except (OSError, ValueError, AttributeError) as e:
        logger.warning("Failed to read %s: %s", label, e)
        return None

    if document is None:
        logger.warning("%s has no valid records", label)
        return None
    if kind is not expected:
        logger.warning("%s classified as %s, expected %s", label, kind.value, expected.value)
    return document


def load_sped_pair(fiscal_file, contrib_file):
    """
    Read an EFD ICMS/IPI file and an EFD Contribuições file independently.

    A source that is missing or cannot be read yields None on its side and
    never prevents the other one from loading.

    Returns:
        (fiscal Document or None, contribuicoes Document or None)
    """
    fiscal = _load_source(fiscal_file, DocumentKind.FISCAL, 'SPED Fiscal')
    contrib = _load_source(contrib_file, DocumentKind.CONTRIBUICOES, 'SPED Contribuições')

    logger.info(
        "SPED pair loaded: fiscal=%s contribuicoes=%s",
        'ok' if fiscal is not None else 'none',
        'ok' if contrib is not None else 'none',
    )
    return fiscal, contrib
