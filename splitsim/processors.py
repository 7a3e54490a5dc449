"""
Fiscal extraction for indexed SPED documents.

This module turns a Document into typed figures (extract), into register
DataFrames for inspection (the Bloco_* functions) and into the nested
simulator input (extract_for_simulator, integrate).
"""

import logging
from datetime import datetime

import pandas as pd

from . import config
from .lookups import map_operacao, map_regime, tipo_atividade
from .models import (
    ContributionDetail,
    ContributionSummary,
    DocumentKind,
    Empresa,
    ExtractedFiscalData,
    FiscalDocument,
    FlatRecord,
    NestedRecord,
    TaxTotals,
)
from .utils import clean_and_convert_numeric, parse_decimal, parse_decimal_strict, process_date

logger = logging.getLogger(__name__)


def _first(document, code):
    """First record of a register type, or None. Later records are ignored."""
    for record in document.blocos.get(code[:1], []):
        if record and record[0] == code:
            return record
    return None


def _text(record, offset):
    return record[offset] if len(record) > offset else ''


# FiscalExtractor ---------------------------------------------------------------------------------

class _Reader:
    """Reads named fields of one register using the layout offsets."""

    def __init__(self, layout, strict):
        self.offsets = config.LAYOUT_OFFSETS[layout]
        self.parse = parse_decimal_strict if strict else parse_decimal

    def num(self, record, code, name):
        return self.parse(_text(record, self.offsets[code][name]))

    def text(self, record, code, name):
        return _text(record, self.offsets[code][name])


def _tax_totals(document, code, reader):
    record = _first(document, code)
    if record is None:
        return None
    return TaxTotals(
        total_debitos=reader.num(record, code, 'totalDebitos'),
        total_creditos=reader.num(record, code, 'totalCreditos'),
        saldo_apurado=reader.num(record, code, 'saldoApurado'),
        valor_recolher=reader.num(record, code, 'valorRecolher'),
    )


def _fiscal_documents(document, reader):
    documentos = []
    for record in document.registros('C100'):
        documentos.append(FiscalDocument(
            modelo=reader.text(record, 'C100', 'modelo'),
            serie=reader.text(record, 'C100', 'serie'),
            numero=reader.text(record, 'C100', 'numero'),
            chave_nfe=reader.text(record, 'C100', 'chaveNFe'),
            data=process_date(reader.text(record, 'C100', 'data')),
            valor_total=reader.num(record, 'C100', 'valorTotal'),
            base_calculo_icms=reader.num(record, 'C100', 'baseCalculoICMS'),
            valor_icms=reader.num(record, 'C100', 'valorICMS'),
            valor_ipi=reader.num(record, 'C100', 'valorIPI'),
        ))
    return documentos


def _contribution(document, summary_code, detail_code, reader):
    summary = _first(document, summary_code)
    details = document.registros(detail_code)
    if summary is None and not details:
        return None

    # detail records without their summary register: totals are zero, even in strict mode
    if summary is None:
        apurada = recolher = 0.0
    else:
        apurada = reader.num(summary, summary_code, 'contribuicaoApurada')
        recolher = reader.num(summary, summary_code, 'valorRecolher')

    return ContributionSummary(
        contribuicao_apurada=apurada,
        valor_recolher=recolher,
        detalhamento=[
            ContributionDetail(
                receita_bruta=reader.num(record, detail_code, 'receitaBruta'),
                base_calculo=reader.num(record, detail_code, 'baseCalculo'),
                aliquota=reader.num(record, detail_code, 'aliquota'),
                contribuicao_apurada=reader.num(record, detail_code, 'contribuicaoApurada'),
                contribuicao_periodo=reader.num(record, detail_code, 'contribuicaoPeriodo'),
            )
            for record in details
        ],
    )


def _regime(document, reader):
    record = _first(document, '0110')
    if record is None:
        return config.REGIME_DESCONHECIDO
    code = reader.text(record, '0110', 'codIncidencia')
    return config.REGIME_INCIDENCIA.get(code, config.REGIME_DESCONHECIDO)


def extract(document, kind, strict=False, layout=config.LAYOUT_VERSION):
    """
    Pull company, period and tax figures out of an indexed document.

    Singleton totals (E110, E520, M200, M600, 0110) use the first matching
    record; invoices (C100) and rate brackets (M210, M610) map every record.
    Missing registers give None sub-objects or the DESCONHECIDO regime.

    Args:
        document: Document from loaders.index_records()
        kind: DocumentKind deciding which tax sections are read
        strict: if True, unparseable numbers become None instead of 0
        layout: key into config.LAYOUT_OFFSETS

    Returns:
        ExtractedFiscalData
    """
    reader = _Reader(layout, strict)
    header = document.header

    data = ExtractedFiscalData(
        empresa=Empresa(nome=header.nome, cnpj=header.cnpj, uf=header.uf),
        periodo_inicial=header.data_inicial,
        periodo_final=header.data_final,
        tipo=kind,
    )

    if kind is DocumentKind.FISCAL:
        data.icms = _tax_totals(document, 'E110', reader)
        data.ipi = _tax_totals(document, 'E520', reader)
        data.documentos = _fiscal_documents(document, reader)
        logger.debug("Fiscal extraction: %d documents", len(data.documentos))
    elif kind is DocumentKind.CONTRIBUICOES:
        data.pis = _contribution(document, 'M200', 'M210', reader)
        data.cofins = _contribution(document, 'M600', 'M610', reader)
        data.regime_tributario = _regime(document, reader)
        logger.debug("Contribuições extraction: regime %s", data.regime_tributario)

    return data


# Register frames ---------------------------------------------------------------------------------

def register_frame(document, code):
    """
    All records of one register type as a string DataFrame.

    Columns are '0'..'n' by post-strip field index, so column '0' holds the
    register code. Short records are padded with None.
    """
    records = document.registros(code) if document is not None else []
    if not records:
        return pd.DataFrame(columns=['0'], dtype=str)

    frame = pd.DataFrame(records)
    frame.columns = [str(i) for i in range(frame.shape[1])]
    return frame


def _named_frame(document, code):
    names = config.CAMPOS_REGISTRO[code]
    frame = (register_frame(document, code)
             .reindex(columns=[str(i) for i in range(len(names))]))
    frame.columns = names
    clean_and_convert_numeric(frame, config.CAMPOS_NUMERICOS_REGISTRO.get(code, []))
    return frame.reset_index(drop=True)


def Bloco_0(document):
    """Extract registers 0000 and 0110."""
    reg_0000 = _named_frame(document, '0000')

    reg_0110 = _named_frame(document, '0110')
    reg_0110.insert(2, 'regime', map_regime(reg_0110['COD_INC_TRIB']))      # descrição do COD_INC_TRIB

    return reg_0000, reg_0110


def Bloco_C(document):
    """Extract and process C-block registers (C100, C190)."""
    C100 = _named_frame(document, 'C100')
    C100.insert(2, 'operacao', map_operacao(C100['IND_OPER']))      # entrada/saida
    C100['DT_DOC'] = C100['DT_DOC'].map(process_date)
    C100['DT_E_S'] = C100['DT_E_S'].map(process_date)

    C190 = _named_frame(document, 'C190')

    return C100, C190


def Bloco_E(document):
    """Extract E110 (ICMS) and E520 (IPI) period summaries."""
    E110 = _named_frame(document, 'E110')
    E520 = _named_frame(document, 'E520')
    return E110, E520


def Bloco_M(document):
    """Extract PIS (M200, M210) and COFINS (M600, M610) apportionment registers."""
    M200 = _named_frame(document, 'M200')
    M210 = _named_frame(document, 'M210')
    M600 = _named_frame(document, 'M600')
    M610 = _named_frame(document, 'M610')
    return M200, M210, M600, M610


# Simulator input ---------------------------------------------------------------------------------

def estrutura_padrao():
    """Empty nested simulator input with the default cycle and rate."""
    return {
        'empresa': {
            'nome': '',
            'cnpj': '',
            'uf': '',
            'faturamento': 0,
            'margem': 0,
            'setor': '',
            'tipoEmpresa': '',
            'regime': '',
        },
        'cicloFinanceiro': dict(config.CICLO_FINANCEIRO_PADRAO),
        'parametrosFiscais': {
            'aliquota': config.ALIQUOTA_PADRAO,
            'tipoOperacao': '',
            'regimePisCofins': '',
            'creditos': {'pis': 0, 'cofins': 0, 'icms': 0, 'ipi': 0, 'cbs': 0, 'ibs': 0},
            'composicaoTributaria': {
                'debitos': {'pis': 0, 'cofins': 0, 'icms': 0, 'ipi': 0, 'iss': 0},
                'creditos': {'pis': 0, 'cofins': 0, 'icms': 0, 'ipi': 0, 'iss': 0},
            },
        },
    }


def _sum_fields(record, offsets):
    return sum(parse_decimal(_text(record, offset)) for offset in offsets)


def company_type(document, kind):
    """
    Company type for the simulator (industria, comercio, servicos).

    Contribuições files carry IND_ATIV in 0000. Otherwise the type is inferred
    from the apuração registers present: IPI means industria, ICMS alone
    means comercio. Returns '' when nothing can be inferred.
    """
    header = _first(document, config.HEADER_REG)
    if kind is DocumentKind.CONTRIBUICOES and header is not None:
        tipo = tipo_atividade(_text(header, config.SIMULADOR_OFFSETS['0000']['indTipoAtiv']))
        if tipo:
            return tipo

    if _first(document, 'E520') is not None:
        return 'industria'
    if _first(document, 'E110') is not None:
        return 'comercio'
    return ''


def extract_for_simulator(document, kind):
    """
    Build the nested simulator input for one SPED file.

    PIS/COFINS debits and credits come from M200/M600 (Contribuições); ICMS
    and IPI from E110/E520 (Fiscal). Revenue falls back to the sum of outbound
    C100 totals. The financial cycle is always the default one.

    Returns:
        Nested dict (empresa, cicloFinanceiro, parametrosFiscais)
    """
    dados = estrutura_padrao()
    if document is None:
        return dados

    offsets = config.SIMULADOR_OFFSETS
    empresa = dados['empresa']
    fiscais = dados['parametrosFiscais']
    composicao = fiscais['composicaoTributaria']

    empresa['nome'] = document.header.nome
    empresa['cnpj'] = document.header.cnpj
    empresa['uf'] = document.header.uf
    empresa['tipoEmpresa'] = company_type(document, kind)

    reg_0110 = _first(document, '0110')
    if reg_0110 is not None:
        regime = config.REGIME_SIMULADOR.get(_text(reg_0110, offsets['0110']['codIncidencia']))
        if regime:
            fiscais['regimePisCofins'], empresa['regime'] = regime

    if kind is DocumentKind.CONTRIBUICOES:
        for imposto, code in (('pis', 'M200'), ('cofins', 'M600')):
            record = _first(document, code)
            if record is None:
                continue
            composicao['debitos'][imposto] = _sum_fields(record, offsets[code]['debitos'])
            composicao['creditos'][imposto] = _sum_fields(record, offsets[code]['creditos'])
            fiscais['creditos'][imposto] = composicao['creditos'][imposto]

    saidas = [
        record for record in document.registros('C100')
        if _text(record, offsets['C100']['indOper']) == config.OPERACAO_SAIDA
    ]
    faturamento = sum(parse_decimal(_text(r, offsets['C100']['valorTotal'])) for r in saidas)
    if faturamento > 0:
        logger.debug("Revenue from %d outbound C100 records: %.2f", len(saidas), faturamento)
        empresa['faturamento'] = faturamento

    if kind is DocumentKind.FISCAL:
        for imposto, code in (('icms', 'E110'), ('ipi', 'E520')):
            record = _first(document, code)
            if record is None:
                continue
            composicao['debitos'][imposto] = _sum_fields(record, offsets[code]['debitos'])
            composicao['creditos'][imposto] = _sum_fields(record, offsets[code]['creditos'])
            fiscais['creditos'][imposto] = composicao['creditos'][imposto]

    return dados


def _get(dados, *path):
    for key in path:
        if not isinstance(dados, dict):
            return None
        dados = dados.get(key)
    return dados


def integrate(fiscal, contrib):
    """
    Merge the simulator inputs built from a Fiscal and a Contribuições file.

    Contribuições has priority for company data, revenue and PIS/COFINS;
    Fiscal supplies ICMS/IPI and is the revenue fallback. Either side may be
    None.
    """
    dados = estrutura_padrao()
    empresa = dados['empresa']
    fiscais = dados['parametrosFiscais']

    faturamento = _get(contrib, 'empresa', 'faturamento') or _get(fiscal, 'empresa', 'faturamento') or 0
    empresa['faturamento'] = faturamento

    for campo in ('nome', 'cnpj', 'uf'):
        empresa[campo] = _get(contrib, 'empresa', campo) or _get(fiscal, 'empresa', campo) or ''

    empresa['tipoEmpresa'] = (
        _get(contrib, 'empresa', 'tipoEmpresa') or _get(fiscal, 'empresa', 'tipoEmpresa') or ''
    )
    empresa['regime'] = (
        _get(contrib, 'empresa', 'regime') or _get(fiscal, 'empresa', 'regime') or config.REGIME_PADRAO
    )
    fiscais['regimePisCofins'] = (
        _get(contrib, 'parametrosFiscais', 'regimePisCofins') or config.REGIME_PIS_COFINS_PADRAO
    )

    origem = {'pis': contrib, 'cofins': contrib, 'icms': fiscal, 'ipi': fiscal}
    composicao = fiscais['composicaoTributaria']
    for imposto, fonte in origem.items():
        for lado in ('debitos', 'creditos'):
            composicao[lado][imposto] = (
                _get(fonte, 'parametrosFiscais', 'composicaoTributaria', lado, imposto) or 0
            )
        fiscais['creditos'][imposto] = (
            _get(fonte, 'parametrosFiscais', 'creditos', imposto)
            or composicao['creditos'][imposto]
        )

    dados['dadosSpedImportados'] = True
    dados['metadados'] = {
        'fontes': [nome for nome, fonte in (('fiscal', fiscal), ('contribuicoes', contrib)) if fonte],
        'timestampProcessamento': datetime.now().isoformat(),
    }
    logger.info("Integrated SPED data for %s (faturamento=%.2f)", empresa['nome'] or 'N/A', faturamento)
    return dados


def import_sped_pair(fiscal_document, contrib_document):
    """Simulator input from the two documents returned by loaders.load_sped_pair()."""
    fiscal = (extract_for_simulator(fiscal_document, DocumentKind.FISCAL)
              if fiscal_document is not None else None)
    contrib = (extract_for_simulator(contrib_document, DocumentKind.CONTRIBUICOES)
               if contrib_document is not None else None)
    return integrate(fiscal, contrib)


def flatten_simulation_data(dados):
    """
    Flatten the nested simulator input into the single-level record the
    optimizer accepts. A mapping without an 'empresa' key is copied as is;
    FlatRecord and NestedRecord are unwrapped first.
    """
    if isinstance(dados, (FlatRecord, NestedRecord)):
        dados = dados.data
    if 'empresa' not in dados:
        return FlatRecord(dict(dados))

    empresa = dados.get('empresa') or {}
    ciclo = dados.get('cicloFinanceiro') or {}
    fiscais = dados.get('parametrosFiscais') or {}
    creditos = fiscais.get('creditos') or {}
    creditos_sped = (fiscais.get('composicaoTributaria') or {}).get('creditos') or {}

    plano = {
        'nomeEmpresa': empresa.get('nome') or '',
        'cnpj': empresa.get('cnpj') or '',
        'faturamento': empresa.get('faturamento') or 0,
        'margem': empresa.get('margem') or 0,
        'setor': empresa.get('setor') or '',
        'tipoEmpresa': empresa.get('tipoEmpresa') or '',
        'regime': empresa.get('regime') or '',
    }
    for campo, padrao in config.CICLO_FINANCEIRO_PADRAO.items():
        plano[campo] = ciclo.get(campo) or padrao

    plano['aliquota'] = fiscais.get('aliquota') or config.ALIQUOTA_PADRAO
    plano['tipoOperacao'] = fiscais.get('tipoOperacao') or ''
    plano['regimePisCofins'] = fiscais.get('regimePisCofins') or ''

    for imposto in ('pis', 'cofins', 'icms', 'ipi'):
        campo = 'creditos' + imposto.upper()
        plano[campo] = creditos.get(imposto) or 0
        # composicaoTributaria only fills credits still at zero
        if not plano[campo] and (creditos_sped.get(imposto) or 0) > 0:
            plano[campo] = creditos_sped[imposto]

    plano['serviceCompany'] = plano['tipoEmpresa'] == 'servicos'
    plano['cumulativeRegime'] = plano['regimePisCofins'] == 'cumulativo'
    plano['dadosSpedImportados'] = True
    return FlatRecord(plano)


def effective_rates(dados):
    """
    Effective tax rates (percent of revenue) from the integrated simulator input.

    Each rate uses the net debit max(0, debit - credit). Returns an empty dict
    when revenue is not positive.
    """
    faturamento = _get(dados, 'empresa', 'faturamento') or 0
    if faturamento <= 0:
        return {}

    composicao = _get(dados, 'parametrosFiscais', 'composicaoTributaria') or {}
    debitos = composicao.get('debitos') or {}
    creditos = composicao.get('creditos') or {}

    rates = {}
    total = 0.0
    for imposto in ('pis', 'cofins', 'icms', 'ipi'):
        liquido = max(0.0, (debitos.get(imposto) or 0) - (creditos.get(imposto) or 0))
        rates[imposto] = liquido / faturamento * 100
        total += liquido
    rates['total'] = total / faturamento * 100
    return rates


REGISTRO_APURACAO = {'pis': 'M200', 'cofins': 'M600', 'icms': 'E110', 'ipi': 'E520'}


def validation_payload(dados, fiscal_document=None):
    """
    Nested input for validation.validate() built from the integrated
    simulator data and, when available, the Fiscal document's invoices.
    """
    empresa = dados.get('empresa') or {}
    composicao = _get(dados, 'parametrosFiscais', 'composicaoTributaria') or {}
    debitos_sped = composicao.get('debitos') or {}
    creditos_sped = composicao.get('creditos') or {}

    creditos, debitos = {}, {}
    for imposto, registro in REGISTRO_APURACAO.items():
        debito = debitos_sped.get(imposto) or 0
        credito = creditos_sped.get(imposto) or 0
        if not debito and not credito:
            continue

        creditos[imposto] = [{'tipo': 'credito', 'categoria': registro, 'valorCredito': credito}]
        if imposto in ('pis', 'cofins'):
            debitos[imposto] = [{
                'tipo': 'debito',
                'categoria': registro,
                'valorTotalContribuicao': debito,
                'valorContribuicaoAPagar': max(0.0, debito - credito),
            }]
        else:
            debitos[imposto] = [{
                'tipo': 'debito',
                'categoria': registro,
                'valorTotalDebitos': debito,
                'valorTotalCreditos': credito,
            }]

    documentos = []
    if fiscal_document is not None:
        offsets = config.SIMULADOR_OFFSETS['C100']
        for record in fiscal_document.registros('C100'):
            documentos.append({
                'indOper': _text(record, offsets['indOper']),
                'valorTotal': parse_decimal(_text(record, offsets['valorTotal'])),
            })

    return {
        'empresa': {
            'nome': empresa.get('nome', ''),
            'cnpj': empresa.get('cnpj', ''),
            'faturamento': empresa.get('faturamento', 0),
            'tipoEmpresa': empresa.get('tipoEmpresa', ''),
            'regime': empresa.get('regime', ''),
        },
        'documentos': documentos,
        'creditos': creditos,
        'debitos': debitos,
        'metadados': dict(dados.get('metadados') or {}),
    }
