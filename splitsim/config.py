"""
Configuration constants for the split payment simulator.

This module centralizes the SPED layout offsets, the mitigation strategy
parameters and the validation weights used throughout the package.
"""

# File encoding and parsing
ENCODING = 'latin-1'
DELIMITER = '|'
MIN_FIELDS = 3
HEADER_REG = '0000'
CLOSING_REG = '9999'

# Purpose codes read from the header (0000)
PURPOSE_FISCAL = ('0', '1')
PURPOSE_CONTRIB = ('10', '11')

# Field offsets per register, counted after the leading/trailing delimiter
# artifacts are stripped (register code at index 0).
# Keyed by layout version; add a new entry instead of editing the default one.
LAYOUT_VERSION = 'default'
LAYOUT_OFFSETS = {
    'default': {
        '0000': {
            'versaoLeiaute': 2,
            'finalidade': 3,
            'dataInicial': 4,
            'dataFinal': 5,
            'nome': 6,
            'cnpj': 7,
            'uf': 8,
            'codMunicipio': 9,
            'inscricaoEstadual': 10,
        },
        '0110': {
            'codIncidencia': 2,
        },
        'C100': {
            'modelo': 5,
            'serie': 8,
            'numero': 9,
            'chaveNFe': 10,
            'data': 11,
            'valorTotal': 17,
            'baseCalculoICMS': 19,
            'valorICMS': 20,
            'valorIPI': 24,
        },
        'E110': {
            'totalDebitos': 2,
            'totalCreditos': 6,
            'saldoApurado': 11,
            'valorRecolher': 13,
        },
        'E520': {
            'totalDebitos': 2,
            'totalCreditos': 3,
            'saldoApurado': 7,
            'valorRecolher': 12,
        },
        'M200': {
            'contribuicaoApurada': 2,
            'valorRecolher': 8,
        },
        'M210': {
            'receitaBruta': 3,
            'baseCalculo': 7,
            'aliquota': 8,
            'contribuicaoApurada': 11,
            'contribuicaoPeriodo': 16,
        },
    },
}
# COFINS registers share the PIS layout
LAYOUT_OFFSETS['default']['M600'] = LAYOUT_OFFSETS['default']['M200']
LAYOUT_OFFSETS['default']['M610'] = LAYOUT_OFFSETS['default']['M210']

# 0110 COD_INC_TRIB -> regime code
REGIME_INCIDENCIA = {
    '1': 'CUMULATIVO',
    '2': 'NAO_CUMULATIVO',
    '3': 'AMBOS',
}
REGIME_DESCONHECIDO = 'DESCONHECIDO'

# Offsets used when building the simulator input (summed fields are listed)
SIMULADOR_OFFSETS = {
    '0000': {'indTipoAtiv': 13},
    '0110': {'codIncidencia': 1},
    'C100': {'indOper': 1, 'valorTotal': 11},
    'E110': {'debitos': [1, 2, 3, 4], 'creditos': [5, 6, 7, 8]},
    'E520': {'debitos': [2, 4], 'creditos': [3, 5]},
    'M200': {'debitos': [1], 'creditos': [2]},
    'M600': {'debitos': [1], 'creditos': [2]},
}

# 0110 code -> (regimePisCofins, regime) in the simulator vocabulary
REGIME_SIMULADOR = {
    '1': ('nao-cumulativo', 'real'),
    '2': ('cumulativo', 'presumido'),
}
REGIME_PADRAO = 'presumido'
REGIME_PIS_COFINS_PADRAO = 'cumulativo'

# 0110 COD_INC_TRIB description for the register frames
COD_INC_TRIB_DESCRICAO = {
    '1': 'nao-cumulativo',
    '2': 'cumulativo',
    '3': 'ambos',
}

# 0000 IND_ATIV -> company type
TIPO_ATIVIDADE = {
    '0': 'industria',
    '1': 'servicos',
    '2': 'comercio',
}

# C100 IND_OPER
INDICADOR_OPERACAO = {
    '0': 'entrada',
    '1': 'saida',
}
OPERACAO_SAIDA = '1'
OPERACAO_ENTRADA = '0'

# Default financial cycle applied to imported data
CICLO_FINANCEIRO_PADRAO = {
    'pmr': 30,
    'pmp': 30,
    'pme': 30,
    'percVista': 0.3,
    'percPrazo': 0.7,
}
ALIQUOTA_PADRAO = 0.265

# Mitigation strategies, in enumeration order: name -> flat-config prefix
ESTRATEGIAS = {
    'ajustePrecos': 'ap',
    'renegociacaoPrazos': 'rp',
    'antecipacaoRecebiveis': 'ar',
    'capitalGiro': 'cg',
    'mixProdutos': 'mp',
    'meiosPagamento': 'mpag',
}

# Pairwise interaction factors (1.0 = no overlap discount)
MATRIZ_INTERACAO = {
    'ajustePrecos': {
        'renegociacaoPrazos': 0.9,
        'antecipacaoRecebiveis': 0.8,
        'capitalGiro': 1.0,
        'mixProdutos': 0.7,
        'meiosPagamento': 0.9,
    },
    'renegociacaoPrazos': {
        'ajustePrecos': 0.9,
        'antecipacaoRecebiveis': 0.9,
        'capitalGiro': 0.95,
        'mixProdutos': 0.9,
        'meiosPagamento': 0.85,
    },
    'antecipacaoRecebiveis': {
        'ajustePrecos': 0.8,
        'renegociacaoPrazos': 0.9,
        'capitalGiro': 0.7,
        'mixProdutos': 0.9,
        'meiosPagamento': 0.7,
    },
    'capitalGiro': {
        'ajustePrecos': 1.0,
        'renegociacaoPrazos': 0.95,
        'antecipacaoRecebiveis': 0.7,
        'mixProdutos': 1.0,
        'meiosPagamento': 0.9,
    },
    'mixProdutos': {
        'ajustePrecos': 0.7,
        'renegociacaoPrazos': 0.9,
        'antecipacaoRecebiveis': 0.9,
        'capitalGiro': 1.0,
        'meiosPagamento': 0.8,
    },
    'meiosPagamento': {
        'ajustePrecos': 0.9,
        'renegociacaoPrazos': 0.85,
        'antecipacaoRecebiveis': 0.7,
        'capitalGiro': 0.9,
        'mixProdutos': 0.8,
    },
}
FATOR_INTERACAO_PADRAO = 0.9
EFETIVIDADE_MAXIMA = 100

# Combined effect of all active strategies: detail carrying each one's cash flow
CAMPO_FLUXO_COMBINADO = {
    'ajustePrecos': 'fluxoCaixaAdicional',
    'renegociacaoPrazos': 'impactoFluxoCaixa',
    'antecipacaoRecebiveis': 'impactoFluxoCaixa',
    'capitalGiro': 'valorFinanciamento',
    'mixProdutos': 'impactoFluxoCaixa',
    'meiosPagamento': 'impactoLiquido',
}
# Share of the summed PMR / PMP / margin shifts kept when strategies overlap
SOBREPOSICAO_PMR = 0.8
SOBREPOSICAO_PMP = 0.9
SOBREPOSICAO_MARGEM = 0.85

# Flat-data normalization
CAMPOS_NUMERICOS = [
    'faturamento', 'margem', 'pmr', 'pmp', 'pme',
    'percVista', 'percPrazo', 'aliquota', 'taxaCapitalGiro', 'taxaAntecipacao',
]
CAMPOS_PERCENTUAIS = [
    'margem', 'percVista', 'percPrazo', 'aliquota', 'taxaCapitalGiro', 'taxaAntecipacao',
]
CAMPOS_ESSENCIAIS = ['faturamento', 'margem']
TOLERANCIA_PERCENTUAL = 0.001

# Strategy formula assumptions
DURACAO_EFEITO_MESES = 12
PARTICIPACAO_FORNECEDORES_CUSTO = 0.7   # share of costs paid to suppliers
CUSTO_IMPLEMENTACAO_MIX = 0.1           # implementation cost over adjusted revenue
TOLERANCIA_DISTRIBUICAO = 0.01

# Validation report
PROPRIEDADES_ESSENCIAIS = ['empresa', 'documentos', 'creditos', 'debitos', 'metadados']
MIN_PROPRIEDADES = 3
PONTOS_ESTRUTURA = 20
CAMPOS_EMPRESA = {
    'nome': {'peso': 25, 'tipo': 'string', 'obrigatorio': True},
    'cnpj': {'peso': 25, 'tipo': 'string', 'obrigatorio': True},
    'faturamento': {'peso': 30, 'tipo': 'number', 'obrigatorio': False},
    'tipoEmpresa': {'peso': 10, 'tipo': 'string', 'obrigatorio': False},
    'regime': {'peso': 10, 'tipo': 'string', 'obrigatorio': False},
}
FATOR_EMPRESA = 0.3
TIPOS_FISCAIS = ['creditos', 'debitos', 'impostos', 'regimes']
MIN_TIPOS_FISCAIS = 2
PONTOS_FISCAIS = 25
PONTOS_DOCUMENTOS = 20
PONTOS_POR_IMPOSTO = 5
IMPOSTOS_ESTRUTURA = ['pis', 'cofins', 'icms', 'ipi', 'iss']
IMPOSTOS_VALIDADOS = ['pis', 'cofins', 'icms', 'ipi']
CAMPOS_ESPERADOS = {
    'creditos': {
        'pis': ['tipo', 'categoria', 'valorCredito', 'codigoCredito'],
        'cofins': ['tipo', 'categoria', 'valorCredito', 'codigoCredito'],
        'icms': ['tipo', 'categoria', 'valorCredito'],
        'ipi': ['tipo', 'categoria', 'valorCredito'],
    },
    'debitos': {
        'pis': ['tipo', 'categoria', 'valorTotalContribuicao', 'valorContribuicaoAPagar'],
        'cofins': ['tipo', 'categoria', 'valorTotalContribuicao', 'valorContribuicaoAPagar'],
        'icms': ['tipo', 'categoria', 'valorTotalDebitos', 'valorTotalCreditos'],
        'ipi': ['tipo', 'categoria', 'valorTotalDebitos', 'valorTotalCreditos'],
    },
}
CAMPOS_ESPERADOS_PADRAO = ['tipo', 'categoria']
LIMIAR_REGISTRO_VALIDO = 70
LIMIAR_REGISTRO_PARCIAL = 40
FAIXAS_STATUS = [
    (80, 'excelente', 'Dados SPED de alta qualidade - prosseguir com importação'),
    (60, 'bom', 'Dados SPED de boa qualidade - prosseguir com importação'),
    (40, 'regular', 'Dados SPED de qualidade regular - verificar problemas antes de prosseguir'),
    (0, 'insuficiente', 'Dados SPED de qualidade insuficiente - revisar arquivos antes de prosseguir'),
]
MAX_PROBLEMAS = 5
MAX_ALERTAS = 10

# SPED field names per register, by post-strip index, for the register frames
CAMPOS_REGISTRO = {
    '0000': [
        'REG', 'COD_VER', 'COD_FIN', 'DT_INI', 'DT_FIN', 'NOME', 'CNPJ', 'CPF',
        'UF', 'IE', 'COD_MUN', 'IM', 'SUFRAMA', 'IND_PERFIL', 'IND_ATIV',
    ],
    '0110': ['REG', 'COD_INC_TRIB', 'IND_APRO_CRED', 'COD_TIPO_CONT', 'IND_REG_CUM'],
    'C100': [
        'REG', 'IND_OPER', 'IND_EMIT', 'COD_PART', 'COD_MOD', 'COD_SIT', 'SER',
        'NUM_DOC', 'CHV_NFE', 'DT_DOC', 'DT_E_S', 'VL_DOC', 'IND_PGTO', 'VL_DESC',
        'VL_ABAT_NT', 'VL_MERC', 'IND_FRT', 'VL_FRT', 'VL_SEG', 'VL_OUT_DA',
        'VL_BC_ICMS', 'VL_ICMS', 'VL_BC_ICMS_ST', 'VL_ICMS_ST', 'VL_IPI', 'VL_PIS',
        'VL_COFINS', 'VL_PIS_ST', 'VL_COFINS_ST',
    ],
    'C190': [
        'REG', 'CST_ICMS', 'CFOP', 'ALIQ_ICMS', 'VL_OPR', 'VL_BC_ICMS', 'VL_ICMS',
        'VL_BC_ICMS_ST', 'VL_ICMS_ST', 'VL_RED_BC', 'VL_IPI', 'COD_OBS',
    ],
    'E110': [
        'REG', 'VL_TOT_DEBITOS', 'VL_AJ_DEBITOS', 'VL_TOT_AJ_DEBITOS', 'VL_ESTORNOS_CRED',
        'VL_TOT_CREDITOS', 'VL_AJ_CREDITOS', 'VL_TOT_AJ_CREDITOS', 'VL_ESTORNOS_DEB',
        'VL_SLD_CREDOR_ANT', 'VL_SLD_APURADO', 'VL_TOT_DED', 'VL_ICMS_RECOLHER',
        'VL_SLD_CREDOR_TRANSPORTAR', 'DEB_ESP',
    ],
    'E520': [
        'REG', 'VL_SD_ANT_IPI', 'VL_DEB_IPI', 'VL_CRED_IPI', 'VL_OD_IPI', 'VL_OC_IPI',
        'VL_SC_IPI', 'VL_SD_IPI',
    ],
    'M200': [
        'REG', 'VL_TOT_CONT_NC_PER', 'VL_TOT_CRED_DESC', 'VL_TOT_CRED_DESC_ANT',
        'VL_TOT_CONT_NC_DEV', 'VL_RET_NC', 'VL_OUT_DED_NC', 'VL_CONT_NC_REC',
        'VL_TOT_CONT_CUM_PER', 'VL_RET_CUM', 'VL_OUT_DED_CUM', 'VL_CONT_CUM_REC',
        'VL_TOT_CONT_REC',
    ],
    'M210': [
        'REG', 'COD_CONT', 'VL_REC_BRT', 'VL_BC_CONT', 'VL_AJUS_ACRES_BC', 'VL_AJUS_REDUC_BC',
        'VL_BC_CONT_AJUS', 'ALIQ', 'QUANT_BC', 'ALIQ_QUANT', 'VL_CONT_APUR',
        'VL_AJUS_ACRES', 'VL_AJUS_REDUC', 'VL_CONT_DIFER', 'VL_CONT_DIFER_ANT', 'VL_CONT_PER',
    ],
}
CAMPOS_REGISTRO['M600'] = CAMPOS_REGISTRO['M200']
CAMPOS_REGISTRO['M610'] = CAMPOS_REGISTRO['M210']

# Columns converted to float in the register frames
CAMPOS_NUMERICOS_REGISTRO = {
    'C100': [
        'VL_DOC', 'VL_DESC', 'VL_ABAT_NT', 'VL_MERC', 'VL_FRT', 'VL_SEG', 'VL_OUT_DA',
        'VL_BC_ICMS', 'VL_ICMS', 'VL_BC_ICMS_ST', 'VL_ICMS_ST', 'VL_IPI', 'VL_PIS',
        'VL_COFINS', 'VL_PIS_ST', 'VL_COFINS_ST',
    ],
    'C190': [
        'ALIQ_ICMS', 'VL_OPR', 'VL_BC_ICMS', 'VL_ICMS', 'VL_BC_ICMS_ST', 'VL_ICMS_ST',
        'VL_RED_BC', 'VL_IPI',
    ],
    'E110': CAMPOS_REGISTRO['E110'][1:],
    'E520': CAMPOS_REGISTRO['E520'][1:],
    'M200': CAMPOS_REGISTRO['M200'][1:],
    'M210': CAMPOS_REGISTRO['M210'][2:],
}
CAMPOS_NUMERICOS_REGISTRO['M600'] = CAMPOS_NUMERICOS_REGISTRO['M200']
CAMPOS_NUMERICOS_REGISTRO['M610'] = CAMPOS_NUMERICOS_REGISTRO['M210']
