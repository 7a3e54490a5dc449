import pandas as pd

from .config import COD_INC_TRIB_DESCRICAO, INDICADOR_OPERACAO, TIPO_ATIVIDADE


OPERACAO_SERIES = pd.Series(INDICADOR_OPERACAO, dtype="string")
REGIME_SERIES = pd.Series(COD_INC_TRIB_DESCRICAO, dtype="string")


def map_operacao(series: pd.Series) -> pd.Series:
    """Map C100 IND_OPER codes to entrada/saida."""
    return series.map(OPERACAO_SERIES)


def map_regime(series: pd.Series) -> pd.Series:
    """Map 0110 COD_INC_TRIB codes to regime names."""
    return series.map(REGIME_SERIES)


def tipo_atividade(code):
    """Company type for a single IND_ATIV code, '' when unknown."""
    return TIPO_ATIVIDADE.get(code, '')
