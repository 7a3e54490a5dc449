"""Data structures shared by the import pipeline and the mitigation optimizer."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


class DocumentKind(Enum):
    """SPED family, decided once from the header purpose code."""

    FISCAL = 'FISCAL'
    CONTRIBUICOES = 'CONTRIBUICOES'
    DESCONHECIDO = 'DESCONHECIDO'

    # English aliases
    CONTRIBUTIONS = 'CONTRIBUICOES'
    UNKNOWN = 'DESCONHECIDO'


@dataclass
class Header:
    """Fields of the 0000 opening register. Dates are already ISO formatted."""

    tipo: str = ''
    versao_leiaute: str = ''
    finalidade: str = ''
    data_inicial: str = ''
    data_final: str = ''
    nome: str = ''
    cnpj: str = ''
    uf: str = ''
    cod_municipio: str = ''
    inscricao_estadual: str = ''


@dataclass
class Document:
    """Parsed SPED file: header plus records grouped by block letter."""

    header: Header = field(default_factory=Header)
    blocos: Dict[str, List[List[str]]] = field(default_factory=dict)

    def registros(self, codigo: str) -> List[List[str]]:
        """All records of one register type, in file order."""
        return [reg for reg in self.blocos.get(codigo[:1], []) if reg and reg[0] == codigo]


@dataclass
class Empresa:
    nome: str = ''
    cnpj: str = ''
    uf: str = ''


@dataclass
class TaxTotals:
    """ICMS (E110) or IPI (E520) period summary."""

    total_debitos: Optional[float] = 0.0
    total_creditos: Optional[float] = 0.0
    saldo_apurado: Optional[float] = 0.0
    valor_recolher: Optional[float] = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalDebitos': self.total_debitos,
            'totalCreditos': self.total_creditos,
            'saldoApurado': self.saldo_apurado,
            'valorRecolher': self.valor_recolher,
        }


@dataclass
class FiscalDocument:
    """One C100 invoice."""

    modelo: str = ''
    serie: str = ''
    numero: str = ''
    chave_nfe: str = ''
    data: str = ''
    valor_total: Optional[float] = 0.0
    base_calculo_icms: Optional[float] = 0.0
    valor_icms: Optional[float] = 0.0
    valor_ipi: Optional[float] = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'modelo': self.modelo,
            'serie': self.serie,
            'numero': self.numero,
            'chaveNFe': self.chave_nfe,
            'data': self.data,
            'valorTotal': self.valor_total,
            'baseCalculoICMS': self.base_calculo_icms,
            'valorICMS': self.valor_icms,
            'valorIPI': self.valor_ipi,
        }


@dataclass
class ContributionDetail:
    """One M210 (PIS) or M610 (COFINS) rate bracket."""

    receita_bruta: Optional[float] = 0.0
    base_calculo: Optional[float] = 0.0
    aliquota: Optional[float] = 0.0
    contribuicao_apurada: Optional[float] = 0.0
    contribuicao_periodo: Optional[float] = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'receitaBruta': self.receita_bruta,
            'baseCalculo': self.base_calculo,
            'aliquota': self.aliquota,
            'contribuicaoApurada': self.contribuicao_apurada,
            'contribuicaoPeriodo': self.contribuicao_periodo,
        }


@dataclass
class ContributionSummary:
    """PIS or COFINS apportionment (M200/M600 plus detail brackets)."""

    contribuicao_apurada: Optional[float] = 0.0
    valor_recolher: Optional[float] = 0.0
    detalhamento: List[ContributionDetail] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'contribuicaoApurada': self.contribuicao_apurada,
            'valorRecolher': self.valor_recolher,
            'detalhamento': [d.to_dict() for d in self.detalhamento],
        }


@dataclass
class ExtractedFiscalData:
    """Typed figures pulled out of one SPED file."""

    empresa: Empresa = field(default_factory=Empresa)
    periodo_inicial: str = ''
    periodo_final: str = ''
    tipo: DocumentKind = DocumentKind.DESCONHECIDO
    icms: Optional[TaxTotals] = None
    ipi: Optional[TaxTotals] = None
    documentos: List[FiscalDocument] = field(default_factory=list)
    pis: Optional[ContributionSummary] = None
    cofins: Optional[ContributionSummary] = None
    regime_tributario: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Nested camelCase shape consumed by the reporting layers."""
        result = {
            'empresa': asdict(self.empresa),
            'periodoInicial': self.periodo_inicial,
            'periodoFinal': self.periodo_final,
        }
        if self.tipo is DocumentKind.FISCAL:
            result['icms'] = self.icms.to_dict() if self.icms else None
            result['ipi'] = self.ipi.to_dict() if self.ipi else None
            result['documentos'] = [d.to_dict() for d in self.documentos]
        elif self.tipo is DocumentKind.CONTRIBUICOES:
            result['pis'] = self.pis.to_dict() if self.pis else None
            result['cofins'] = self.cofins.to_dict() if self.cofins else None
            result['regimeTributario'] = self.regime_tributario
        return result


# Flat vs nested simulation records --------------------------------------------------------------

@dataclass(frozen=True)
class FlatRecord:
    """Single-level simulation input, the only shape the optimizer accepts."""

    data: Mapping[str, Any]


@dataclass(frozen=True)
class NestedRecord:
    """Simulation input still grouped in sub-objects (empresa, estrategias, ...)."""

    data: Mapping[str, Any]


NESTING_MARKERS = ('empresa', 'estrategias')


def as_record(data: Mapping[str, Any]) -> Union[FlatRecord, NestedRecord]:
    """Tag a raw mapping as flat or nested, once, at the system boundary."""
    if isinstance(data, (FlatRecord, NestedRecord)):
        return data
    if any(isinstance(data.get(marker), Mapping) for marker in NESTING_MARKERS):
        return NestedRecord(data)
    return FlatRecord(data)


# Mitigation ------------------------------------------------------------------------------------

@dataclass
class BaselineImpact:
    """Output of the external working-capital model for one year."""

    diferenca_capital_giro: float = 0.0
    percentual_impacto: float = 0.0
    necessidade_adicional_capital_giro: float = 0.0
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def necessidade_capital_giro(self) -> float:
        """Magnitude of the capital gap every strategy is measured against."""
        return abs(self.diferenca_capital_giro or 0.0)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> 'BaselineImpact':
        if isinstance(data, BaselineImpact):
            return data
        data = dict(data or {})

        def pick(*keys):
            for key in keys:
                value = data.pop(key, None)
                if isinstance(value, (int, float)) and not isinstance(value, bool):
                    return float(value)
            return 0.0

        return cls(
            diferenca_capital_giro=pick('diferencaCapitalGiro', 'differenceInWorkingCapital'),
            percentual_impacto=pick('percentualImpacto', 'percentImpact'),
            necessidade_adicional_capital_giro=pick(
                'necessidadeAdicionalCapitalGiro', 'additionalWorkingCapitalNeed'
            ),
            extras=data,
        )


@dataclass(frozen=True)
class StrategyResult:
    nome: str
    efetividade_percentual: float
    custo_estrategia: float
    custo_beneficio: float
    detalhes: Dict[str, Any] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'nome': self.nome,
            'efetividadePercentual': self.efetividade_percentual,
            'custoEstrategia': self.custo_estrategia,
            'custoBeneficio': self.custo_beneficio,
            **self.detalhes,
        }


@dataclass(frozen=True)
class CombinationResult:
    combinacao: Tuple[str, ...]
    efetividade_total: float
    custo_total: float
    relacao_custo_beneficio: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'combinacao': list(self.combinacao),
            'efetividadeTotal': self.efetividade_total,
            'custoTotal': self.custo_total,
            'relacaoCustoBeneficio': self.relacao_custo_beneficio,
        }


@dataclass
class CombinedEffectiveness:
    """
    Effect of running every active strategy at once, with overlap factors
    applied to the PMR, PMP and margin shifts. Cycle figures stay None when
    no strategy is active.
    """

    estrategias_ativas: int = 0
    efetividade_percentual: float = 0.0
    mitigacao_total: float = 0.0
    custo_total: float = 0.0
    custo_beneficio: float = 0.0
    pmr_ajustado: Optional[float] = None
    pmp_ajustado: Optional[float] = None
    ciclo_financeiro_ajustado: Optional[float] = None
    variacao_ciclo: float = 0.0
    margem_ajustada: Optional[float] = None
    impactos_mitigados: Dict[str, StrategyResult] = field(default_factory=dict, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'estrategiasAtivas': self.estrategias_ativas,
            'efetividadePercentual': self.efetividade_percentual,
            'mitigacaoTotal': self.mitigacao_total,
            'custoTotal': self.custo_total,
            'custoBeneficio': self.custo_beneficio,
            'pmrAjustado': self.pmr_ajustado,
            'pmpAjustado': self.pmp_ajustado,
            'cicloFinanceiroAjustado': self.ciclo_financeiro_ajustado,
            'variacaoCiclo': self.variacao_ciclo,
            'margemAjustada': self.margem_ajustada,
            'impactosMitigados': {nome: r.to_dict() for nome, r in self.impactos_mitigados.items()},
        }


@dataclass
class OptimizationResult:
    estrategias_otimas: List[str] = field(default_factory=list)
    efetividade_total: float = 0.0
    custo_total: float = 0.0
    relacao_custo_beneficio: float = 0.0
    resultados_individuais: Dict[str, StrategyResult] = field(default_factory=dict)
    todas_combinacoes: List[CombinationResult] = field(default_factory=list)
    efetividade_combinada: CombinedEffectiveness = field(default_factory=CombinedEffectiveness)
    sem_estrategias_ativas: bool = False


# Validation ------------------------------------------------------------------------------------

@dataclass
class ValidationReport:
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    status: str = 'pendente'
    pontuacao: int = 0
    problemas: List[str] = field(default_factory=list)
    alertas: List[str] = field(default_factory=list)
    sucessos: List[str] = field(default_factory=list)
    recomendacoes: List[str] = field(default_factory=list)
    dados_encontrados: Dict[str, bool] = field(default_factory=dict)
    estatisticas: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
