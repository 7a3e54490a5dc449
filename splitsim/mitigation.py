"""
Split-payment mitigation optimizer.

Each active strategy is evaluated against the working-capital gap of a
baseline simulation, then every non-empty combination of active strategies is
scored with an interaction discount and ranked by cost per point of
effectiveness. The joint effect of all active strategies is measured
separately with overlap factors (combined_effectiveness). Inputs must be
flat records; nested simulator data has to go through
processors.flatten_simulation_data() first.
"""

import logging
import math
from collections.abc import Mapping

import numpy as np
import pandas as pd

from . import config
from .exceptions import NoStrategySelectedError, StructuralError
from .models import (
    BaselineImpact,
    CombinationResult,
    CombinedEffectiveness,
    FlatRecord,
    NestedRecord,
    OptimizationResult,
    StrategyResult,
    as_record,
)

logger = logging.getLogger(__name__)


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _num(params, key):
    """Numeric parameter, 0 when absent or not a number."""
    value = params.get(key)
    if not _is_number(value) or math.isnan(value):
        return 0.0
    return float(value)


def _ratio(numerator, denominator):
    return numerator / denominator if denominator else math.inf


def _effectiveness(mitigacao, necessidade):
    return mitigacao / necessidade * 100 if necessidade > 0 else 0.0


# Input checks ----------------------------------------------------------------------------------

def _unwrap(data, contexto):
    if data is None:
        raise StructuralError('Dados não fornecidos', contexto)
    if not isinstance(data, (Mapping, FlatRecord, NestedRecord)):
        raise StructuralError(f"Esperado um mapeamento, recebido {type(data).__name__}", contexto)

    record = as_record(data)
    if isinstance(record, NestedRecord):
        raise StructuralError(
            'Formato aninhado detectado. Converta com flatten_simulation_data() antes de otimizar',
            contexto,
        )
    return dict(record.data)


def validate_flat_data(dados, contexto='dados'):
    """
    Check that simulation data is a flat record with usable revenue and margin.

    Raises:
        StructuralError: data is missing, nested, lacks faturamento/margem,
            has a non-numeric faturamento or a margem outside [0, 1]
    """
    dados = _unwrap(dados, contexto)
    if 'empresa' in dados:
        raise StructuralError('Formato aninhado detectado (empresa)', contexto)

    for campo in config.CAMPOS_ESSENCIAIS:
        if campo not in dados:
            raise StructuralError(f"Campo obrigatório ausente: {campo}", contexto)

    faturamento = dados['faturamento']
    if not _is_number(faturamento) or math.isnan(faturamento):
        raise StructuralError(
            f"Faturamento deve ser numérico, recebido: {type(faturamento).__name__}", contexto
        )

    margem = dados['margem']
    if not _is_number(margem) or math.isnan(margem) or not 0 <= margem <= 1:
        raise StructuralError(f"Margem operacional fora do intervalo válido (0-1): {margem}", contexto)

    return dados


def _check_strategy_shape(configuracao, contexto):
    configuracao = _unwrap(configuracao, contexto)
    if 'estrategias' in configuracao or 'ajustePrecos' in configuracao:
        raise StructuralError('Formato de estratégias aninhado detectado', contexto)
    return configuracao


def active_strategies(configuracao):
    """Names of the strategies whose activation flag is truthy, in enumeration order."""
    return [
        nome for nome, prefixo in config.ESTRATEGIAS.items()
        if configuracao.get(prefixo + 'Ativar')
    ]


def validate_strategy_config(configuracao, contexto='configuracao'):
    """
    Raises:
        StructuralError: configuration is missing or nested
        NoStrategySelectedError: no activation flag is set
    """
    configuracao = _check_strategy_shape(configuracao, contexto)
    if not active_strategies(configuracao):
        raise NoStrategySelectedError('Nenhuma estratégia de mitigação ativa nas configurações', contexto)
    return configuracao


def normalize(dados):
    """
    Copy of flat data ready for the formulas.

    Non-numeric or NaN numeric fields become 0, percentages above 1 are read as
    0-100 and scaled down, then clamped to [0, 1]. percPrazo is rebuilt as
    1 - percVista when the pair does not add up to 1.
    """
    normalizado = dict(dados)

    for campo in config.CAMPOS_NUMERICOS:
        if campo in normalizado:
            valor = normalizado[campo]
            if not _is_number(valor) or np.isnan(valor):
                normalizado[campo] = 0

    for campo in config.CAMPOS_PERCENTUAIS:
        if campo in normalizado:
            valor = normalizado[campo]
            if valor > 1:
                valor = valor / 100
            normalizado[campo] = float(np.clip(valor, 0, 1))

    if 'percVista' in normalizado and 'percPrazo' in normalizado:
        if abs(normalizado['percVista'] + normalizado['percPrazo'] - 1) > config.TOLERANCIA_PERCENTUAL:
            normalizado['percPrazo'] = 1 - normalizado['percVista']

    return normalizado


# Strategy formulas -----------------------------------------------------------------------------

def price_adjustment(dados, params, necessidade):
    """Extra cash from a price increase, net of the elasticity effect on volume."""
    faturamento = _num(dados, 'faturamento')
    margem = _num(dados, 'margem')
    aumento = _num(params, 'apPercentualAumento')
    elasticidade = _num(params, 'apElasticidade')
    periodo = _num(params, 'apPeriodo')

    impacto_vendas = aumento * elasticidade / 100
    ajustado = faturamento * (1 + aumento / 100) * (1 + impacto_vendas)
    fluxo = (ajustado - faturamento) * margem
    mitigacao = fluxo * periodo

    # lost revenue only counts when volume drops
    custo = abs(faturamento * impacto_vendas) * periodo if impacto_vendas < 0 else 0.0

    return StrategyResult(
        nome='ajustePrecos',
        efetividade_percentual=_effectiveness(mitigacao, necessidade),
        custo_estrategia=custo,
        custo_beneficio=custo / mitigacao if mitigacao > 0 else math.inf,
        detalhes={
            'percentualAumento': aumento,
            'elasticidade': elasticidade,
            'impactoVendasPercentual': impacto_vendas,
            'faturamentoOriginal': faturamento,
            'faturamentoAjustado': ajustado,
            'fluxoCaixaAdicional': fluxo,
            'mitigacaoMensal': fluxo,
            'mitigacaoTotal': mitigacao,
            'periodo': periodo,
        },
    )


def term_renegotiation(dados, params, necessidade):
    """Longer supplier terms on the share of costs paid to suppliers."""
    faturamento = _num(dados, 'faturamento')
    margem = _num(dados, 'margem')
    dias = _num(params, 'rpAumentoPrazo')
    fornecedores = _num(params, 'rpPercentualFornecedores') / 100
    custo_contrapartida = _num(params, 'rpCusto') / 100

    pagamentos = faturamento * (1 - margem) * config.PARTICIPACAO_FORNECEDORES_CUSTO
    fluxo = pagamentos / 30 * dias * fornecedores * (1 - custo_contrapartida)
    mitigacao = fluxo * config.DURACAO_EFEITO_MESES
    custo_total = pagamentos * fornecedores * custo_contrapartida * config.DURACAO_EFEITO_MESES

    pmr, pme, pmp = _num(dados, 'pmr'), _num(dados, 'pme'), _num(dados, 'pmp')
    novo_pmp = pmp + dias * fornecedores
    ciclo = pmr + pme - novo_pmp

    return StrategyResult(
        nome='renegociacaoPrazos',
        efetividade_percentual=_effectiveness(mitigacao, necessidade),
        custo_estrategia=custo_total,
        custo_beneficio=_ratio(custo_total, mitigacao) if custo_total > 0 else 0.0,
        detalhes={
            'aumentoPrazo': dias,
            'percentualFornecedores': fornecedores * 100,
            'contrapartidas': params.get('rpContrapartidas', ''),
            'pagamentosFornecedores': pagamentos,
            'impactoFluxoCaixa': fluxo,
            'mitigacaoTotal': mitigacao,
            'custoTotal': custo_total,
            'impactoNovoPMP': novo_pmp,
            'impactoCicloFinanceiro': ciclo,
            'diferencaCiclo': (pmr + pme - pmp) - ciclo,
        },
    )


def receivables_anticipation(dados, params, necessidade):
    """Discounting part of the term sales. The rate is a monthly fraction."""
    faturamento = _num(dados, 'faturamento')
    perc_prazo = _num(dados, 'percPrazo')
    antecipacao = _num(params, 'arPercentualAntecipacao') / 100
    taxa = _num(params, 'arTaxaDesconto')
    prazo = _num(params, 'arPrazo')

    antecipado = faturamento * perc_prazo * antecipacao
    custo = antecipado * taxa * (prazo / 30)
    fluxo = antecipado - custo
    total_antecipado = antecipado * config.DURACAO_EFEITO_MESES
    custo_total = custo * config.DURACAO_EFEITO_MESES

    pmr = _num(dados, 'pmr')
    pmr_ajustado = pmr * (1 - antecipacao * perc_prazo)

    return StrategyResult(
        nome='antecipacaoRecebiveis',
        efetividade_percentual=_effectiveness(fluxo, necessidade),
        custo_estrategia=custo_total,
        custo_beneficio=_ratio(custo_total, total_antecipado),
        detalhes={
            'valorAntecipado': antecipado,
            'custoAntecipacao': custo,
            'impactoFluxoCaixa': fluxo,
            'mitigacaoTotal': fluxo,
            'valorTotalAntecipado': total_antecipado,
            'custoTotalAntecipacao': custo_total,
            'pmrAjustado': pmr_ajustado,
            'reducaoPMR': pmr - pmr_ajustado,
        },
    )


def working_capital_loan(dados, params, necessidade):
    """Borrowing a share of the gap. The interest rate is a monthly fraction."""
    captacao = _num(params, 'cgValorCaptacao') / 100
    taxa = _num(params, 'cgTaxaJuros')
    prazo = _num(params, 'cgPrazo')
    carencia = _num(params, 'cgCarencia')

    if prazo <= carencia:
        raise StructuralError(
            f"Prazo de pagamento ({prazo:g}) deve ser maior que a carência ({carencia:g})",
            'configuracao',
        )

    financiado = necessidade * captacao
    juros = financiado * taxa
    parcela = financiado / (prazo - carencia)
    custo_carencia = juros * carencia
    custo_apos = (parcela + juros) * (prazo - carencia)
    custo_total = custo_carencia + custo_apos

    faturamento = _num(dados, 'faturamento')

    return StrategyResult(
        nome='capitalGiro',
        efetividade_percentual=_effectiveness(financiado, necessidade),
        custo_estrategia=custo_total,
        custo_beneficio=_ratio(custo_total, financiado),
        detalhes={
            'valorFinanciamento': financiado,
            'mitigacaoTotal': financiado,
            'custoMensalJuros': juros,
            'valorParcela': parcela,
            'custoCarencia': custo_carencia,
            'custoAposCarencia': custo_apos,
            'custoTotalFinanciamento': custo_total,
            'taxaEfetivaAnual': (1 + taxa) ** 12 - 1,
            'impactoMargemPP': juros / faturamento * 100 if faturamento else 0.0,
        },
    )


def product_mix(dados, params, necessidade):
    """Shifting part of revenue towards products with better revenue or margin."""
    faturamento = _num(dados, 'faturamento')
    margem = _num(dados, 'margem')
    pmr, pme, pmp = _num(dados, 'pmr'), _num(dados, 'pme'), _num(dados, 'pmp')
    ajuste = _num(params, 'mpPercentualAjuste') / 100
    impacto_receita = _num(params, 'mpImpactoReceita') / 100
    impacto_margem = _num(params, 'mpImpactoMargem') / 100
    foco = params.get('mpFoco') or ''

    ajustado = faturamento * ajuste
    variacao = ajustado * impacto_receita
    fluxo = variacao * margem + faturamento * impacto_margem
    impacto_total = fluxo * config.DURACAO_EFEITO_MESES
    custo = ajustado * config.CUSTO_IMPLEMENTACAO_MIX

    impacto_pmr = 0.0
    if foco == 'ciclo':
        impacto_pmr = min(pmr * 0.2, 5) * ajuste
    elif foco == 'vista':
        impacto_pmr = pmr * ajuste * 0.5

    return StrategyResult(
        nome='mixProdutos',
        efetividade_percentual=_effectiveness(fluxo, necessidade),
        custo_estrategia=custo,
        custo_beneficio=_ratio(custo, impacto_total),
        detalhes={
            'focoAjuste': foco,
            'valorAjustado': ajustado,
            'variacaoReceita': variacao,
            'novaReceita': faturamento + variacao,
            'impactoMargem': impacto_margem,
            'margemAjustada': margem + impacto_margem,
            'impactoFluxoCaixa': fluxo,
            'mitigacaoTotal': fluxo,
            'impactoTotal': impacto_total,
            'custoImplementacao': custo,
            'impactoPMR': impacto_pmr,
            'pmrAjustado': pmr - impacto_pmr,
            'cicloFinanceiroAjustado': pmr - impacto_pmr + pme - pmp,
        },
    )


def payment_methods(dados, params, necessidade):
    """
    Moving customers to shorter payment terms with a cash-payment incentive.

    The new mix (cash, 30, 60 and 90 days) is given in percent and must add
    up to 100; otherwise the strategy is reported with zero effectiveness.
    """
    faturamento = _num(dados, 'faturamento')
    pmr = _num(dados, 'pmr')
    vista_atual = _num(params, 'mpagVistaAtual') / 100
    vista = _num(params, 'mpagVistaNovo') / 100
    d30 = _num(params, 'mpagDias30Novo') / 100
    d60 = _num(params, 'mpagDias60Novo') / 100
    d90 = _num(params, 'mpagDias90Novo') / 100
    incentivo_taxa = _num(params, 'mpagTaxaIncentivo') / 100

    if abs(vista + d30 + d60 + d90 - 1) > config.TOLERANCIA_DISTRIBUICAO:
        return StrategyResult(
            nome='meiosPagamento',
            efetividade_percentual=0.0,
            custo_estrategia=0.0,
            custo_beneficio=math.inf,
            detalhes={
                'erro': 'A soma dos percentuais da nova distribuição deve ser 100%.',
                'mitigacaoTotal': 0.0,
            },
        )

    pmr_novo = 30 * d30 + 60 * d60 + 90 * d90
    variacao_pmr = pmr_novo - pmr
    incentivo = faturamento * (vista - vista_atual) * incentivo_taxa
    impacto_pmr = faturamento / 30 * (-variacao_pmr)
    liquido = impacto_pmr - incentivo
    custo_total = incentivo * config.DURACAO_EFEITO_MESES

    return StrategyResult(
        nome='meiosPagamento',
        efetividade_percentual=_effectiveness(liquido, necessidade),
        custo_estrategia=custo_total,
        custo_beneficio=incentivo / abs(impacto_pmr) if variacao_pmr < 0 else math.inf,
        detalhes={
            'pmrAtual': pmr,
            'pmrNovo': pmr_novo,
            'variaPMR': variacao_pmr,
            'valorIncentivoMensal': incentivo,
            'impactoPMR': impacto_pmr,
            'impactoLiquido': liquido,
            'mitigacaoTotal': liquido,
            'impactoTotal': liquido * config.DURACAO_EFEITO_MESES,
            'custoTotalIncentivo': custo_total,
        },
    )


FORMULAS = {
    'ajustePrecos': price_adjustment,
    'renegociacaoPrazos': term_renegotiation,
    'antecipacaoRecebiveis': receivables_anticipation,
    'capitalGiro': working_capital_loan,
    'mixProdutos': product_mix,
    'meiosPagamento': payment_methods,
}


# Combination search ----------------------------------------------------------------------------

def power_set(elementos):
    """
    Every non-empty subset, built by appending each element to all previous subsets.

    Example:
        power_set(['a', 'b']) -> [('a',), ('b',), ('a', 'b')]
    """
    subsets = [()]
    for elemento in elementos:
        subsets += [subset + (elemento,) for subset in subsets]
    return subsets[1:]


def interaction_factor(estrategia, combinacao):
    """Product of the pairwise factors of a strategy against every other member."""
    outros = [
        config.MATRIZ_INTERACAO.get(estrategia, {}).get(outra, config.FATOR_INTERACAO_PADRAO)
        for outra in combinacao if outra != estrategia
    ]
    if not outros:
        return 1.0
    return float(np.prod(outros))


def score_combination(combinacao, resultados):
    efetividade = sum(
        resultados[nome].efetividade_percentual * interaction_factor(nome, combinacao)
        for nome in combinacao
    )
    efetividade = min(config.EFETIVIDADE_MAXIMA, efetividade)
    custo = sum(resultados[nome].custo_estrategia for nome in combinacao)
    return CombinationResult(
        combinacao=tuple(combinacao),
        efetividade_total=efetividade,
        custo_total=custo,
        relacao_custo_beneficio=custo / efetividade if efetividade > 0 else math.inf,
    )


def _cycle_shifts(nome, resultado, dados):
    """(PMR, PMP, margin) shifts one strategy contributes to the combined effect."""
    detalhes = resultado.detalhes
    pmr, pmp, margem = [], [], []

    if nome == 'renegociacaoPrazos':
        pmp.append(detalhes.get('impactoNovoPMP', 0.0) - _num(dados, 'pmp'))
    elif nome == 'antecipacaoRecebiveis':
        pmr.append(-detalhes.get('reducaoPMR', 0.0))
    elif nome == 'capitalGiro':
        margem.append(-detalhes.get('impactoMargemPP', 0.0) / 100)
    elif nome == 'mixProdutos':
        pmr.append(-detalhes.get('impactoPMR', 0.0))
        margem.append(detalhes.get('impactoMargem', 0.0))
    elif nome == 'meiosPagamento':
        pmr.append(detalhes.get('variaPMR', 0.0))

    return pmr, pmp, margem


def combined_effectiveness(dados, resultados, impacto_base):
    """
    Effect of applying every active strategy together.

    Cash flows and costs are summed as they are. PMR, PMP and margin shifts
    are summed and then scaled by the SOBREPOSICAO_* overlap factors.

    Args:
        dados: flat simulation record
        resultados: strategy name -> StrategyResult, one per active strategy
        impacto_base: BaselineImpact or the mapping returned by the tax model

    Returns:
        CombinedEffectiveness; all zeros when resultados is empty
    """
    if not resultados:
        return CombinedEffectiveness()

    dados = normalize(_unwrap(dados, 'dados'))
    baseline = BaselineImpact.from_mapping(impacto_base)

    fluxo = 0.0
    custo = 0.0
    pmr_shifts, pmp_shifts, margem_shifts = [], [], []
    for nome, resultado in resultados.items():
        fluxo += resultado.detalhes.get(config.CAMPO_FLUXO_COMBINADO[nome], 0.0)
        custo += resultado.custo_estrategia
        pmr, pmp, margem = _cycle_shifts(nome, resultado, dados)
        pmr_shifts += pmr
        pmp_shifts += pmp
        margem_shifts += margem

    pmr, pme, pmp = _num(dados, 'pmr'), _num(dados, 'pme'), _num(dados, 'pmp')
    pmr_ajustado = pmr + sum(pmr_shifts) * config.SOBREPOSICAO_PMR
    pmp_ajustado = pmp + sum(pmp_shifts) * config.SOBREPOSICAO_PMP
    ciclo = pmr_ajustado + pme - pmp_ajustado

    return CombinedEffectiveness(
        estrategias_ativas=len(resultados),
        efetividade_percentual=_effectiveness(fluxo, baseline.necessidade_capital_giro),
        mitigacao_total=fluxo,
        custo_total=custo,
        custo_beneficio=_ratio(custo, fluxo) if custo > 0 else 0.0,
        pmr_ajustado=pmr_ajustado,
        pmp_ajustado=pmp_ajustado,
        ciclo_financeiro_ajustado=ciclo,
        variacao_ciclo=ciclo - (pmr + pme - pmp),
        margem_ajustada=_num(dados, 'margem') + sum(margem_shifts) * config.SOBREPOSICAO_MARGEM,
        impactos_mitigados=dict(resultados),
    )


def optimal_combination(dados, configuracao, impacto_base):
    """
    Cheapest combination of active strategies per point of effectiveness.

    Args:
        dados: flat simulation record (FlatRecord or plain mapping)
        configuracao: flat strategy configuration (apAtivar, apPercentualAumento, ...)
        impacto_base: BaselineImpact or the mapping returned by the tax model

    Returns:
        OptimizationResult with the winner first, the full ranking in
        todas_combinacoes and the all-strategies effect in efetividade_combinada

    Raises:
        StructuralError: nested or malformed input
        NoStrategySelectedError: no strategy is active
    """
    dados = normalize(validate_flat_data(dados, 'dados'))
    configuracao = validate_strategy_config(configuracao, 'configuracao')
    baseline = BaselineImpact.from_mapping(impacto_base)
    necessidade = baseline.necessidade_capital_giro

    ativas = active_strategies(configuracao)
    resultados = {nome: FORMULAS[nome](dados, configuracao, necessidade) for nome in ativas}

    # sorted() is stable, so ties keep enumeration order
    ranking = sorted(
        (score_combination(combinacao, resultados) for combinacao in power_set(ativas)),
        key=lambda c: c.relacao_custo_beneficio,
    )
    melhor = ranking[0]

    logger.info(
        "Optimized %d strategies over %d combinations: %s (%.2f%%)",
        len(ativas), len(ranking), ', '.join(melhor.combinacao), melhor.efetividade_total,
    )
    return OptimizationResult(
        estrategias_otimas=list(melhor.combinacao),
        efetividade_total=melhor.efetividade_total,
        custo_total=melhor.custo_total,
        relacao_custo_beneficio=melhor.relacao_custo_beneficio,
        resultados_individuais=resultados,
        todas_combinacoes=ranking,
        efetividade_combinada=combined_effectiveness(dados, resultados, baseline),
    )


def simulate_strategies(dados, configuracao, impacto_base):
    """
    Same as optimal_combination(), except that a configuration with no active
    strategy gives an empty result flagged sem_estrategias_ativas instead of
    raising. Structural errors still propagate.
    """
    validate_flat_data(dados, 'dados')
    configuracao = _check_strategy_shape(configuracao, 'configuracao')
    if not active_strategies(configuracao):
        logger.info("No active mitigation strategy; returning empty result")
        return OptimizationResult(sem_estrategias_ativas=True)
    return optimal_combination(dados, configuracao, impacto_base)


def comparison(impacto_base, resultado):
    """
    Working-capital figures without and with every active strategy applied.

    Uses the combined effect (resultado.efetividade_combinada), not the
    optimal subset. diferencaCapitalGiro follows the tax model's convention:
    negative means capital lost to split payment, so the mitigated cash is
    added to it and moves the gap towards zero.
    """
    baseline = BaselineImpact.from_mapping(impacto_base)
    combinada = resultado.efetividade_combinada
    fator = combinada.efetividade_percentual / 100
    mitigacao = combinada.mitigacao_total

    return {
        'semMitigacao': {
            'diferencaCapitalGiro': baseline.diferenca_capital_giro,
            'percentualImpacto': baseline.percentual_impacto,
            'necessidadeAdicional': baseline.necessidade_adicional_capital_giro,
        },
        'comMitigacao': {
            'diferencaCapitalGiro': baseline.diferenca_capital_giro + mitigacao,
            'percentualImpacto': baseline.percentual_impacto * (1 - fator),
            'necessidadeAdicional': baseline.necessidade_adicional_capital_giro * (1 - fator),
        },
        'mitigacaoTotal': mitigacao,
    }


def calculate_mitigation(dados, configuracao, calculate_working_capital_impact, ano=2026,
                         parametros_setoriais=None):
    """
    Run the external working-capital model for a year, then the optimizer.

    The baseline is returned to the caller instead of being kept between calls.

    Args:
        dados: flat simulation record
        configuracao: flat strategy configuration
        calculate_working_capital_impact: callable(dados, ano, parametros_setoriais) -> mapping
        ano: simulation year
        parametros_setoriais: optional sector parameters for the model

    Returns:
        (BaselineImpact, OptimizationResult); the result's efetividade_combinada
        holds the effect of all active strategies together
    """
    plano = dict(validate_flat_data(dados, 'dados'))
    baseline = BaselineImpact.from_mapping(
        calculate_working_capital_impact(plano, ano, parametros_setoriais)
    )
    logger.debug("Baseline for %s: gap=%.2f", ano, baseline.diferenca_capital_giro)
    return baseline, simulate_strategies(FlatRecord(plano), configuracao, baseline)


# Tables ----------------------------------------------------------------------------------------

def strategies_frame(resultado):
    """Per-strategy results as a DataFrame, one row per active strategy."""
    rows = [r.to_dict() for r in resultado.resultados_individuais.values()]
    columns = ['nome', 'efetividadePercentual', 'custoEstrategia', 'custoBeneficio']
    if not rows:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(rows)[columns]


def combinations_frame(resultado):
    """Ranked combinations as a DataFrame, best first."""
    columns = ['combinacao', 'tamanho', 'efetividadeTotal', 'custoTotal', 'relacaoCustoBeneficio']
    rows = [
        {
            'combinacao': ' + '.join(c.combinacao),
            'tamanho': len(c.combinacao),
            'efetividadeTotal': c.efetividade_total,
            'custoTotal': c.custo_total,
            'relacaoCustoBeneficio': c.relacao_custo_beneficio,
        }
        for c in resultado.todas_combinacoes
    ]
    return pd.DataFrame(rows, columns=columns)
