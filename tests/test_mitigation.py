import math

import pytest

from splitsim import mitigation
from splitsim.exceptions import MitigationError, NoStrategySelectedError, StructuralError
from splitsim.models import BaselineImpact, FlatRecord, NestedRecord


LOAN = {'cgAtivar': True, 'cgValorCaptacao': 50, 'cgTaxaJuros': 0.02, 'cgPrazo': 12, 'cgCarencia': 2}
RENEGOTIATION = {'rpAtivar': True, 'rpAumentoPrazo': 15, 'rpPercentualFornecedores': 10, 'rpCusto': 1}


# preconditions ------------------------------------------------------------------------------------

def test_nested_company_is_rejected(flat_data, baseline):
    nested = {'empresa': {'faturamento': 100000.0, 'margem': 0.2}}

    with pytest.raises(StructuralError) as exc:
        mitigation.optimal_combination(nested, LOAN, baseline)

    assert exc.value.contexto == 'dados'
    assert str(exc.value).startswith('dados: ')


def test_company_key_is_rejected_even_when_not_a_mapping(flat_data, baseline):
    with pytest.raises(StructuralError):
        mitigation.optimal_combination({**flat_data, 'empresa': 'ACME'}, LOAN, baseline)


def test_nested_record_is_rejected(flat_data, baseline):
    with pytest.raises(StructuralError):
        mitigation.optimal_combination(NestedRecord({'empresa': {}}), LOAN, baseline)


@pytest.mark.parametrize('dados', [
    None,
    {'faturamento': 100000.0},
    {'margem': 0.2},
    {'faturamento': '100000', 'margem': 0.2},
    {'faturamento': 100000.0, 'margem': 1.5},
    {'faturamento': 100000.0, 'margem': -0.1},
    {'faturamento': float('nan'), 'margem': 0.2},
])
def test_malformed_data_is_structural(dados, baseline):
    with pytest.raises(StructuralError):
        mitigation.optimal_combination(dados, LOAN, baseline)


@pytest.mark.parametrize('configuracao', [
    None,
    {'estrategias': {'capitalGiro': {'ativar': True}}},
    {'ajustePrecos': {'ativar': True}},
])
def test_nested_strategy_config_is_structural(flat_data, baseline, configuracao):
    with pytest.raises(StructuralError) as exc:
        mitigation.optimal_combination(flat_data, configuracao, baseline)

    assert exc.value.contexto == 'configuracao'


def test_no_active_strategy_raises(flat_data, baseline):
    configuracao = {prefixo + 'Ativar': False for prefixo in ('ap', 'rp', 'ar', 'cg', 'mp', 'mpag')}

    with pytest.raises(NoStrategySelectedError) as exc:
        mitigation.optimal_combination(flat_data, configuracao, baseline)

    assert isinstance(exc.value, MitigationError)
    assert exc.value.to_dict()['error_type'] == 'NoStrategySelectedError'


def test_absent_flags_raise(flat_data, baseline):
    with pytest.raises(NoStrategySelectedError):
        mitigation.optimal_combination(flat_data, {'cgValorCaptacao': 50}, baseline)


def test_simulate_strategies_returns_empty_result(flat_data, baseline):
    result = mitigation.simulate_strategies(flat_data, {'apAtivar': False}, baseline)

    assert result.sem_estrategias_ativas is True
    assert result.estrategias_otimas == []
    assert result.efetividade_total == 0
    assert result.todas_combinacoes == []


def test_simulate_strategies_still_rejects_nested_data(baseline):
    with pytest.raises(StructuralError):
        mitigation.simulate_strategies({'empresa': {}}, {'apAtivar': False}, baseline)


# normalization ------------------------------------------------------------------------------------

def test_normalize():
    dados = {'faturamento': 'abc', 'margem': 20, 'pmr': float('nan'), 'percVista': 30, 'percPrazo': 0.5}

    normalizado = mitigation.normalize(dados)

    assert normalizado['faturamento'] == 0
    assert normalizado['pmr'] == 0
    assert normalizado['margem'] == pytest.approx(0.2)
    assert normalizado['percVista'] == pytest.approx(0.3)
    assert normalizado['percPrazo'] == pytest.approx(0.7)
    # original untouched
    assert dados['percVista'] == 30


def test_normalize_sale_mix_tolerance():
    within = mitigation.normalize({'percVista': 0.3, 'percPrazo': 0.7005})
    beyond = mitigation.normalize({'percVista': 0.3, 'percPrazo': 0.702})

    assert within['percPrazo'] == 0.7005
    assert beyond['percPrazo'] == pytest.approx(0.7)


def test_normalize_clamps_percentages():
    assert mitigation.normalize({'aliquota': 250})['aliquota'] == 1.0
    assert mitigation.normalize({'aliquota': -0.5})['aliquota'] == 0.0


# strategy formulas --------------------------------------------------------------------------------

def test_working_capital_loan(flat_data):
    result = mitigation.working_capital_loan(flat_data, LOAN, 50000.0)

    assert result.efetividade_percentual == pytest.approx(50.0)
    # 2 months of interest, then 10 instalments of 2500 plus interest
    assert result.custo_estrategia == pytest.approx(1000 + 3000 * 10)
    assert result.custo_beneficio == pytest.approx(31000 / 25000)
    assert result.detalhes['taxaEfetivaAnual'] == pytest.approx(1.02 ** 12 - 1)


def test_working_capital_loan_needs_term_after_grace(flat_data):
    with pytest.raises(StructuralError):
        mitigation.working_capital_loan(flat_data, {**LOAN, 'cgPrazo': 2}, 50000.0)


def test_term_renegotiation(flat_data):
    result = mitigation.term_renegotiation(flat_data, RENEGOTIATION, 50000.0)

    # payments 100000 * 0.8 * 0.7; monthly flow 56000 / 30 * 15 * 0.1 * 0.99
    assert result.detalhes['impactoFluxoCaixa'] == pytest.approx(2772.0)
    assert result.efetividade_percentual == pytest.approx(2772.0 * 12 / 50000 * 100)
    assert result.custo_estrategia == pytest.approx(56000 * 0.1 * 0.01 * 12)
    assert result.detalhes['impactoNovoPMP'] == pytest.approx(31.5)


def test_price_adjustment_cost_only_when_volume_drops(flat_data):
    params = {'apPercentualAumento': 5, 'apElasticidade': -1.2, 'apPeriodo': 3}

    falling = mitigation.price_adjustment(flat_data, params, 50000.0)
    rising = mitigation.price_adjustment(flat_data, {**params, 'apElasticidade': 0.5}, 50000.0)

    assert falling.custo_estrategia == pytest.approx(100000 * 0.06 * 3)
    assert falling.detalhes['faturamentoAjustado'] == pytest.approx(100000 * 1.05 * 0.94)
    assert math.isinf(falling.custo_beneficio)
    assert rising.custo_estrategia == 0.0
    assert rising.efetividade_percentual > 0


def test_receivables_anticipation(flat_data):
    params = {'arPercentualAntecipacao': 50, 'arTaxaDesconto': 0.02, 'arPrazo': 30}

    result = mitigation.receivables_anticipation(flat_data, params, 50000.0)

    # 100000 * 0.7 * 0.5 advanced, 2% discount for one month
    assert result.detalhes['valorAntecipado'] == pytest.approx(35000.0)
    assert result.efetividade_percentual == pytest.approx((35000 - 700) / 50000 * 100)
    assert result.custo_estrategia == pytest.approx(700 * 12)
    assert result.detalhes['pmrAjustado'] == pytest.approx(30 * (1 - 0.35))


def test_product_mix(flat_data):
    params = {'mpPercentualAjuste': 30, 'mpFoco': 'ciclo', 'mpImpactoReceita': -5, 'mpImpactoMargem': 3.5}

    result = mitigation.product_mix(flat_data, params, 50000.0)

    fluxo = 30000 * -0.05 * 0.2 + 100000 * 0.035
    assert result.detalhes['impactoFluxoCaixa'] == pytest.approx(fluxo)
    assert result.efetividade_percentual == pytest.approx(fluxo / 50000 * 100)
    assert result.custo_estrategia == pytest.approx(3000.0)
    assert result.detalhes['impactoPMR'] == pytest.approx(5 * 0.3)


def test_payment_methods(flat_data):
    params = {
        'mpagVistaAtual': 30, 'mpagVistaNovo': 40, 'mpagDias30Novo': 40,
        'mpagDias60Novo': 20, 'mpagDias90Novo': 0, 'mpagTaxaIncentivo': 2,
    }

    result = mitigation.payment_methods(flat_data, params, 50000.0)

    # new PMR 30 * 0.4 + 60 * 0.2 = 24 days
    incentivo = 100000 * 0.1 * 0.02
    liquido = 100000 / 30 * 6 - incentivo
    assert result.detalhes['pmrNovo'] == pytest.approx(24.0)
    assert result.efetividade_percentual == pytest.approx(liquido / 50000 * 100)
    assert result.custo_estrategia == pytest.approx(incentivo * 12)


def test_payment_methods_rejects_mix_not_summing_to_100(flat_data):
    params = {'mpagVistaNovo': 50, 'mpagDias30Novo': 30}

    result = mitigation.payment_methods(flat_data, params, 50000.0)

    assert result.efetividade_percentual == 0.0
    assert 'erro' in result.detalhes


def test_zero_gap_gives_zero_effectiveness(flat_data):
    for nome, formula in mitigation.FORMULAS.items():
        params = {**LOAN, **RENEGOTIATION, 'apPercentualAumento': 5, 'apPeriodo': 3,
                  'mpagVistaNovo': 100}
        assert formula(flat_data, params, 0.0).efetividade_percentual == 0.0, nome


# combination search -------------------------------------------------------------------------------

def test_power_set_order():
    assert mitigation.power_set(['a', 'b', 'c']) == [
        ('a',), ('b',), ('a', 'b'), ('c',), ('a', 'c'), ('b', 'c'), ('a', 'b', 'c'),
    ]
    assert len(mitigation.power_set(list('abcdef'))) == 63


def test_interaction_factor():
    assert mitigation.interaction_factor('ajustePrecos', ('ajustePrecos',)) == 1.0
    assert mitigation.interaction_factor(
        'ajustePrecos', ('ajustePrecos', 'mixProdutos', 'capitalGiro')
    ) == pytest.approx(0.7)
    assert mitigation.interaction_factor(
        'antecipacaoRecebiveis', ('antecipacaoRecebiveis', 'capitalGiro', 'meiosPagamento')
    ) == pytest.approx(0.49)
    assert mitigation.interaction_factor('x', ('x', 'y')) == pytest.approx(0.9)


def test_single_strategy_keeps_raw_effectiveness(flat_data, baseline):
    result = mitigation.optimal_combination(flat_data, LOAN, baseline)

    individual = result.resultados_individuais['capitalGiro']
    assert result.estrategias_otimas == ['capitalGiro']
    assert result.efetividade_total == pytest.approx(individual.efetividade_percentual)
    assert result.custo_total == pytest.approx(31000.0)
    assert result.relacao_custo_beneficio == pytest.approx(31000.0 / 50)
    assert len(result.todas_combinacoes) == 1


def test_two_strategies_are_discounted(flat_data, baseline):
    configuracao = {**RENEGOTIATION, **LOAN, 'cgValorCaptacao': 20}

    result = mitigation.optimal_combination(flat_data, configuracao, baseline)

    individual = sum(r.efetividade_percentual for r in result.resultados_individuais.values())
    both = next(c for c in result.todas_combinacoes if len(c.combinacao) == 2)
    assert both.combinacao == ('renegociacaoPrazos', 'capitalGiro')
    assert both.efetividade_total == pytest.approx(individual * 0.95)
    assert both.efetividade_total <= individual
    assert len(result.todas_combinacoes) == 3


def test_effectiveness_is_capped(flat_data, baseline):
    configuracao = {**LOAN, 'cgValorCaptacao': 300}

    result = mitigation.optimal_combination(flat_data, configuracao, baseline)

    assert result.resultados_individuais['capitalGiro'].efetividade_percentual == pytest.approx(300.0)
    assert result.efetividade_total == 100


def test_ranking_is_sorted_and_winner_first(flat_data, baseline):
    configuracao = {**RENEGOTIATION, **LOAN, 'rpPercentualFornecedores': 60}

    result = mitigation.optimal_combination(flat_data, configuracao, baseline)

    ratios = [c.relacao_custo_beneficio for c in result.todas_combinacoes]
    assert ratios == sorted(ratios)
    assert result.estrategias_otimas == ['renegociacaoPrazos']
    assert tuple(result.estrategias_otimas) == result.todas_combinacoes[0].combinacao


def test_zero_effectiveness_ranks_last(flat_data, baseline):
    configuracao = {**LOAN, 'mpagAtivar': True, 'mpagVistaNovo': 10}

    result = mitigation.optimal_combination(flat_data, configuracao, baseline)

    assert math.isinf(result.todas_combinacoes[-1].relacao_custo_beneficio)
    assert result.todas_combinacoes[-1].combinacao == ('meiosPagamento',)


def test_equal_ratios_keep_enumeration_order(flat_data, baseline):
    # no cost on either side: every combination has ratio 0
    configuracao = {
        'apAtivar': True, 'apPercentualAumento': 5, 'apElasticidade': 0.5, 'apPeriodo': 3,
        'mpagAtivar': True, 'mpagVistaAtual': 30, 'mpagVistaNovo': 40, 'mpagDias30Novo': 40,
        'mpagDias60Novo': 20, 'mpagDias90Novo': 0, 'mpagTaxaIncentivo': 0,
    }

    result = mitigation.optimal_combination(flat_data, configuracao, baseline)

    assert [c.relacao_custo_beneficio for c in result.todas_combinacoes] == [0.0, 0.0, 0.0]
    assert [c.combinacao for c in result.todas_combinacoes] == [
        ('ajustePrecos',), ('meiosPagamento',), ('ajustePrecos', 'meiosPagamento'),
    ]
    assert result.estrategias_otimas == ['ajustePrecos']


def test_all_infinite_ratios_pick_first_combination(flat_data):
    result = mitigation.optimal_combination(
        flat_data, {**RENEGOTIATION, **LOAN}, {'diferencaCapitalGiro': 0.0}
    )

    assert all(math.isinf(c.relacao_custo_beneficio) for c in result.todas_combinacoes)
    assert result.todas_combinacoes[0].combinacao == ('renegociacaoPrazos',)
    assert result.estrategias_otimas == ['renegociacaoPrazos']
    assert math.isinf(result.relacao_custo_beneficio)


def test_optimizer_is_deterministic(flat_data, baseline):
    configuracao = {
        **RENEGOTIATION, **LOAN,
        'apAtivar': True, 'apPercentualAumento': 5, 'apElasticidade': -0.5, 'apPeriodo': 3,
        'arAtivar': True, 'arPercentualAntecipacao': 40, 'arTaxaDesconto': 0.018, 'arPrazo': 30,
    }

    first = mitigation.optimal_combination(flat_data, configuracao, baseline)
    second = mitigation.optimal_combination(dict(flat_data), dict(configuracao), dict(baseline))

    assert first.estrategias_otimas == second.estrategias_otimas
    assert first.todas_combinacoes == second.todas_combinacoes
    assert len(first.todas_combinacoes) == 15
    assert all(c.efetividade_total <= 100 for c in first.todas_combinacoes)


def test_accepts_flat_record_and_baseline_object(flat_data):
    result = mitigation.optimal_combination(
        FlatRecord(flat_data), LOAN, BaselineImpact(diferenca_capital_giro=-50000.0)
    )

    assert result.efetividade_total == pytest.approx(50.0)


# combined effect ----------------------------------------------------------------------------------

ANTICIPATION = {'arAtivar': True, 'arPercentualAntecipacao': 50, 'arTaxaDesconto': 0.02, 'arPrazo': 30}


def test_combined_effectiveness_applies_overlap_factors(flat_data, baseline):
    result = mitigation.optimal_combination(flat_data, {**RENEGOTIATION, **ANTICIPATION, **LOAN}, baseline)

    combinada = result.efetividade_combinada

    # cash flows 2772 + 34300 + 25000, costs 672 + 8400 + 31000
    assert combinada.estrategias_ativas == 3
    assert combinada.mitigacao_total == pytest.approx(62072.0)
    assert combinada.custo_total == pytest.approx(40072.0)
    assert combinada.efetividade_percentual == pytest.approx(62072.0 / 50000 * 100)
    assert combinada.custo_beneficio == pytest.approx(40072.0 / 62072.0)
    # PMR -10.5 at 80%, PMP +1.5 at 90%, margin -0.5pp at 85%
    assert combinada.pmr_ajustado == pytest.approx(21.6)
    assert combinada.pmp_ajustado == pytest.approx(31.35)
    assert combinada.ciclo_financeiro_ajustado == pytest.approx(20.25)
    assert combinada.variacao_ciclo == pytest.approx(-9.75)
    assert combinada.margem_ajustada == pytest.approx(0.2 - 0.005 * 0.85)
    assert set(combinada.impactos_mitigados) == {'renegociacaoPrazos', 'antecipacaoRecebiveis', 'capitalGiro'}


def test_combined_effectiveness_sums_pmr_shifts(flat_data, baseline):
    params = {
        'mpPercentualAjuste': 30, 'mpFoco': 'ciclo', 'mpImpactoReceita': -5, 'mpImpactoMargem': 3.5,
        'mpagVistaAtual': 30, 'mpagVistaNovo': 40, 'mpagDias30Novo': 40,
        'mpagDias60Novo': 20, 'mpagDias90Novo': 0, 'mpagTaxaIncentivo': 2,
    }
    resultados = {
        'mixProdutos': mitigation.product_mix(flat_data, params, 50000.0),
        'meiosPagamento': mitigation.payment_methods(flat_data, params, 50000.0),
    }

    combinada = mitigation.combined_effectiveness(flat_data, resultados, baseline)

    # (-1.5 - 6) days at 80%
    assert combinada.pmr_ajustado == pytest.approx(24.0)
    assert combinada.pmp_ajustado == pytest.approx(30.0)
    assert combinada.margem_ajustada == pytest.approx(0.2 + 0.035 * 0.85)


def test_combined_effectiveness_without_strategies(flat_data, baseline):
    combinada = mitigation.combined_effectiveness(flat_data, {}, baseline)

    assert combinada.efetividade_percentual == 0
    assert combinada.mitigacao_total == 0
    assert combinada.custo_total == 0
    assert combinada.custo_beneficio == 0
    assert combinada.impactos_mitigados == {}
    assert combinada.pmr_ajustado is None

    empty = mitigation.simulate_strategies(flat_data, {}, baseline)
    assert empty.efetividade_combinada.efetividade_percentual == 0
    assert empty.efetividade_combinada.to_dict()['impactosMitigados'] == {}


# caller paths -------------------------------------------------------------------------------------

def test_calculate_mitigation_threads_baseline(flat_data, baseline):
    calls = []

    def model(dados, ano, parametros_setoriais):
        calls.append((dados, ano, parametros_setoriais))
        return baseline

    impacto, result = mitigation.calculate_mitigation(flat_data, LOAN, model, ano=2027)

    assert calls == [(flat_data, 2027, None)]
    assert impacto.diferenca_capital_giro == -50000.0
    assert impacto.necessidade_capital_giro == 50000.0
    assert result.estrategias_otimas == ['capitalGiro']
    assert result.efetividade_combinada.mitigacao_total == pytest.approx(25000.0)


def test_calculate_mitigation_without_strategies(flat_data, baseline):
    impacto, result = mitigation.calculate_mitigation(flat_data, {}, lambda *args: baseline)

    assert impacto.percentual_impacto == -12.5
    assert result.sem_estrategias_ativas is True


def test_comparison(flat_data, baseline):
    result = mitigation.optimal_combination(flat_data, LOAN, baseline)

    comparacao = mitigation.comparison(baseline, result)

    assert comparacao['mitigacaoTotal'] == pytest.approx(25000.0)
    assert comparacao['comMitigacao']['diferencaCapitalGiro'] == pytest.approx(-25000.0)
    assert comparacao['comMitigacao']['percentualImpacto'] == pytest.approx(-6.25)


def test_comparison_uses_all_active_strategies(flat_data, baseline):
    result = mitigation.optimal_combination(flat_data, {**RENEGOTIATION, **ANTICIPATION, **LOAN}, baseline)

    comparacao = mitigation.comparison(baseline, result)

    assert comparacao['mitigacaoTotal'] == pytest.approx(62072.0)
    assert comparacao['comMitigacao']['diferencaCapitalGiro'] == pytest.approx(12072.0)
    assert comparacao['comMitigacao']['percentualImpacto'] == pytest.approx(-12.5 * (1 - 1.24144))


def test_frames(flat_data, baseline):
    result = mitigation.optimal_combination(flat_data, {**RENEGOTIATION, **LOAN}, baseline)

    combinacoes = mitigation.combinations_frame(result)
    estrategias = mitigation.strategies_frame(result)

    assert len(combinacoes) == 3
    assert combinacoes['combinacao'].iloc[-1] in {'capitalGiro', 'renegociacaoPrazos + capitalGiro'}
    assert list(estrategias['nome']) == ['renegociacaoPrazos', 'capitalGiro']
    assert mitigation.strategies_frame(mitigation.simulate_strategies(flat_data, {}, baseline)).empty
