import logging

import matplotlib.pyplot as plt
import pandas as pd
import streamlit as st

from splitsim import loaders, mitigation, processors, validation
from splitsim.exceptions import MitigationError
from splitsim.models import DocumentKind
from splitsim.utils import format_cnpj

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

pd.set_option('display.max_columns', None)
pd.set_option('future.no_silent_downcasting', True)

# Configure Streamlit page
st.set_page_config(page_title="Simulador Split Payment", page_icon=":material/payments:", layout="wide")


# --------------------------------------------------------------------------------------------------------------------
# TABELAS, DOWNLOADS E GRAFICOS
# --------------------------------------------------------------------------------------------------------------------

@st.cache_data
def convert_df_to_csv(df):
    """CSV in the Excel-friendly pt-BR dialect, cached between reruns."""
    return df.to_csv(index=False, sep=';', decimal=',').encode('utf-8-sig')


def display_table_with_download(df, filename, max_rows=1000):
    """Show at most max_rows rows; the download always carries the full frame."""
    if len(df) > max_rows:
        st.warning(f"⚠️ Mostrando as primeiras {max_rows:,} de {len(df):,} linhas. O CSV contém todas.")
        st.dataframe(df.head(max_rows), hide_index=True)
    else:
        st.dataframe(df, hide_index=True)

    st.download_button(
        "📥 Baixar CSV", convert_df_to_csv(df), filename, "text/csv", key=f"download_{filename}"
    )


def bar_chart(labels, values, title, fmt='%.2f', ylabel='Valor (R$)'):
    fig, ax = plt.subplots()
    bars = ax.bar(labels, values, color="#2099d2")
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    ax.tick_params(left=False, bottom=False)
    for side in ('top', 'right', 'left'):
        ax.spines[side].set_visible(False)
    ax.bar_label(bars, fmt=fmt)
    plt.setp(ax.get_xticklabels(), rotation=30, ha='right')
    return fig


# ----------------------------------------------------------------
# Streamlit
# Setup Session State
# ----------------------------------------------------------------

if "processing_done" not in st.session_state:
    st.session_state["processing_done"] = False


# ----------------------------------------------------------------
# Sidebar Navigation
# ----------------------------------------------------------------

with st.sidebar:
    st.header("Simulador Split Payment", divider='gray')

    selected_area = st.radio(
        "Selecione a Seção:",
        [
            "Área 1: Importar Arquivos SPED",
            "Área 2: Registros SPED",
            "Área 3: Validação da Importação",
            "Área 4: Estratégias de Mitigação",
        ]
    )


# >>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>
# Área 1: Importação

if selected_area == "Área 1: Importar Arquivos SPED":

    st.header(":material/database_upload: Importar Arquivos SPED", divider='red')

    col1, col2 = st.columns([3, 2])

    with col2:
        st.markdown("### :material/info: Informações")
        st.info("""
        **Arquivos aceitos:**
        - SPED Fiscal (ICMS/IPI)
        - SPED Contribuições (PIS/COFINS)

        Um arquivo de cada tipo. Qualquer um deles pode faltar; os dados
        disponíveis são usados e o restante recebe valores padrão.
        """)

    with col1:
        with st.container():
            st.markdown("### :material/inventory_2: SPED Fiscal (ICMS/IPI)")
            uploaded_fiscal_file = st.file_uploader(
                label="Selecione o arquivo SPED Fiscal",
                type="txt",
                help="Arquivo SPED Fiscal (ICMS/IPI) em formato .txt",
                key="fiscal_uploader"
            )

        st.markdown('###')

        with st.container():
            st.markdown("### :material/receipt_long: SPED Contribuições (PIS/COFINS)")
            uploaded_contrib_file = st.file_uploader(
                label="Selecione o arquivo SPED Contribuições",
                type="txt",
                help="Arquivo SPED Contribuições (PIS/COFINS) em formato .txt",
                key="contrib_uploader"
            )

        st.markdown('###')

        if st.button("🚀 Processar Arquivos", type='primary', use_container_width=True):

            if uploaded_fiscal_file is None and uploaded_contrib_file is None:
                st.warning("É necessário selecionar ao menos um arquivo SPED.")
                st.stop()

            with st.spinner("Processando arquivos…"):
                fiscal_doc, contrib_doc = loaders.load_sped_pair(uploaded_fiscal_file, uploaded_contrib_file)

            if uploaded_fiscal_file is not None and fiscal_doc is None:
                st.warning("Não foi possível ler o SPED Fiscal; seguindo sem ele.")
            if uploaded_contrib_file is not None and contrib_doc is None:
                st.warning("Não foi possível ler o SPED Contribuições; seguindo sem ele.")

            dados = processors.import_sped_pair(fiscal_doc, contrib_doc)
            report = validation.validate(processors.validation_payload(dados, fiscal_doc))

            st.session_state["fiscal_doc"] = fiscal_doc
            st.session_state["contrib_doc"] = contrib_doc
            st.session_state["dados"] = dados
            st.session_state["report"] = report
            st.session_state["processing_done"] = True

            st.success(":material/task_alt: Importação concluída")

    if st.session_state["processing_done"]:
        dados = st.session_state["dados"]
        empresa = dados['empresa']

        st.markdown("---")
        st.subheader(f"{empresa['nome'] or 'Empresa não identificada'}")

        c1, c2, c3, c4 = st.columns(4)
        c1.metric("CNPJ", format_cnpj(empresa['cnpj']) or '-')
        c2.metric("Faturamento (R$)", f"{empresa['faturamento']:,.2f}")
        c3.metric("Tipo de empresa", empresa['tipoEmpresa'] or '-')
        c4.metric("Regime", empresa['regime'])

        rates = processors.effective_rates(dados)
        if rates:
            fig = bar_chart(
                [imposto.upper() for imposto in rates],
                list(rates.values()),
                'Alíquota efetiva (% do faturamento)',
                fmt='%.2f%%',
                ylabel='%',
            )
            st.pyplot(fig)
        else:
            st.info("Sem faturamento importado: alíquotas efetivas não calculadas.")


# >>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>
# Área 2: Registros

if selected_area == "Área 2: Registros SPED":

    st.header(":material/table: Registros SPED", divider='red')

    if not st.session_state["processing_done"]:
        st.warning("Importe os arquivos SPED na Área 1.")
        st.stop()

    fiscal_doc = st.session_state["fiscal_doc"]
    contrib_doc = st.session_state["contrib_doc"]

    tab_fiscal, tab_contrib = st.tabs(["SPED Fiscal", "SPED Contribuições"])

    with tab_fiscal:
        if fiscal_doc is None:
            st.info("SPED Fiscal não importado.")
        else:
            dados_fiscais = processors.extract(fiscal_doc, DocumentKind.FISCAL)
            st.json(dados_fiscais.to_dict(), expanded=False)

            REG_0000, REG_0110 = processors.Bloco_0(fiscal_doc)
            C100, C190 = processors.Bloco_C(fiscal_doc)
            E110, E520 = processors.Bloco_E(fiscal_doc)

            for nome, df in (('0000', REG_0000), ('0110', REG_0110), ('C100', C100), ('C190', C190),
                             ('E110', E110), ('E520', E520)):
                with st.expander(f"Registro {nome} ({len(df)} linhas)"):
                    display_table_with_download(df, f"{nome}_fiscal.csv")

    with tab_contrib:
        if contrib_doc is None:
            st.info("SPED Contribuições não importado.")
        else:
            dados_contrib = processors.extract(contrib_doc, DocumentKind.CONTRIBUICOES)
            st.json(dados_contrib.to_dict(), expanded=False)

            REG_0000, REG_0110 = processors.Bloco_0(contrib_doc)
            M200, M210, M600, M610 = processors.Bloco_M(contrib_doc)

            for nome, df in (('0000', REG_0000), ('0110', REG_0110), ('M200', M200), ('M210', M210),
                             ('M600', M600), ('M610', M610)):
                with st.expander(f"Registro {nome} ({len(df)} linhas)"):
                    display_table_with_download(df, f"{nome}_contrib.csv")


# >>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>
# Área 3: Validação

if selected_area == "Área 3: Validação da Importação":

    st.header(":material/fact_check: Validação da Importação", divider='red')

    if not st.session_state["processing_done"]:
        st.warning("Importe os arquivos SPED na Área 1.")
        st.stop()

    report = st.session_state["report"]

    c1, c2 = st.columns(2)
    c1.metric("Status", report.status)
    c2.metric("Pontuação", f"{report.pontuacao}/100")

    if report.status == 'erro':
        st.error(report.problemas[-1])

    display_table_with_download(validation.report_frame(report), "validacao_sped.csv")

    with st.expander("Estatísticas"):
        st.json(report.estatisticas)


# >>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>>
# Área 4: Estratégias

if selected_area == "Área 4: Estratégias de Mitigação":

    st.header(":material/tune: Estratégias de Mitigação", divider='red')

    if st.session_state["processing_done"]:
        plano = dict(processors.flatten_simulation_data(st.session_state["dados"]).data)
    else:
        st.info("Nenhum SPED importado: informe faturamento e margem manualmente.")
        plano = dict(processors.flatten_simulation_data(processors.estrutura_padrao()).data)

    col1, col2, col3 = st.columns(3)
    plano['faturamento'] = col1.number_input("Faturamento mensal (R$)", min_value=0.0,
                                             value=float(plano['faturamento'] or 0.0), step=1000.0)
    plano['margem'] = col2.number_input("Margem operacional (0-1)", min_value=0.0, max_value=1.0,
                                        value=float(plano['margem'] or 0.0), step=0.01)
    diferenca = col3.number_input("Diferença de capital de giro (R$)", value=0.0, step=1000.0,
                                  help="Resultado do modelo de capital de giro para o ano simulado.")

    estrategias = {}
    tabs = st.tabs([
        "Ajuste de Preços", "Renegociação de Prazos", "Antecipação de Recebíveis",
        "Capital de Giro", "Mix de Produtos", "Meios de Pagamento",
    ])

    with tabs[0]:
        estrategias['apAtivar'] = st.checkbox("Ativar", key="apAtivar")
        estrategias['apPercentualAumento'] = st.number_input("Aumento de preço (%)", value=5.0)
        estrategias['apElasticidade'] = st.number_input("Elasticidade", value=-1.2)
        estrategias['apPeriodo'] = st.number_input("Período (meses)", value=3.0)

    with tabs[1]:
        estrategias['rpAtivar'] = st.checkbox("Ativar", key="rpAtivar")
        estrategias['rpAumentoPrazo'] = st.number_input("Aumento de prazo (dias)", value=15.0)
        estrategias['rpPercentualFornecedores'] = st.number_input("Fornecedores participantes (%)", value=60.0)
        estrategias['rpCusto'] = st.number_input("Custo da contrapartida (%)", value=1.0)

    with tabs[2]:
        estrategias['arAtivar'] = st.checkbox("Ativar", key="arAtivar")
        estrategias['arPercentualAntecipacao'] = st.number_input("Recebíveis antecipados (%)", value=50.0)
        estrategias['arTaxaDesconto'] = st.number_input("Taxa de desconto (fração a.m.)", value=0.018, format="%.4f")
        estrategias['arPrazo'] = st.number_input("Prazo antecipado (dias)", value=30.0)

    with tabs[3]:
        estrategias['cgAtivar'] = st.checkbox("Ativar", key="cgAtivar")
        estrategias['cgValorCaptacao'] = st.number_input("Parcela da necessidade captada (%)", value=100.0)
        estrategias['cgTaxaJuros'] = st.number_input("Taxa de juros (fração a.m.)", value=0.021, format="%.4f")
        estrategias['cgPrazo'] = st.number_input("Prazo (meses)", value=12.0)
        estrategias['cgCarencia'] = st.number_input("Carência (meses)", value=3.0)

    with tabs[4]:
        estrategias['mpAtivar'] = st.checkbox("Ativar", key="mpAtivar")
        estrategias['mpPercentualAjuste'] = st.number_input("Faturamento ajustado (%)", value=30.0)
        estrategias['mpFoco'] = st.selectbox("Foco", ["ciclo", "margem", "vista"])
        estrategias['mpImpactoReceita'] = st.number_input("Impacto na receita (%)", value=-5.0)
        estrategias['mpImpactoMargem'] = st.number_input("Impacto na margem (p.p.)", value=3.5)

    with tabs[5]:
        estrategias['mpagAtivar'] = st.checkbox("Ativar", key="mpagAtivar")
        estrategias['mpagVistaAtual'] = st.number_input("À vista atual (%)", value=plano.get('percVista', 0.3) * 100)
        estrategias['mpagPrazoAtual'] = 100 - estrategias['mpagVistaAtual']
        estrategias['mpagVistaNovo'] = st.number_input("À vista novo (%)", value=40.0)
        estrategias['mpagDias30Novo'] = st.number_input("30 dias novo (%)", value=30.0)
        estrategias['mpagDias60Novo'] = st.number_input("60 dias novo (%)", value=20.0)
        estrategias['mpagDias90Novo'] = st.number_input("90 dias novo (%)", value=10.0)
        estrategias['mpagTaxaIncentivo'] = st.number_input("Taxa de incentivo à vista (%)", value=3.0)

    if st.button("Calcular combinação ótima", type='primary'):
        try:
            baseline, resultado = mitigation.calculate_mitigation(
                plano,
                estrategias,
                lambda dados, ano, setor: {'diferencaCapitalGiro': diferenca},
            )
        except MitigationError as e:
            st.error(str(e))
            st.stop()

        if resultado.sem_estrategias_ativas:
            st.warning("Nenhuma estratégia de mitigação foi selecionada para simulação.")
            st.stop()

        combinada = resultado.efetividade_combinada

        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Combinação ótima", ' + '.join(resultado.estrategias_otimas))
        c2.metric("Efetividade total", f"{resultado.efetividade_total:.1f}%")
        c3.metric("Custo total (R$)", f"{resultado.custo_total:,.2f}")
        c4.metric("Todas as estratégias", f"{combinada.efetividade_percentual:.1f}%")

        individuais = mitigation.strategies_frame(resultado)
        fig = bar_chart(
            list(individuais['nome']) + ['combinada'],
            list(individuais['efetividadePercentual']) + [combinada.efetividade_percentual],
            'Efetividade por estratégia (%)',
            fmt='%.1f%%',
            ylabel='%',
        )
        st.pyplot(fig)

        st.subheader("Ranking de combinações")
        display_table_with_download(mitigation.combinations_frame(resultado), "combinacoes_mitigacao.csv")

        with st.expander("Comparação sem/com mitigação"):
            st.json(mitigation.comparison(baseline, resultado))

        with st.expander("Efeito combinado no ciclo financeiro"):
            st.json({k: v for k, v in combinada.to_dict().items() if k != 'impactosMitigados'})
