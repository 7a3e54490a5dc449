"""
Completeness scoring for imported SPED data.

validate() never raises. Any failure while scoring turns the report status
into 'erro' and records the message as a problem.
"""

import logging
import math

import pandas as pd

from . import config
from .models import ValidationReport
from .utils import format_value, is_valid_cnpj

logger = logging.getLogger(__name__)


def _is_number(value):
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _has_value(value):
    return value is not None and value != ''


def _get(mapping, key):
    return mapping.get(key) if isinstance(mapping, dict) else None


def _check_structure(dados, report):
    report.dados_encontrados['estruturaBasica'] = True

    if not isinstance(dados, dict):
        report.problemas.append('Dados SPED não são um objeto válido')
        return

    encontradas = []
    for prop in config.PROPRIEDADES_ESSENCIAIS:
        if prop in dados:
            encontradas.append(prop)
            report.dados_encontrados[prop] = True
        else:
            report.alertas.append(f"Propriedade '{prop}' não encontrada na estrutura")
            report.dados_encontrados[prop] = False

    total = len(config.PROPRIEDADES_ESSENCIAIS)
    if len(encontradas) >= config.MIN_PROPRIEDADES:
        report.sucessos.append(f"Estrutura básica válida ({len(encontradas)}/{total} propriedades)")
        report.pontuacao += config.PONTOS_ESTRUTURA
    else:
        report.problemas.append(f"Estrutura básica insuficiente ({len(encontradas)}/{total} propriedades)")


def _check_company(dados, report):
    empresa = dados.get('empresa') or {}
    stats = report.estatisticas['empresa'] = {}

    pontos = 0
    for campo, regra in config.CAMPOS_EMPRESA.items():
        valor = empresa.get(campo)
        presente = _has_value(valor)
        stats[campo] = {
            'presente': presente,
            'valor': valor if presente else None,
            'tipo': type(valor).__name__,
        }

        if presente:
            if regra['tipo'] == 'number' and _is_number(valor) and valor > 0:
                pontos += regra['peso']
                report.sucessos.append(f"Campo '{campo}' da empresa válido: {format_value(valor)}")
            elif regra['tipo'] == 'string' and isinstance(valor, str) and valor.strip():
                pontos += regra['peso']
                report.sucessos.append(f"Campo '{campo}' da empresa válido: {valor}")
            else:
                report.alertas.append(f"Campo '{campo}' da empresa com tipo inválido")
        elif regra['obrigatorio']:
            report.problemas.append(f"Campo obrigatório '{campo}' da empresa não encontrado")
        else:
            report.alertas.append(f"Campo opcional '{campo}' da empresa não encontrado")

    # half-points round up
    report.pontuacao += math.floor(pontos * config.FATOR_EMPRESA + 0.5)

    cnpj = empresa.get('cnpj')
    if cnpj and not is_valid_cnpj(cnpj):
        report.problemas.append('CNPJ da empresa com formato inválido')

    faturamento = empresa.get('faturamento')
    if _is_number(faturamento) and faturamento and faturamento <= 0:
        report.alertas.append('Faturamento da empresa é zero ou negativo')


def _check_record(registro, campos, contexto, report):
    """Classify one sampled record by the share of expected fields it fills."""
    validos = sum(1 for campo in campos if _has_value(registro.get(campo)))
    percentual = validos / len(campos) * 100

    if percentual >= config.LIMIAR_REGISTRO_VALIDO:
        report.sucessos.append(f"{contexto}: estrutura do registro válida ({percentual:.0f}%)")
    elif percentual >= config.LIMIAR_REGISTRO_PARCIAL:
        report.alertas.append(f"{contexto}: estrutura do registro parcialmente válida ({percentual:.0f}%)")
    else:
        report.problemas.append(f"{contexto}: estrutura do registro insuficiente ({percentual:.0f}%)")


def _check_fiscal_structure(dados, tipo, report):
    for imposto in config.IMPOSTOS_ESTRUTURA:
        registros = _get(dados, imposto)
        if not isinstance(registros, list):
            continue

        if not registros:
            report.alertas.append(f"{tipo.upper()}.{imposto.upper()}: array vazio")
            continue

        report.sucessos.append(f"{tipo.upper()}.{imposto.upper()}: {len(registros)} registros")
        # only the first record of each tax is sampled
        amostra = registros[0]
        if isinstance(amostra, dict):
            campos = config.CAMPOS_ESPERADOS.get(tipo, {}).get(imposto, config.CAMPOS_ESPERADOS_PADRAO)
            _check_record(amostra, campos, f"{tipo}.{imposto}", report)


def _check_fiscal(dados, report):
    stats = report.estatisticas['fiscal'] = {}

    encontrados = 0
    for tipo in config.TIPOS_FISCAIS:
        valor = dados.get(tipo)
        presente = isinstance(valor, (dict, list)) and len(valor) > 0
        stats[tipo] = {'presente': presente, 'quantidade': len(valor) if presente else 0}

        if presente:
            encontrados += 1
            report.sucessos.append(f"Dados de '{tipo}' encontrados ({len(valor)} categorias)")
            _check_fiscal_structure(valor, tipo, report)
        else:
            report.alertas.append(f"Dados de '{tipo}' não encontrados ou vazios")

    total = len(config.TIPOS_FISCAIS)
    if encontrados >= config.MIN_TIPOS_FISCAIS:
        report.pontuacao += config.PONTOS_FISCAIS
        report.sucessos.append(f"Dados fiscais suficientes encontrados ({encontrados}/{total})")
    else:
        report.problemas.append(f"Dados fiscais insuficientes ({encontrados}/{total})")


def _check_documents(dados, report):
    documentos = dados.get('documentos') or []
    stats = report.estatisticas['documentos'] = {
        'total': len(documentos) if isinstance(documentos, list) else 0,
        'saidas': 0,
        'entradas': 0,
        'comValor': 0,
        'semValor': 0,
    }

    if not isinstance(documentos, list):
        report.problemas.append('Documentos não estão em formato de array')
        return

    if not documentos:
        report.alertas.append('Nenhum documento fiscal encontrado')
        return

    for doc in documentos:
        operacao = doc.get('indOper')
        if operacao == config.OPERACAO_SAIDA:
            stats['saidas'] += 1
        elif operacao == config.OPERACAO_ENTRADA:
            stats['entradas'] += 1

        valor = doc.get('valorTotal')
        if _is_number(valor) and valor > 0:
            stats['comValor'] += 1
        else:
            stats['semValor'] += 1

    report.sucessos.append(f"{len(documentos)} documentos fiscais encontrados")
    report.sucessos.append(f"Documentos de saída: {stats['saidas']}")
    report.sucessos.append(f"Documentos de entrada: {stats['entradas']}")

    if stats['comValor'] > 0:
        report.pontuacao += config.PONTOS_DOCUMENTOS
        report.sucessos.append(f"{stats['comValor']} documentos com valor válido")

    if stats['semValor'] > len(documentos) * 0.5:
        report.alertas.append(f"{stats['semValor']} documentos sem valor ou com valor zero")


def _total_value(registros, campos):
    """Sum of the first positive numeric field of each record."""
    if not isinstance(registros, list):
        return 0
    total = 0
    for registro in registros:
        for campo in campos:
            valor = _get(registro, campo)
            if _is_number(valor) and valor > 0:
                total += valor
                break
    return total


def _check_credits_debits(dados, report):
    creditos = dados.get('creditos') or {}
    debitos = dados.get('debitos') or {}
    stats = report.estatisticas['impostos'] = {}

    for imposto in config.IMPOSTOS_VALIDADOS:
        creditos_imposto = _get(creditos, imposto) or []
        debitos_imposto = _get(debitos, imposto) or []

        resumo = stats[imposto] = {
            'creditos': len(creditos_imposto) if isinstance(creditos_imposto, list) else 0,
            'debitos': len(debitos_imposto) if isinstance(debitos_imposto, list) else 0,
            'valorCreditos': _total_value(creditos_imposto, ['valorCredito']),
            'valorDebitos': _total_value(debitos_imposto, ['valorTotalContribuicao', 'valorTotalDebitos']),
        }

        if resumo['creditos'] > 0 or resumo['debitos'] > 0:
            report.sucessos.append(
                f"{imposto.upper()}: {resumo['creditos']} créditos, {resumo['debitos']} débitos"
            )
            if resumo['valorCreditos'] > 0 or resumo['valorDebitos'] > 0:
                report.pontuacao += config.PONTOS_POR_IMPOSTO
                report.sucessos.append(f"{imposto.upper()}: valores monetários válidos encontrados")
        else:
            report.alertas.append(f"{imposto.upper()}: nenhum crédito ou débito encontrado")


def _finish(report):
    report.pontuacao = min(100, max(0, report.pontuacao))

    for limite, status, recomendacao in config.FAIXAS_STATUS:
        if report.pontuacao >= limite:
            report.status = status
            report.recomendacoes.append(recomendacao)
            break

    if len(report.problemas) > config.MAX_PROBLEMAS:
        report.recomendacoes.append('Muitos problemas encontrados - considere reprocessar os arquivos SPED')
    if len(report.alertas) > config.MAX_ALERTAS:
        report.recomendacoes.append('Muitos alertas encontrados - verifique a completude dos dados')
    if not report.dados_encontrados.get('empresa'):
        report.recomendacoes.append('Dados da empresa não encontrados - importação pode falhar')


def validate(dados):
    """
    Score the completeness of nested SPED data from 0 to 100.

    Points: structure 20, company fields up to 30 (weights scaled by 0.3),
    fiscal categories 25, documents with value 20 and 5 per tax with
    monetary values, clamped to 100.

    Args:
        dados: nested dict with empresa, documentos, creditos, debitos, metadados

    Returns:
        ValidationReport
    """
    report = ValidationReport()
    try:
        _check_structure(dados, report)
        _check_company(dados, report)
        _check_fiscal(dados, report)
        _check_documents(dados, report)
        _check_credits_debits(dados, report)
        _finish(report)
    except Exception as e:
        report.status = 'erro'
        report.problemas.append(f"Erro durante validação: {e}")
        logger.exception("Validation failed")
        return report

    logger.info("Validation finished: %s (%d points)", report.status, report.pontuacao)
    return report


def report_frame(report):
    """Report messages as a DataFrame with columns categoria and mensagem."""
    rows = []
    for categoria, mensagens in (
        ('sucesso', report.sucessos),
        ('alerta', report.alertas),
        ('problema', report.problemas),
        ('recomendacao', report.recomendacoes),
    ):
        rows.extend({'categoria': categoria, 'mensagem': m} for m in mensagens)
    return pd.DataFrame(rows, columns=['categoria', 'mensagem'])
