"""
Rotas de Relatórios

CRUD de relatórios e a geração de rascunhos pelo assistente de IA, a partir
das observações registradas do aluno.
"""

from flask import current_app, g, jsonify, request

from sprowt.core.ai import EXTENSAO_IA, solicitar_ia
from sprowt.core.constants import STATUS_RASCUNHO, TIPOS_OBSERVACAO
from sprowt.core.extensions import limiter
from sprowt.core.logger import get_logger
from sprowt.core.state import AppState
from sprowt.core.transform import indexar, transform_relatorio
from sprowt.core.web import campos_enviados, excluir_com_confirmacao, exigir_form
from . import relatorios_bp
from .forms import GerarRelatorioForm, RelatorioForm

logger = get_logger(__name__)


def _alunos_by_id() -> dict:
    estado = AppState(g.database)
    estado.refresh_alunos()
    return indexar(estado.alunos)


def _visao(relatorio) -> dict:
    return transform_relatorio(relatorio, _alunos_by_id()).to_dict()


def _resumo_observacoes(observacoes) -> str:
    linhas = []
    for obs in observacoes:
        linhas.append(
            f"- {obs.data_registro:%d/%m/%Y} | {TIPOS_OBSERVACAO.get(obs.tipo_obs, obs.tipo_obs)} | "
            f"avaliação {obs.range_avaliacao}/5 | {obs.obs}"
        )
    return "\n".join(linhas)


@relatorios_bp.route('', methods=['GET'])
def listar():
    relatorios = g.database.relatorios.list()
    aluno_id = request.args.get('aluno')
    status = request.args.get('status')
    if aluno_id:
        relatorios = [r for r in relatorios if r.aluno_id == aluno_id]
    if status:
        relatorios = [r for r in relatorios if r.status == status]

    alunos_by_id = _alunos_by_id()
    return jsonify([transform_relatorio(r, alunos_by_id).to_dict() for r in relatorios])


@relatorios_bp.route('/<relatorio_id>', methods=['GET'])
def obter(relatorio_id):
    return jsonify(_visao(g.database.relatorios.get(relatorio_id)))


@relatorios_bp.route('', methods=['POST'])
def criar():
    dados = exigir_form(RelatorioForm)
    professor_id = dados.pop('professor_id') or None
    relatorio = g.database.relatorios.create({k: v for k, v in dados.items() if v is not None}, professor_id)
    return jsonify(_visao(relatorio)), 201


@relatorios_bp.route('/<relatorio_id>', methods=['PUT', 'PATCH'])
def atualizar(relatorio_id):
    relatorio = g.database.relatorios.update(relatorio_id, campos_enviados())
    return jsonify(_visao(relatorio))


@relatorios_bp.route('/gerar-ia', methods=['POST'])
@limiter.limit("10 per minute")
def gerar_ia():
    """Gera o texto com a IA e grava como rascunho marcado geradoPorIA."""
    dados = exigir_form(GerarRelatorioForm)

    aluno = g.database.alunos.get(dados['aluno_id'])
    observacoes = g.database.observacoes.list_por_aluno(aluno.id)
    contexto = "\n\n".join(filter(None, [
        f"Observações registradas:\n{_resumo_observacoes(observacoes)}" if observacoes else None,
        dados.get('contexto'),
    ]))

    texto = solicitar_ia(
        current_app.extensions[EXTENSAO_IA],
        g.sessao,
        f"Escreva um relatório de desenvolvimento do aluno referente ao período {dados['periodo']}.",
        'gerar_relatorio',
        aluno_nome=aluno.nome,
        contexto=contexto or None,
    )

    relatorio = g.database.relatorios.create({
        'aluno_id': aluno.id,
        'titulo': dados.get('titulo') or f"Relatório {dados['periodo']} - {aluno.nome}",
        'periodo': dados['periodo'],
        'conteudo': texto,
        'status': STATUS_RASCUNHO,
        'gerado_por_ia': True,
    }, aluno.professor_id)
    logger.info(f"Relatório gerado por IA para o aluno {aluno.id}")
    return jsonify(_visao(relatorio)), 201


@relatorios_bp.route('/<relatorio_id>', methods=['DELETE'])
def excluir(relatorio_id):
    relatorio = g.database.relatorios.get(relatorio_id)
    return excluir_com_confirmacao('delete_relatorio', relatorio.id, relatorio.titulo)
