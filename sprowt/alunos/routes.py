"""
Rotas de Alunos

Toda escrita de aluno relê turmas e alunos (refresh_alunos), pois mover ou
excluir um aluno altera os contadores das turmas.
"""

from flask import g, jsonify, request

from sprowt.core.errors import NotFound
from sprowt.core.state import AppState
from sprowt.core.transform import transform_aluno
from sprowt.core.web import campos_enviados, excluir_com_confirmacao, exigir_form
from . import alunos_bp
from .forms import AlunoForm


def _colecoes_atualizadas() -> dict:
    estado = AppState(g.database)
    estado.refresh_alunos()
    return {
        'turmas': [t.to_dict() for t in estado.turmas],
        'alunos': [a.to_dict() for a in estado.alunos],
    }


def _visao(aluno):
    try:
        turma = g.database.turmas.get(aluno.turma_id)
        turmas_by_id = {turma.id: turma}
    except NotFound:
        turmas_by_id = {}
    return transform_aluno(aluno, turmas_by_id).to_dict()


@alunos_bp.route('', methods=['GET'])
def listar():
    estado = AppState(g.database)
    estado.refresh_alunos()
    alunos = estado.alunos
    turma_id = request.args.get('turma')
    if turma_id:
        alunos = tuple(a for a in alunos if a.turma_id == turma_id)
    return jsonify([a.to_dict() for a in alunos])


@alunos_bp.route('/<aluno_id>', methods=['GET'])
def obter(aluno_id):
    return jsonify(_visao(g.database.alunos.get(aluno_id)))


@alunos_bp.route('', methods=['POST'])
def criar():
    dados = exigir_form(AlunoForm)
    professor_id = dados.pop('professor_id') or None
    aluno = g.database.alunos.create({k: v for k, v in dados.items() if v is not None}, professor_id)
    return jsonify({'aluno': _visao(aluno), **_colecoes_atualizadas()}), 201


@alunos_bp.route('/<aluno_id>', methods=['PUT', 'PATCH'])
def atualizar(aluno_id):
    aluno = g.database.alunos.update(aluno_id, campos_enviados())
    return jsonify({'aluno': _visao(aluno), **_colecoes_atualizadas()})


@alunos_bp.route('/<aluno_id>/dependentes', methods=['GET'])
def dependentes(aluno_id):
    return jsonify(g.database.alunos.contar_dependentes(aluno_id).to_dict())


@alunos_bp.route('/<aluno_id>/progresso', methods=['GET'])
def progresso(aluno_id):
    observacoes = g.database.observacoes
    return jsonify({
        'alunoId': aluno_id,
        'mediaGeral': observacoes.media_avaliacao(aluno_id),
        'porTipo': [p.to_dict() for p in observacoes.progresso_aluno(aluno_id)],
    })


@alunos_bp.route('/<aluno_id>', methods=['DELETE'])
def excluir(aluno_id):
    aluno = g.database.alunos.get(aluno_id)
    return excluir_com_confirmacao('delete_aluno', aluno.id, aluno.nome, complemento=_colecoes_atualizadas)
