"""
Rotas de Turmas

CRUD de turmas, estatísticas e a exclusão em cascata com dupla confirmação.
"""

from flask import g, jsonify

from sprowt.core.transform import transform_turma
from sprowt.core.web import campos_enviados, excluir_com_confirmacao, exigir_form
from . import turmas_bp
from .forms import TurmaForm


@turmas_bp.route('', methods=['GET'])
def listar():
    turmas = g.database.turmas.list()
    return jsonify([transform_turma(t).to_dict() for t in turmas])


@turmas_bp.route('/<turma_id>', methods=['GET'])
def obter(turma_id):
    return jsonify(transform_turma(g.database.turmas.get(turma_id)).to_dict())


@turmas_bp.route('', methods=['POST'])
def criar():
    dados = exigir_form(TurmaForm)
    professor_id = dados.pop('professor_id') or None
    dados['cor'] = dados['cor'] or None
    turma = g.database.turmas.create({k: v for k, v in dados.items() if v is not None}, professor_id)
    return jsonify(transform_turma(turma).to_dict()), 201


@turmas_bp.route('/<turma_id>', methods=['PUT', 'PATCH'])
def atualizar(turma_id):
    turma = g.database.turmas.update(turma_id, campos_enviados())
    return jsonify(transform_turma(turma).to_dict())


@turmas_bp.route('/<turma_id>/dependentes', methods=['GET'])
def dependentes(turma_id):
    return jsonify(g.database.turmas.contar_dependentes(turma_id).to_dict())


@turmas_bp.route('/<turma_id>/estatisticas', methods=['GET'])
def estatisticas(turma_id):
    return jsonify(g.database.turmas.estatisticas(turma_id).to_dict())


@turmas_bp.route('/<turma_id>', methods=['DELETE'])
def excluir(turma_id):
    turma = g.database.turmas.get(turma_id)
    dependentes = g.database.turmas.contar_dependentes(turma_id)
    return excluir_com_confirmacao('delete_turma', turma.id, turma.nome, dependentes)
