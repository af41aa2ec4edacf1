"""
Rotas de Observações Pedagógicas

A listagem aceita os filtros ?aluno=, ?tipo=, ?q= (busca no texto) e
?inicio=/?fim= (período, AAAA-MM-DD).
"""

from datetime import datetime, timezone

from flask import g, jsonify, request

from sprowt.core.repository import normalizar_texto
from sprowt.core.transform import indexar, transform_observacao
from sprowt.core.web import campos_enviados, data_parametro, excluir_com_confirmacao, exigir_form
from . import observacoes_bp
from .forms import ObservacaoForm

INICIO_DOS_TEMPOS = datetime.min.replace(tzinfo=timezone.utc)
FIM_DOS_TEMPOS = datetime.max.replace(tzinfo=timezone.utc)


def _visoes(observacoes) -> list:
    alunos_by_id = indexar(g.database.alunos.list())
    return [transform_observacao(o, alunos_by_id).to_dict() for o in observacoes]


@observacoes_bp.route('', methods=['GET'])
def listar():
    aluno_id = request.args.get('aluno')
    tipo = request.args.get('tipo')
    termo = (request.args.get('q') or '').strip()
    inicio = data_parametro('inicio')
    fim = data_parametro('fim', fim_do_dia=True)

    repositorio = g.database.observacoes
    if inicio or fim:
        observacoes = repositorio.observacoes_periodo(inicio or INICIO_DOS_TEMPOS, fim or FIM_DOS_TEMPOS, aluno_id)
    elif aluno_id:
        observacoes = repositorio.list_por_aluno(aluno_id)
    else:
        observacoes = repositorio.buscar(termo)

    if tipo:
        observacoes = [o for o in observacoes if o.tipo_obs == tipo]
    if termo:
        alvo = normalizar_texto(termo)
        observacoes = [o for o in observacoes if alvo in normalizar_texto(o.obs)]
    return jsonify(_visoes(observacoes))


@observacoes_bp.route('/<observacao_id>', methods=['GET'])
def obter(observacao_id):
    return jsonify(_visoes([g.database.observacoes.get(observacao_id)])[0])


@observacoes_bp.route('', methods=['POST'])
def criar():
    dados = exigir_form(ObservacaoForm)
    professor_id = dados.pop('professor_id') or None
    observacao = g.database.observacoes.create({k: v for k, v in dados.items() if v is not None}, professor_id)
    return jsonify(_visoes([observacao])[0]), 201


@observacoes_bp.route('/<observacao_id>', methods=['PUT', 'PATCH'])
def atualizar(observacao_id):
    observacao = g.database.observacoes.update(observacao_id, campos_enviados())
    return jsonify(_visoes([observacao])[0])


@observacoes_bp.route('/<observacao_id>', methods=['DELETE'])
def excluir(observacao_id):
    g.database.observacoes.get(observacao_id)
    return excluir_com_confirmacao('delete_observacao', observacao_id)
