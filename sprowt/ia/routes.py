"""
Rotas do Assistente de IA
"""

from flask import current_app, g, jsonify

from sprowt.core.ai import EXTENSAO_IA, TIPOS_AJUDA, solicitar_ia
from sprowt.core.extensions import limiter
from sprowt.core.web import exigir_form
from . import ia_bp
from .forms import SolicitacaoIAForm


@ia_bp.route('/tipos', methods=['GET'])
def tipos():
    return jsonify([{'valor': valor, 'rotulo': rotulo} for valor, rotulo in TIPOS_AJUDA.items()])


@ia_bp.route('/solicitar', methods=['POST'])
@limiter.limit("20 per minute")
def solicitar():
    dados = exigir_form(SolicitacaoIAForm)
    g.acesso.validate_permissions()

    aluno_nome = None
    if dados.get('aluno_id'):
        aluno_nome = g.database.alunos.get(dados['aluno_id']).nome

    tipo = dados.get('tipo') or 'conversa_livre'
    resposta = solicitar_ia(
        current_app.extensions[EXTENSAO_IA],
        g.sessao,
        dados['prompt'],
        tipo,
        aluno_nome=aluno_nome,
        contexto=dados.get('contexto') or None,
    )
    return jsonify({'resposta': resposta, 'tipo': tipo, 'alunoNome': aluno_nome})
