"""
Rotas do Módulo de Autenticação

Gerencia /auth/login, /auth/signup, /auth/logout e /auth/sessao.
"""

from flask import g, jsonify
from flask_wtf.csrf import generate_csrf

from sprowt.core.errors import ProfileNotFound
from sprowt.core.extensions import limiter
from sprowt.core.web import montar_form
from . import auth_bp
from .forms import LoginForm, PerfilForm, SignUpForm


def _resposta_sessao():
    user = g.sessao.user
    if user is None:
        return {'autenticado': False, 'user': None, 'profile': None, 'csrfToken': generate_csrf()}

    try:
        profile = g.acesso.get_profile(user.id).to_dict()
    except ProfileNotFound:
        profile = None
    return {
        'autenticado': True,
        'user': {'id': user.id, 'email': user.email, 'nome': user.nome},
        'profile': profile,
        'csrfToken': generate_csrf(),
    }


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    form = montar_form(LoginForm)
    if not form.validate():
        return jsonify({'erro': "Dados de login inválidos.", 'campos': form.errors}), 400

    g.sessao.sign_in(form.email.data.strip(), form.password.data)
    return jsonify(_resposta_sessao())


@auth_bp.route('/signup', methods=['POST'])
@limiter.limit("5 per minute")
def signup():
    form = montar_form(SignUpForm)
    if not form.validate():
        return jsonify({'erro': "Dados de cadastro inválidos.", 'campos': form.errors}), 400

    g.sessao.sign_up(form.email.data.strip(), form.password.data, form.nome.data.strip())
    return jsonify(_resposta_sessao()), 201


@auth_bp.route('/logout', methods=['POST'])
def logout():
    g.sessao.sign_out()
    return jsonify({'autenticado': False})


@auth_bp.route('/sessao')
def sessao():
    g.sessao.initialize()
    return jsonify(_resposta_sessao())


@auth_bp.route('/perfil', methods=['PATCH'])
def perfil():
    form = montar_form(PerfilForm)
    if not form.validate():
        return jsonify({'erro': "Nome inválido.", 'campos': form.errors}), 400

    g.sessao.update_user(form.nome.data.strip())
    return jsonify(_resposta_sessao())
