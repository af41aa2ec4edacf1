import os
import time
from types import SimpleNamespace
from unittest.mock import MagicMock

# A config é avaliada na importação (fail fast), então o ambiente vem antes
os.environ.setdefault('SECRET_KEY', 'chave-de-teste')
os.environ.setdefault('FIREBASE_API_KEY', 'firebase-teste')
os.environ.setdefault('GOOGLE_API_KEY', 'gemini-teste')

import pytest

from config import Config
from fake_firestore import FakeFirestore
from sprowt import create_app
from sprowt.auth.services import CHAVE_SESSAO, Session, SessionProvider, User
from sprowt.core.access import AccessControl
from sprowt.core.constants import COLECAO_PROFILES, TIPO_ADMIN, TIPO_PROFESSOR
from sprowt.core.errors import EmailTaken, InvalidCredentials, NotAuthenticated
from sprowt.core.repository import Database

SENHA = 'segredo123'


class ConfigTeste(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    RATELIMIT_ENABLED = False


class FakeAuthClient:
    """Firebase Auth em memória: tokens no formato 'token-<uid>'."""

    def __init__(self, db):
        self.db = db
        self.usuarios = {}
        self.senhas = {}

    def cadastrar(self, uid, email, nome, tipo=TIPO_PROFESSOR):
        self.usuarios[email] = User(id=uid, email=email, nome=nome)
        self.senhas[email] = SENHA
        self.db.semear(COLECAO_PROFILES, uid, nome=nome, email=email, tipo=tipo)
        return self.usuarios[email]

    def sessao_de(self, user, expires_at=None):
        return Session(
            access_token=f'token-{user.id}',
            refresh_token=f'refresh-{user.id}',
            expires_at=expires_at or time.time() + 3600,
            user=user,
        )

    def sign_in_with_password(self, email, password):
        if self.senhas.get(email) != password:
            raise InvalidCredentials()
        return self.sessao_de(self.usuarios[email])

    def sign_up(self, email, password, display_name):
        if email in self.usuarios:
            raise EmailTaken()
        uid = f'uid-{len(self.usuarios) + 1}'
        user = self.cadastrar(uid, email, display_name)
        self.senhas[email] = password
        return self.sessao_de(user)

    def refresh_session(self, refresh_token, user):
        if refresh_token != f'refresh-{user.id}':
            raise NotAuthenticated()
        return self.sessao_de(user)

    def get_user(self, access_token):
        for user in self.usuarios.values():
            if access_token == f'token-{user.id}':
                return user
        raise NotAuthenticated()

    def update_display_name(self, session, nome):
        user = User(id=session.user.id, email=session.user.email, nome=nome)
        self.usuarios[user.email] = user
        self.db.dados[COLECAO_PROFILES][user.id]['nome'] = nome
        return self.sessao_de(user, session.expires_at)

    def sign_out(self, session):
        pass


@pytest.fixture
def fs():
    return FakeFirestore()


@pytest.fixture
def auth_fake(fs):
    auth = FakeAuthClient(fs)
    auth.cadastrar('prof-a', 'ana@escola.com', 'Ana')
    auth.cadastrar('prof-b', 'bruno@escola.com', 'Bruno')
    auth.cadastrar('admin-1', 'diretora@escola.com', 'Diretora', tipo=TIPO_ADMIN)
    return auth


@pytest.fixture
def como(fs, auth_fake):
    """Fábrica de Database autenticado: como('prof-a'), como('admin-1')..."""

    def _como(uid, admin_listagem_global=False):
        user = next(u for u in auth_fake.usuarios.values() if u.id == uid)
        storage = {CHAVE_SESSAO: auth_fake.sessao_de(user).to_dict()}
        acesso = AccessControl(SessionProvider(auth_fake, storage), fs)
        return Database(fs, acesso, admin_listagem_global)

    return _como


@pytest.fixture
def cenario(como):
    """Professora Ana com turma, aluno, observação e relatório; Bruno com uma turma e um aluno."""
    ana = como('prof-a')
    turma = ana.turmas.create({'nome': 'Maternal A', 'faixa_etaria': '2-3 anos'})
    aluno = ana.alunos.create({
        'nome': 'Lia', 'turma_id': turma.id, 'data_nascimento': '2021-03-10', 'responsavel': 'Marta',
    })
    observacao = ana.observacoes.create({
        'id_aluno': aluno.id, 'tipo_obs': 'motora', 'range_avaliacao': 4, 'obs': 'Sobe escadas sozinha',
    })
    relatorio = ana.relatorios.create({'aluno_id': aluno.id, 'titulo': '1º Bimestre', 'periodo': '2024.1'})

    bruno = como('prof-b')
    turma_b = bruno.turmas.create({'nome': 'Jardim B', 'faixa_etaria': '4-5 anos'})
    aluno_b = bruno.alunos.create({
        'nome': 'Caio', 'turma_id': turma_b.id, 'data_nascimento': '2019-08-01', 'responsavel': 'Paula',
    })
    return SimpleNamespace(
        turma=turma.id, aluno=aluno.id, observacao=observacao.id, relatorio=relatorio.id,
        turma_b=turma_b.id, aluno_b=aluno_b.id,
    )


@pytest.fixture
def servico_ia():
    servico = MagicMock()
    servico.invoke.return_value = {
        'success': True,
        'resposta': 'Texto gerado pela IA.',
        'metadata': {'tipo': 'gerar_relatorio', 'modelo': 'gemini-teste'},
    }
    return servico


@pytest.fixture
def app(fs, auth_fake, servico_ia):
    return create_app(ConfigTeste, firestore_client=fs, auth_client=auth_fake, servico_ia=servico_ia)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(email, senha=SENHA):
        resposta = client.post('/auth/login', json={'email': email, 'password': senha})
        assert resposta.status_code == 200, resposta.get_json()
        return resposta

    return _login
