"""
Camada de Serviço (Service Layer) da Autenticação

Duas peças:
- FirebaseAuthClient: fala com o Firebase Authentication (Identity Toolkit)
  para login por e-mail/senha, cadastro e renovação de token. No cadastro
  também cria o documento 'profiles/{uid}' com tipo='professor'.
- SessionProvider: guarda a sessão corrente num armazenamento tipo dict
  (a sessão do Flask), expõe user/session/loading e avisa os ouvintes a cada
  login, logout ou renovação de token.
"""

import time
from dataclasses import asdict, dataclass, replace
from typing import Callable, Optional

import requests
from google.cloud import firestore

from sprowt.core.constants import COLECAO_PROFILES, TIPO_PROFESSOR
from sprowt.core.database import backend
from sprowt.core.errors import (
    BackendError,
    EmailTaken,
    InvalidCredentials,
    NotAuthenticated,
    WeakPassword,
)
from sprowt.core.logger import get_logger

logger = get_logger(__name__)

IDENTITY_TOOLKIT_URL = 'https://identitytoolkit.googleapis.com/v1/accounts:{acao}'
SECURE_TOKEN_URL = 'https://securetoken.googleapis.com/v1/token'

CHAVE_SESSAO = 'auth_session'
TIMEOUT_REQUISICAO = 15

# Margem para renovar o token antes do vencimento real
MARGEM_EXPIRACAO = 60

ERROS_CREDENCIAIS = (
    'INVALID_LOGIN_CREDENTIALS', 'EMAIL_NOT_FOUND', 'INVALID_PASSWORD',
    'USER_DISABLED', 'INVALID_EMAIL', 'MISSING_PASSWORD',
)
ERROS_TOKEN = (
    'TOKEN_EXPIRED', 'INVALID_REFRESH_TOKEN', 'INVALID_ID_TOKEN',
    'USER_NOT_FOUND', 'USER_DISABLED',
)


@dataclass(frozen=True)
class User:
    id: str
    email: str
    nome: str = ''


@dataclass(frozen=True)
class Session:
    access_token: str
    refresh_token: str
    expires_at: float
    user: User

    @property
    def expirada(self) -> bool:
        return time.time() >= self.expires_at - MARGEM_EXPIRACAO

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, dados: dict) -> 'Session':
        return cls(
            access_token=dados['access_token'],
            refresh_token=dados['refresh_token'],
            expires_at=float(dados['expires_at']),
            user=User(**dados['user']),
        )


class FirebaseAuthClient:
    """Cliente REST do Firebase Authentication (e-mail/senha)."""

    def __init__(self, api_key: str, firestore_client=None):
        self.api_key = api_key
        self.db = firestore_client

    # --- HTTP ---

    def _post(self, url: str, **kwargs) -> dict:
        if not self.api_key:
            raise BackendError("FIREBASE_API_KEY não configurada.")
        try:
            resposta = requests.post(url, params={'key': self.api_key}, timeout=TIMEOUT_REQUISICAO, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Falha de rede no Firebase Auth: {e}", exc_info=True)
            raise BackendError(f"Serviço de autenticação indisponível: {e}") from e

        if resposta.ok:
            return resposta.json()

        codigo = self._codigo_erro(resposta)
        logger.warning(f"Firebase Auth recusou a requisição ({resposta.status_code}): {codigo}")
        if codigo.startswith('EMAIL_EXISTS'):
            raise EmailTaken()
        if codigo.startswith('WEAK_PASSWORD'):
            raise WeakPassword()
        if codigo.startswith(ERROS_CREDENCIAIS):
            raise InvalidCredentials()
        if codigo.startswith(ERROS_TOKEN):
            raise NotAuthenticated()
        raise BackendError(f"Erro no serviço de autenticação: {codigo}")

    @staticmethod
    def _codigo_erro(resposta) -> str:
        try:
            erro = resposta.json().get('error', {})
        except ValueError:
            return resposta.text or str(resposta.status_code)
        if isinstance(erro, dict):
            return erro.get('message', '')
        return str(erro)

    @staticmethod
    def _sessao(dados: dict, email: str = '', nome: str = '') -> Session:
        user = User(
            id=dados.get('localId') or dados.get('user_id'),
            email=dados.get('email') or email,
            nome=dados.get('displayName') or nome,
        )
        return Session(
            access_token=dados.get('idToken') or dados.get('id_token'),
            refresh_token=dados.get('refreshToken') or dados.get('refresh_token'),
            expires_at=time.time() + int(dados.get('expiresIn') or dados.get('expires_in') or 3600),
            user=user,
        )

    # --- Operações ---

    def sign_in_with_password(self, email: str, password: str) -> Session:
        dados = self._post(
            IDENTITY_TOOLKIT_URL.format(acao='signInWithPassword'),
            json={'email': email, 'password': password, 'returnSecureToken': True},
        )
        logger.info(f"Login efetuado: {email}")
        return self._sessao(dados, email=email)

    def sign_up(self, email: str, password: str, display_name: str) -> Session:
        dados = self._post(
            IDENTITY_TOOLKIT_URL.format(acao='signUp'),
            json={'email': email, 'password': password, 'returnSecureToken': True},
        )
        self._post(
            IDENTITY_TOOLKIT_URL.format(acao='update'),
            json={'idToken': dados['idToken'], 'displayName': display_name, 'returnSecureToken': False},
        )
        sessao = self._sessao(dados, email=email, nome=display_name)
        self._criar_profile(sessao.user.id, display_name, email)
        logger.info(f"Novo usuário cadastrado: {email}")
        return sessao

    def _criar_profile(self, user_id: str, nome: str, email: str) -> None:
        """Todo cadastro nasce professor; a promoção a admin é feita pelo setup_admin.py."""
        if self.db is None:
            raise BackendError("Firestore não configurado para criar o perfil.")
        with backend("criar perfil"):
            self.db.collection(COLECAO_PROFILES).document(user_id).set({
                'nome': nome,
                'email': email,
                'tipo': TIPO_PROFESSOR,
                'created_at': firestore.SERVER_TIMESTAMP,
            })

    def refresh_session(self, refresh_token: str, user: User) -> Session:
        dados = self._post(
            SECURE_TOKEN_URL,
            data={'grant_type': 'refresh_token', 'refresh_token': refresh_token},
        )
        return self._sessao(dados, email=user.email, nome=user.nome)

    def get_user(self, access_token: str) -> User:
        dados = self._post(IDENTITY_TOOLKIT_URL.format(acao='lookup'), json={'idToken': access_token})
        usuarios = dados.get('users') or []
        if not usuarios:
            raise NotAuthenticated()
        info = usuarios[0]
        return User(id=info['localId'], email=info.get('email', ''), nome=info.get('displayName', ''))

    def update_display_name(self, session: Session, nome: str) -> Session:
        """Troca o nome de exibição no Firebase e no perfil."""
        self._post(
            IDENTITY_TOOLKIT_URL.format(acao='update'),
            json={'idToken': session.access_token, 'displayName': nome, 'returnSecureToken': False},
        )
        if self.db is not None:
            with backend("atualizar perfil"):
                self.db.collection(COLECAO_PROFILES).document(session.user.id).update({'nome': nome})
        return replace(session, user=replace(session.user, nome=nome))

    def sign_out(self, session: Session) -> None:
        # Tokens do Firebase não são revogáveis pela API REST do cliente
        logger.info(f"Logout: {session.user.email}")


class SessionProvider:
    """
    Sessão do usuário corrente.

    `storage` é qualquer mapeamento mutável (a `flask.session` nas rotas,
    um dict nos testes). Enquanto `loading` for True, `user` é None.
    """

    def __init__(self, auth_client, storage):
        self.auth_client = auth_client
        self.storage = storage
        self.loading = True
        self._session: Optional[Session] = None
        self._ouvintes: list = []

    @property
    def session(self) -> Optional[Session]:
        return None if self.loading else self._session

    @property
    def user(self) -> Optional[User]:
        sessao = self.session
        return sessao.user if sessao else None

    def on_auth_state_change(self, callback: Callable) -> Callable[[], None]:
        """Registra `callback(evento, sessao)`; retorna a função de cancelamento."""
        self._ouvintes.append(callback)

        def unsubscribe():
            if callback in self._ouvintes:
                self._ouvintes.remove(callback)

        return unsubscribe

    def _emitir(self, evento: str) -> None:
        for ouvinte in list(self._ouvintes):
            ouvinte(evento, self._session)

    def _gravar(self, sessao: Optional[Session]) -> None:
        self._session = sessao
        if sessao is None:
            self.storage.pop(CHAVE_SESSAO, None)
        else:
            self.storage[CHAVE_SESSAO] = sessao.to_dict()

    def get_session(self) -> Optional[Session]:
        """Lê a sessão persistida, renovando o token vencido."""
        dados = self.storage.get(CHAVE_SESSAO)
        if not dados:
            return None
        try:
            sessao = Session.from_dict(dados)
        except (KeyError, TypeError, ValueError):
            logger.warning("Sessão armazenada em formato inválido; descartando.")
            self._gravar(None)
            return None

        if sessao.expirada:
            try:
                sessao = self.auth_client.refresh_session(sessao.refresh_token, sessao.user)
            except NotAuthenticated:
                logger.info(f"Token de {sessao.user.email} não pôde ser renovado.")
                self._gravar(None)
                self._emitir('SIGNED_OUT')
                return None
            self._gravar(sessao)
            self._emitir('TOKEN_REFRESHED')
        return sessao

    def initialize(self) -> Optional[Session]:
        if self.loading:
            self._session = self.get_session()
            self.loading = False
            self._emitir('INITIAL_SESSION')
        return self._session

    def sign_in(self, email: str, password: str) -> None:
        sessao = self.auth_client.sign_in_with_password(email, password)
        self._gravar(sessao)
        self.loading = False
        self._emitir('SIGNED_IN')

    def sign_up(self, email: str, password: str, display_name: str) -> None:
        sessao = self.auth_client.sign_up(email, password, display_name)
        self._gravar(sessao)
        self.loading = False
        self._emitir('SIGNED_IN')

    def sign_out(self) -> None:
        sessao = self.initialize()
        if sessao is not None:
            self.auth_client.sign_out(sessao)
        self._gravar(None)
        self._emitir('SIGNED_OUT')

    def update_user(self, nome: str) -> None:
        sessao = self.initialize()
        if sessao is None:
            raise NotAuthenticated()
        self._gravar(self.auth_client.update_display_name(sessao, nome))
        self._emitir('USER_UPDATED')

    def authorization_header(self) -> dict:
        sessao = self.initialize()
        if sessao is None:
            raise NotAuthenticated()
        return {'Authorization': f'Bearer {sessao.access_token}'}
