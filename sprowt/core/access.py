"""
Controle de Acesso.

Porta de entrada de toda operação dos repositórios: resolve o usuário da
sessão, carrega o perfil (admin | professor) e decide em nome de quem uma
escrita pode ser feita.
"""

from pydantic import ValidationError

from .constants import (
    COLECAO_PROFILES,
    PROFESSOR_DESCONHECIDO,
    TIPO_ADMIN,
    TIPOS_PERFIL,
)
from .database import backend
from .errors import BackendError, CrossTenantWrite, NotAuthenticated, PermissionDenied, ProfileNotFound
from .logger import get_logger
from .schemas import Profile, ProfileRow

logger = get_logger(__name__)


class AccessControl:
    def __init__(self, sessao, client):
        self.sessao = sessao
        self.db = client
        self._profiles = {}

    def get_current_user(self):
        # A primeira verificação de sessão precisa terminar antes de olhar o usuário
        self.sessao.initialize()
        user = self.sessao.user
        if user is None:
            raise NotAuthenticated()
        return user

    def get_profile(self, user_id: str) -> Profile:
        if user_id in self._profiles:
            return self._profiles[user_id]

        with backend("carregar perfil"):
            doc = self.db.collection(COLECAO_PROFILES).document(user_id).get()
        if not doc.exists:
            logger.error(f"Usuário autenticado sem perfil: {user_id}")
            raise ProfileNotFound()

        try:
            linha = ProfileRow.model_validate({**(doc.to_dict() or {}), 'id': doc.id})
        except ValidationError as e:
            logger.error(f"{COLECAO_PROFILES}/{user_id} em formato inesperado: {e}")
            raise BackendError("Perfil com dados inconsistentes no banco.") from e
        profile = Profile(id=linha.id, nome=linha.nome, tipo=linha.tipo)
        self._profiles[user_id] = profile
        return profile

    def validate_permissions(self):
        """Retorna (user, profile) se o papel for reconhecido."""
        user = self.get_current_user()
        profile = self.get_profile(user.id)
        if profile.tipo not in TIPOS_PERFIL:
            logger.warning(f"Papel desconhecido '{profile.tipo}' para {user.email}")
            raise PermissionDenied()
        return user, profile

    def is_admin(self) -> bool:
        _, profile = self.validate_permissions()
        return profile.tipo == TIPO_ADMIN

    def determine_owner(self, explicit_professor_id: str = None) -> str:
        """
        Admin grava em nome de quem indicar (ou de si mesmo);
        professor só grava em nome próprio.
        """
        _, profile = self.validate_permissions()
        if profile.tipo == TIPO_ADMIN:
            return explicit_professor_id or profile.id

        if explicit_professor_id and explicit_professor_id != profile.id:
            logger.warning(
                f"Escrita cruzada bloqueada: {profile.id} tentou gravar para {explicit_professor_id}"
            )
            raise CrossTenantWrite()
        return profile.id

    def get_owner_name(self, professor_id: str) -> str:
        try:
            return self.get_profile(professor_id).nome or PROFESSOR_DESCONHECIDO
        except ProfileNotFound:
            return PROFESSOR_DESCONHECIDO
