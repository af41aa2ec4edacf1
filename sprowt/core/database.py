"""
Módulo de Conexão com o Banco de Dados (Core)

Constrói o cliente do Google Firestore uma vez, na Application Factory,
e o entrega explicitamente a quem precisa (sessão, controle de acesso e
repositórios). Não há instância global de módulo.
"""

from contextlib import contextmanager

from flask import current_app
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from .errors import BackendError
from .logger import get_logger

logger = get_logger(__name__)

EXTENSAO_FIRESTORE = 'sprowt.firestore'


def criar_cliente(project: str = None) -> firestore.Client:
    """
    Inicializa o cliente do Firestore.

    O SDK busca as credenciais em 'GOOGLE_APPLICATION_CREDENTIALS' (.env).
    """
    try:
        client = firestore.Client(project=project)
        logger.info("Conexão com o Firestore estabelecida com sucesso.")
        return client
    except Exception as e:
        logger.critical(f"ERRO AO CONECTAR COM O FIRESTORE: {e}", exc_info=True)
        raise BackendError(f"Não foi possível conectar ao Firestore: {e}") from e


def init_app(app, client=None) -> None:
    """Registra o cliente (injetado ou criado a partir da config) na app."""
    if client is None:
        client = criar_cliente(app.config.get('GOOGLE_CLOUD_PROJECT'))
    app.extensions[EXTENSAO_FIRESTORE] = client


def get_client():
    return current_app.extensions[EXTENSAO_FIRESTORE]


@contextmanager
def backend(operacao: str):
    """
    Converte falhas do SDK do Firestore em BackendError, repassando a mensagem.
    """
    try:
        yield
    except google_exceptions.GoogleAPIError as e:
        logger.error(f"Falha no Firestore ao {operacao}: {e}", exc_info=True)
        raise BackendError(f"Erro ao {operacao}: {e}") from e
