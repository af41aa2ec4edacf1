"""
Módulo de Logging Centralizado.

Todas as camadas (sessão, controle de acesso, repositórios e rotas) registram
por aqui: escritas em INFO, negações de permissão em WARNING e falhas do
Firestore/Gemini em ERROR com traceback.
"""

import logging
import os
import sys

FORMATO_LOG = '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'


def get_logger(name: str) -> logging.Logger:
    """
    Retorna o logger do módulo com saída padronizada em stdout.

    Args:
        name (str): Nome do módulo chamador (geralmente __name__).

    Returns:
        logging.Logger: Logger com um único StreamHandler.
    """
    logger = logging.getLogger(name)

    # Evita handlers duplicados quando o módulo é importado mais de uma vez
    if not logger.handlers:
        nivel = os.environ.get('LOG_LEVEL', 'INFO').upper()
        logger.setLevel(getattr(logging, nivel, logging.INFO))

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(FORMATO_LOG))
        logger.addHandler(handler)

    return logger
