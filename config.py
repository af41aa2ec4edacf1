"""
Módulo de Configuração

Define a classe de configuração principal. Implementa o padrão 'Fail Fast':
se uma variável crítica estiver faltando, a aplicação nem inicia.
"""

import os
from dotenv import load_dotenv

# Carrega variáveis do arquivo .env
load_dotenv()


class Config:
    """
    Classe de configuração base da aplicação.
    """

    # === SEGURANÇA CRÍTICA (Fail Fast) ===
    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        raise ValueError("ERRO CRÍTICO: 'SECRET_KEY' não encontrada no .env. A aplicação não pode iniciar insegura.")

    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'False').lower() in ('true', '1')

    # === FIRESTORE & AUTH ===
    GOOGLE_CLOUD_PROJECT = os.environ.get('GOOGLE_CLOUD_PROJECT')
    FIREBASE_API_KEY = os.environ.get('FIREBASE_API_KEY')

    if not FIREBASE_API_KEY:
        print("AVISO: 'FIREBASE_API_KEY' ausente. Login e cadastro não funcionarão.")

    # Admin vê apenas os próprios registros nas listagens, a menos que isto seja ligado
    ADMIN_LISTAGEM_GLOBAL = os.environ.get('ADMIN_LISTAGEM_GLOBAL', 'False').lower() in ('true', '1')

    # === IA ===
    GOOGLE_API_KEY = os.environ.get('GOOGLE_API_KEY')
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-2.5-flash')

    if not GOOGLE_API_KEY:
        print("AVISO: 'GOOGLE_API_KEY' ausente. O assistente de IA não funcionará.")

    # === FLASK ===
    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1')

    # === RATE LIMIT ===
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_ENABLED = True
