"""
Módulo Principal da Aplicação (Application Factory)
"""

from flask import Flask, g, jsonify, session
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix # Importação necessária para o Cloud Run
from config import Config

from .auth.services import FirebaseAuthClient, SessionProvider
from .core import database
from .core.access import AccessControl
from .core.ai import EXTENSAO_IA, ServicoIA
from .core.errors import AIServiceError, BackendError, SprowtError
from .core.extensions import csrf, limiter
from .core.logger import get_logger
from .core.repository import Database
from .core.state import AppState

logger = get_logger(__name__)

EXTENSAO_AUTH = 'sprowt.auth'


def create_app(config_class=Config, firestore_client=None, auth_client=None, servico_ia=None):
    """
    Cria e configura uma instância da aplicação Flask.

    Os colaboradores externos (Firestore, Firebase Auth, assistente de IA)
    podem ser injetados; quando omitidos, são criados a partir da config.
    """

    app = Flask(__name__, instance_relative_config=True)

    # === CORREÇÃO HTTPS (Cloud Run) ===
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # 1. Carrega a configuração
    app.config.from_object(config_class)

    # 2. Colaboradores
    database.init_app(app, firestore_client)
    client = app.extensions[database.EXTENSAO_FIRESTORE]

    if auth_client is None:
        auth_client = FirebaseAuthClient(app.config.get('FIREBASE_API_KEY'), client)
    if servico_ia is None:
        servico_ia = ServicoIA(auth_client, app.config.get('GEMINI_MODEL'))
    app.extensions[EXTENSAO_AUTH] = auth_client
    app.extensions[EXTENSAO_IA] = servico_ia

    # 3. Extensões
    limiter.init_app(app)
    csrf.init_app(app)

    # 4. Contexto por requisição: sessão → controle de acesso → repositórios
    @app.before_request
    def montar_contexto():
        g.sessao = SessionProvider(auth_client, session)
        g.acesso = AccessControl(g.sessao, client)
        g.database = Database(client, g.acesso, app.config.get('ADMIN_LISTAGEM_GLOBAL', False))

    # 5. Tratamento único de erros
    @app.errorhandler(SprowtError)
    def tratar_erro(erro):
        if isinstance(erro, (BackendError, AIServiceError)):
            logger.error(f"{type(erro).__name__}: {erro.mensagem}", exc_info=erro)
        else:
            logger.warning(f"{type(erro).__name__}: {erro.mensagem}")
        return jsonify(erro.to_dict()), erro.status_code

    @app.errorhandler(HTTPException)
    def tratar_http(erro):
        return jsonify({'erro': erro.description, 'tipo': erro.name}), erro.code

    # 6. Blueprints
    from .auth import auth_bp
    app.register_blueprint(auth_bp)

    from .turmas import turmas_bp
    app.register_blueprint(turmas_bp)

    from .alunos import alunos_bp
    app.register_blueprint(alunos_bp)

    from .observacoes import observacoes_bp
    app.register_blueprint(observacoes_bp)

    from .relatorios import relatorios_bp
    app.register_blueprint(relatorios_bp)

    from .ia import ia_bp
    app.register_blueprint(ia_bp)

    # 7. Painel: carga coordenada do estado + contadores
    @app.route("/painel")
    def painel():
        g.acesso.validate_permissions()
        estado = AppState(g.database).carregar()
        return jsonify(estado.to_dict())

    # 8. Rota de Health Check
    @app.route("/health")
    def health_check():
        return "Servidor Sprowt no ar!", 200

    return app
