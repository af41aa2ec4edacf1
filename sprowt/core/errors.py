"""
Taxonomia de Erros da Camada de Dados.

Estes erros sobem até o handler registrado em create_app, que decide a
mensagem exibida e o log. Só a carga do painel (AppState) e o DeleteHelper
os tratam no caminho.
"""


class SprowtError(Exception):
    """Erro base com mensagem exibível ao usuário e status HTTP."""

    status_code = 500
    mensagem_padrao = "Erro inesperado."

    def __init__(self, mensagem: str = None):
        self.mensagem = mensagem or self.mensagem_padrao
        super().__init__(self.mensagem)

    def to_dict(self) -> dict:
        return {'erro': self.mensagem, 'tipo': type(self).__name__}


class NotAuthenticated(SprowtError):
    status_code = 401
    mensagem_padrao = "Sessão expirada ou inexistente. Faça login novamente."


class ProfileNotFound(SprowtError):
    status_code = 403
    mensagem_padrao = "Perfil do usuário não encontrado. Contate o administrador."


class PermissionDenied(SprowtError):
    status_code = 403
    mensagem_padrao = "Você não tem permissão para executar esta ação."


class CrossTenantWrite(PermissionDenied):
    mensagem_padrao = "Professores só podem gravar registros próprios."


class NotFound(SprowtError):
    status_code = 404
    mensagem_padrao = "Registro não encontrado."


class InvalidInput(SprowtError):
    status_code = 400
    mensagem_padrao = "Dados inválidos."


class BackendError(SprowtError):
    status_code = 502
    mensagem_padrao = "Falha de comunicação com o banco de dados."


class AIServiceError(SprowtError):
    status_code = 502
    mensagem_padrao = "O assistente de IA não respondeu. Tente novamente."


# === Autenticação ===

class InvalidCredentials(SprowtError):
    status_code = 401
    mensagem_padrao = "E-mail ou senha inválidos."


class EmailTaken(SprowtError):
    status_code = 409
    mensagem_padrao = "Este e-mail já está cadastrado."


class WeakPassword(SprowtError):
    status_code = 400
    mensagem_padrao = "A senha deve ter pelo menos 6 caracteres."
