"""
Configuração Centralizada de IA (GenAI) e o Assistente Pedagógico.

- ServicoIA: a "função" do assistente. Recebe o prompt com o cabeçalho
  Authorization da sessão, confere o token e consulta o Gemini.
  Responde {success, resposta, metadata} ou {success: False, error}.
- solicitar_ia: o lado de quem chama. Anexa o token, converte qualquer falha
  em AIServiceError e não tenta de novo.
"""

from datetime import datetime, timezone

import google.generativeai as genai
from flask import current_app

from .errors import AIServiceError, NotAuthenticated, SprowtError
from .logger import get_logger

logger = get_logger(__name__)

FUNCAO_ASSISTENTE = 'assistente-ia'
EXTENSAO_IA = 'sprowt.ia'
MODELO_PADRAO = 'gemini-2.5-flash'

TIPOS_AJUDA = {
    'gerar_relatorio': "Gerar relatório completo",
    'revisar_relatorio': "Revisar relatório existente",
    'sugestoes_atividades': "Sugestões de atividades",
    'analise_desenvolvimento': "Análise de desenvolvimento",
    'conversa_livre': "Conversa livre sobre educação",
}

INSTRUCAO_SISTEMA = (
    "Você é um assistente pedagógico para professores de educação infantil. "
    "Use linguagem positiva, construtiva e adequada à faixa etária."
)

_configurado: bool = False


def configurar_genai(api_key: str = None) -> None:
    """
    Configura a API Key do Gemini uma única vez.
    """
    global _configurado
    if _configurado:
        return

    api_key = api_key or current_app.config.get('GOOGLE_API_KEY')
    if not api_key:
        raise ValueError("GOOGLE_API_KEY não configurada.")

    genai.configure(api_key=api_key)
    _configurado = True


def get_generative_model(nome_modelo: str = None) -> genai.GenerativeModel:
    configurar_genai()
    nome_modelo = nome_modelo or current_app.config.get('GEMINI_MODEL', MODELO_PADRAO)
    return genai.GenerativeModel(nome_modelo, system_instruction=INSTRUCAO_SISTEMA)


def montar_prompt(prompt: str, tipo: str, aluno_nome: str = None, contexto: str = None) -> str:
    partes = [f"Tipo de ajuda: {TIPOS_AJUDA.get(tipo, tipo)}"]
    if aluno_nome:
        partes.append(f"Aluno: {aluno_nome}")
    if contexto:
        partes.append(f"Contexto do professor:\n{contexto}")
    partes.append(prompt)
    return "\n\n".join(partes)


class ServicoIA:
    def __init__(self, auth_client, nome_modelo: str = None):
        self.auth_client = auth_client
        self.nome_modelo = nome_modelo

    def _verificar_token(self, headers: dict):
        autorizacao = (headers or {}).get('Authorization', '')
        esquema, _, token = autorizacao.partition(' ')
        if esquema != 'Bearer' or not token:
            raise NotAuthenticated()
        return self.auth_client.get_user(token)

    def invoke(self, function_name: str, body: dict, headers: dict) -> dict:
        if function_name != FUNCAO_ASSISTENTE:
            return {'success': False, 'error': f"Função desconhecida: {function_name}"}

        try:
            user = self._verificar_token(headers)
        except SprowtError as e:
            return {'success': False, 'error': e.mensagem}

        prompt = (body or {}).get('prompt', '').strip()
        tipo = (body or {}).get('tipo') or 'conversa_livre'
        if not prompt:
            return {'success': False, 'error': "Prompt vazio."}

        texto = montar_prompt(prompt, tipo, body.get('alunoNome'), body.get('contexto'))
        try:
            model = get_generative_model(self.nome_modelo)
            response = model.generate_content(texto)
            resposta = (response.text or '').strip()
        except Exception as e:
            logger.error(f"Erro na chamada ao Gemini: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

        if not resposta:
            return {'success': False, 'error': "O modelo não retornou texto."}

        logger.info(f"IA respondeu ({tipo}) para {user.email}")
        return {
            'success': True,
            'resposta': resposta,
            'metadata': {
                'tipo': tipo,
                'alunoNome': body.get('alunoNome'),
                'modelo': model.model_name,
                'geradoEm': datetime.now(timezone.utc).isoformat(),
            },
        }


def solicitar_ia(servico, sessao, prompt: str, tipo: str,
                 aluno_nome: str = None, contexto: str = None) -> str:
    """Envia o pedido ao assistente em nome da sessão corrente e devolve o texto."""
    headers = sessao.authorization_header()
    corpo = {'prompt': prompt, 'tipo': tipo}
    if aluno_nome:
        corpo['alunoNome'] = aluno_nome
    if contexto:
        corpo['contexto'] = contexto

    try:
        resultado = servico.invoke(FUNCAO_ASSISTENTE, corpo, headers)
    except Exception as e:
        logger.error(f"Falha de transporte no assistente de IA: {e}", exc_info=True)
        raise AIServiceError() from e

    if not resultado or not resultado.get('success'):
        erro = (resultado or {}).get('error') or AIServiceError.mensagem_padrao
        logger.warning(f"Assistente de IA recusou o pedido: {erro}")
        raise AIServiceError(f"Não foi possível obter resposta da IA: {erro}")
    return resultado['resposta']
