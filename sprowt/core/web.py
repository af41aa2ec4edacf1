"""
Funções auxiliares compartilhadas pelas rotas JSON.
"""

from datetime import datetime, time, timezone

from flask import g, jsonify, request
from wtforms import IntegerField

from .confirmation import ConfirmacaoPreAutorizada
from .delete_helpers import DeleteHelper
from .errors import InvalidInput


def dados_requisicao() -> dict:
    dados = request.get_json(silent=True)
    return dados if isinstance(dados, dict) else {}


def _tipo_aceito(campo, valor) -> bool:
    if valor is None:
        return True
    if isinstance(campo, IntegerField):
        # bool é subclasse de int; 2.5 viraria 2 no int() do WTForms
        return isinstance(valor, int) and not isinstance(valor, bool)
    return isinstance(valor, str)


def montar_form(form_class):
    """
    Instancia o FlaskForm a partir do corpo JSON, recusando antes valores
    de tipo errado (número onde se espera texto, 2.5 ou true numa nota).
    """
    bruto = request.get_json(silent=True)
    if bruto is not None and not isinstance(bruto, dict):
        raise InvalidInput("O corpo da requisição deve ser um objeto JSON.")
    corpo = dados_requisicao()
    form = form_class(formdata=None)
    errados = [campo.name for campo in form if campo.name in corpo and not _tipo_aceito(campo, corpo[campo.name])]
    if errados:
        raise InvalidInput(f"Dados inválidos (tipo incorreto em: {', '.join(errados)}).")
    return form_class()


def exigir_form(form_class) -> dict:
    """Monta e valida o FlaskForm; em caso de erro levanta InvalidInput com os campos."""
    form = montar_form(form_class)
    if not form.validate():
        campos = "; ".join(f"{campo}: {', '.join(erros)}" for campo, erros in form.errors.items())
        raise InvalidInput(f"Dados inválidos ({campos}).")
    return {campo.name: campo.data for campo in form}


def campos_enviados(*ignorar) -> dict:
    """
    Atualização parcial: só as chaves presentes no JSON seguem adiante.
    Chaves desconhecidas são recusadas depois, pela validação do repositório.
    """
    return {chave: valor for chave, valor in dados_requisicao().items() if chave not in ignorar}


def data_parametro(nome: str, fim_do_dia: bool = False):
    """Lê ?nome=AAAA-MM-DD[THH:MM] como datetime em UTC."""
    valor = request.args.get(nome)
    if not valor:
        return None
    try:
        momento = datetime.fromisoformat(valor)
    except ValueError:
        raise InvalidInput(f"Parâmetro '{nome}' deve estar no formato AAAA-MM-DD.")
    if fim_do_dia and len(valor) == 10:
        momento = datetime.combine(momento.date(), time.max)
    if momento.tzinfo is None:
        momento = momento.replace(tzinfo=timezone.utc)
    return momento


def excluir_com_confirmacao(metodo: str, *args, complemento=None):
    """
    Executa um DeleteHelper.delete_* com as confirmações que o navegador
    reenviou em `confirmacoes`. Etapa pendente → 409 com o diálogo a exibir.
    `complemento()` acrescenta dados à resposta de sucesso.
    """
    corpo = dados_requisicao()
    confirm = ConfirmacaoPreAutorizada(corpo.get('confirmacoes') or ())
    avisos, resultados, falhas = [], [], []

    helper = DeleteHelper(g.database)
    ok = getattr(helper, metodo)(
        *args,
        confirm=confirm,
        notificar=lambda titulo, descricao, variante: avisos.append(
            {'title': titulo, 'description': descricao, 'variant': variante}
        ),
        on_success=resultados.append,
        on_error=falhas.append,
    )

    if ok:
        resposta = {**resultados[0].to_dict(), 'aviso': avisos[-1]}
        if complemento:
            resposta.update(complemento())
        return jsonify(resposta), 200
    if falhas:
        raise falhas[0]
    return jsonify({'confirmacao': confirm.pendente.to_dict()}), 409
