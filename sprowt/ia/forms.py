from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Length, Optional

from sprowt.core.ai import TIPOS_AJUDA


class SolicitacaoIAForm(FlaskForm):
    class Meta:
        csrf = False

    prompt = TextAreaField('Pergunta', validators=[
        DataRequired(message="Escreva o pedido ao assistente"),
        Length(max=4000),
    ])
    tipo = StringField('Tipo de ajuda', default='conversa_livre', validators=[
        Optional(),
        AnyOf(list(TIPOS_AJUDA), message="Tipo de ajuda inválido"),
    ])
    aluno_id = StringField('Aluno', validators=[Optional()])
    contexto = TextAreaField('Contexto', validators=[Optional(), Length(max=4000)])
