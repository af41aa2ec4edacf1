from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, Length, Optional

from sprowt.core.constants import STATUS_RASCUNHO, STATUS_RELATORIO


class RelatorioForm(FlaskForm):
    class Meta:
        csrf = False

    aluno_id = StringField('Aluno', validators=[DataRequired(message="Selecione o aluno")])
    titulo = StringField('Título', validators=[
        DataRequired(message="Título é obrigatório"),
        Length(max=200),
    ])
    periodo = StringField('Período', validators=[
        DataRequired(message="Período é obrigatório"),
        Length(max=100),
    ])
    conteudo = TextAreaField('Conteúdo', validators=[Optional()])
    observacoes = TextAreaField('Observações', validators=[Optional()])
    status = StringField('Status', default=STATUS_RASCUNHO, validators=[
        Optional(),
        AnyOf(list(STATUS_RELATORIO), message="Status inválido"),
    ])
    professor_id = StringField('Professor', validators=[Optional()])


class GerarRelatorioForm(FlaskForm):
    """Pedido de rascunho de relatório escrito pelo assistente de IA."""

    class Meta:
        csrf = False

    aluno_id = StringField('Aluno', validators=[DataRequired(message="Selecione o aluno")])
    periodo = StringField('Período', validators=[
        DataRequired(message="Período é obrigatório"),
        Length(max=100),
    ])
    titulo = StringField('Título', validators=[Optional(), Length(max=200)])
    contexto = TextAreaField('Contexto', validators=[Optional(), Length(max=4000)])
