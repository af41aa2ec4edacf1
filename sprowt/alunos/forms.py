from flask_wtf import FlaskForm
from wtforms import DateField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional


class AlunoForm(FlaskForm):
    class Meta:
        csrf = False

    nome = StringField('Nome', validators=[
        DataRequired(message="Nome é obrigatório"),
        Length(max=100, message="Nome deve ter até 100 caracteres"),
    ])
    turma_id = StringField('Turma', validators=[DataRequired(message="Selecione a turma")])
    data_nascimento = DateField('Data de nascimento', format='%Y-%m-%d', validators=[
        DataRequired(message="Data de nascimento é obrigatória (AAAA-MM-DD)"),
    ])
    responsavel = StringField('Responsável', validators=[
        DataRequired(message="Responsável é obrigatório"),
        Length(max=100),
    ])
    telefone = StringField('Telefone', validators=[Optional(), Length(max=20)])
    observacoes = TextAreaField('Observações', validators=[Optional()])
    professor_id = StringField('Professor', validators=[Optional()])
