from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import AnyOf, DataRequired, Length, Optional

from sprowt.core.constants import COR_PADRAO, CORES_TURMA


class TurmaForm(FlaskForm):
    class Meta:
        csrf = False

    nome = StringField('Nome', validators=[
        DataRequired(message="Nome é obrigatório"),
        Length(max=100, message="Nome deve ter até 100 caracteres"),
    ])
    faixa_etaria = StringField('Faixa etária', validators=[
        DataRequired(message="Faixa etária é obrigatória"),
        Length(max=50),
    ])
    cor = StringField('Cor', default=COR_PADRAO, validators=[
        Optional(),
        AnyOf(list(CORES_TURMA), message="Cor inválida"),
    ])
    # Só tem efeito para admin; professor recebe 403 se informar outro id
    professor_id = StringField('Professor', validators=[Optional()])
