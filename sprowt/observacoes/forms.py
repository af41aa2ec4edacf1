from flask_wtf import FlaskForm
from wtforms import DateTimeField, IntegerField, StringField, TextAreaField
from wtforms.validators import AnyOf, DataRequired, InputRequired, Length, NumberRange, Optional

from sprowt.core.constants import AVALIACAO_MAX, AVALIACAO_MIN, OBS_MAX_CARACTERES, TIPOS_OBSERVACAO


class ObservacaoForm(FlaskForm):
    class Meta:
        csrf = False

    id_aluno = StringField('Aluno', validators=[DataRequired(message="Selecione o aluno")])
    tipo_obs = StringField('Tipo', validators=[
        DataRequired(message="Tipo é obrigatório"),
        AnyOf(list(TIPOS_OBSERVACAO), message="Tipo de observação inválido"),
    ])
    range_avaliacao = IntegerField('Avaliação', validators=[
        InputRequired(message="Avaliação é obrigatória"),
        NumberRange(min=AVALIACAO_MIN, max=AVALIACAO_MAX, message="A avaliação deve estar entre 1 e 5"),
    ])
    obs = TextAreaField('Observação', validators=[
        DataRequired(message="Descreva a observação"),
        Length(max=OBS_MAX_CARACTERES, message="Máximo de 500 caracteres"),
    ])
    data_registro = DateTimeField(
        'Data do registro',
        format=['%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M', '%Y-%m-%d %H:%M:%S'],
        validators=[Optional()],
    )
    professor_id = StringField('Professor', validators=[Optional()])
