from flask_wtf import FlaskForm
from wtforms import PasswordField, StringField
from wtforms.validators import DataRequired, Length, Regexp


class LoginForm(FlaskForm):
    class Meta:
        csrf = False # O CSRF é tratado globalmente (CSRFProtect)

    email = StringField('E-mail', validators=[
        DataRequired(message="E-mail é obrigatório"),
        Regexp(r'^[^@\s]+@[^@\s]+\.[^@\s]+$', message="E-mail inválido"),
    ])
    password = PasswordField('Senha', validators=[DataRequired(message="Senha é obrigatória")])


class SignUpForm(LoginForm):
    nome = StringField('Nome', validators=[
        DataRequired(message="Nome é obrigatório"),
        Length(min=3, max=100, message="Nome deve ter entre 3 e 100 caracteres"),
    ])
    password = PasswordField('Senha', validators=[
        DataRequired(message="Senha é obrigatória"),
        Length(min=6, message="A senha deve ter pelo menos 6 caracteres"),
    ])


class PerfilForm(FlaskForm):
    class Meta:
        csrf = False

    nome = StringField('Nome', validators=[
        DataRequired(message="Nome é obrigatório"),
        Length(min=3, max=100, message="Nome deve ter entre 3 e 100 caracteres"),
    ])
