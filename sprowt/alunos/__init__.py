"""
Módulo de Alunos (Blueprint)
"""

from flask import Blueprint

alunos_bp = Blueprint('alunos_bp', __name__, url_prefix='/alunos')

from . import routes
