"""
Módulo de Observações Pedagógicas (Blueprint)
"""

from flask import Blueprint

observacoes_bp = Blueprint('observacoes_bp', __name__, url_prefix='/observacoes')

from . import routes
