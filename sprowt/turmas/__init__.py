"""
Módulo de Turmas (Blueprint)
"""

from flask import Blueprint

turmas_bp = Blueprint('turmas_bp', __name__, url_prefix='/turmas')

from . import routes
