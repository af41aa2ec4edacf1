"""
Módulo de Relatórios (Blueprint)
"""

from flask import Blueprint

relatorios_bp = Blueprint('relatorios_bp', __name__, url_prefix='/relatorios')

from . import routes
