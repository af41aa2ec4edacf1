"""
Módulo do Assistente de IA (Blueprint)
"""

from flask import Blueprint

ia_bp = Blueprint('ia_bp', __name__, url_prefix='/ia')

from . import routes
