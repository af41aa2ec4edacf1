"""
Módulo Central de Extensões.
Evita importações circulares centralizando as instâncias das extensões.
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect

# 1. Limiter (Rate Limiting)
limiter = Limiter(
    key_func=get_remote_address,
    # Armazenamento vem de RATELIMIT_STORAGE_URI (memória por padrão)
    default_limits=["1000 per day", "200 per hour"]
)

# 2. CSRF Protection
csrf = CSRFProtect()
