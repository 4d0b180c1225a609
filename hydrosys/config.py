# ==============================================================================
# CONFIGURACIÓN - Variables de entorno
# ==============================================================================
# Toda la configuración se lee de variables de entorno con prefijo HYDROSYS_.
# En producción DEBE definirse HYDROSYS_SECRET_KEY.
#
#   export HYDROSYS_API_URL="http://backend:8181"
#   export HYDROSYS_SECRET_KEY="clave_larga_y_aleatoria"
# ==============================================================================

import os
from typing import Optional


BASE = os.path.dirname(os.path.abspath(__file__))

_DEFAULT_SECRET = "hydrosys_dev_secret_key_change_in_production"


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str) -> Optional[float]:
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class Config:
    """
    Configuración base de la aplicación.

    Se carga con app.config.from_object(Config()) y los servicios la
    reciben a través del contenedor de dependencias.
    """

    def __init__(self):
        # Modo producción: exige SECRET_KEY propia y cookies seguras
        self.PRODUCTION_MODE = _env_bool('HYDROSYS_PRODUCTION_MODE', False)

        self.SECRET_KEY = os.environ.get('HYDROSYS_SECRET_KEY') or _DEFAULT_SECRET

        # Backend REST principal
        self.API_URL = os.environ.get('HYDROSYS_API_URL', 'http://localhost:8181').rstrip('/')
        # None = sin timeout propio (se usa el del transporte)
        self.API_TIMEOUT = _env_float('HYDROSYS_API_TIMEOUT')

        # Fuente analítica de solo lectura (vista de detalles de pedidos)
        self.ANALYTICS_URL = os.environ.get('HYDROSYS_ANALYTICS_URL', '')
        self.ANALYTICS_API_KEY = os.environ.get('HYDROSYS_ANALYTICS_API_KEY', '')

        # Sesión durable para la CLI (la web usa la cookie firmada)
        self.SESSION_FILE = os.environ.get(
            'HYDROSYS_SESSION_FILE',
            os.path.join(os.path.expanduser('~'), '.hydrosys_session.json')
        )

        self.LOGS_DIR = os.environ.get('HYDROSYS_LOGS_DIR', os.path.join(BASE, 'logs'))
        self.ENABLE_PROFILING = _env_bool('HYDROSYS_ENABLE_PROFILING', True)

        # Compensación best-effort del checkout (desactivada: el pedido queda)
        self.CHECKOUT_COMPENSATE = _env_bool('HYDROSYS_CHECKOUT_COMPENSATE', False)

        self.CSRF_ENABLED = _env_bool('HYDROSYS_CSRF_ENABLED', True)

        # Cookies de sesión
        self.SESSION_COOKIE_HTTPONLY = True
        self.SESSION_COOKIE_SECURE = self.PRODUCTION_MODE
        self.SESSION_COOKIE_SAMESITE = 'Lax'
        self.PERMANENT_SESSION_LIFETIME = 86400  # 24 horas

    @property
    def has_custom_secret(self) -> bool:
        return self.SECRET_KEY != _DEFAULT_SECRET
