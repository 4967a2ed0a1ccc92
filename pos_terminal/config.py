# ==============================================================================
# CONFIGURACIÓN DEL TERMINAL
# ==============================================================================
# Todo se lee desde variables de entorno. Ejemplo:
#   export POS_API_BASE_URL="http://192.168.1.10:8080/api"
#   export POS_SECRET_KEY="tu_clave_secreta_muy_larga_y_aleatoria"
#
# Variables:
#   POS_API_BASE_URL        → URL base de catálogo / ventas / identidad
#   POS_HTTP_TIMEOUT        → Timeout HTTP en segundos (default 10)
#   POS_SECRET_KEY          → Clave de sesión de Flask
#   POS_PRODUCTION_MODE     → 1/0 (default 1)
#   POS_LOW_STOCK_THRESHOLD → Umbral de stock bajo del panel (default 5)
#   POS_ENABLE_PROFILING    → 1/0 (default 1)
#   POS_LOGS_DIR            → Carpeta de logs (default pos_terminal/logs)
# ==============================================================================

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional


_DEFAULT_SECRET = "pos_terminal_dev_secret_key_change_in_production"
_DEFAULT_LOGS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'logs')

_TRUE_VALUES = frozenset(['1', 'true', 'yes', 'si', 'sí', 'on'])


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class Settings:
    """
    Configuración del terminal.

    Attributes:
        api_base_url: URL base de los servicios externos (sin barra final)
        http_timeout: Timeout de cada llamada HTTP (segundos)
        secret_key: Clave para firmar la cookie de sesión
        production_mode: True = sin mensajes de depuración
        low_stock_threshold: Umbral por defecto del listado de stock bajo
        enable_profiling: Activa el registro de tiempos de rutas y llamadas
        logs_dir: Carpeta donde se escriben los logs
    """
    api_base_url: str = 'http://localhost:8080/api'
    http_timeout: float = 10.0
    secret_key: str = _DEFAULT_SECRET
    production_mode: bool = True
    low_stock_threshold: int = 5
    enable_profiling: bool = True
    logs_dir: str = field(default=_DEFAULT_LOGS_DIR)

    def __post_init__(self):
        self.api_base_url = self.api_base_url.rstrip('/')
        if self.http_timeout <= 0:
            raise ValueError('POS_HTTP_TIMEOUT debe ser mayor a 0')
        if self.low_stock_threshold < 0:
            raise ValueError('POS_LOW_STOCK_THRESHOLD no puede ser negativo')

    @property
    def uses_default_secret(self) -> bool:
        return self.secret_key == _DEFAULT_SECRET

    @classmethod
    def from_env(cls, environ: Mapping[str, str] = None) -> 'Settings':
        """
        Construye la configuración desde variables de entorno.

        Args:
            environ: Mapeo de variables (por defecto os.environ)

        Raises:
            ValueError: Si un valor numérico es inválido
        """
        env = os.environ if environ is None else environ

        production_mode = _env_bool(env.get('POS_PRODUCTION_MODE'), True)
        secret_key = env.get('POS_SECRET_KEY')
        if production_mode and not secret_key:
            print("[ADVERTENCIA] POS_PRODUCTION_MODE activo sin POS_SECRET_KEY definida")
            print("[ADVERTENCIA] Define la variable de entorno para mayor seguridad")

        return cls(
            api_base_url=env.get('POS_API_BASE_URL') or cls.api_base_url,
            http_timeout=float(env.get('POS_HTTP_TIMEOUT') or cls.http_timeout),
            secret_key=secret_key or _DEFAULT_SECRET,
            production_mode=production_mode,
            low_stock_threshold=int(env.get('POS_LOW_STOCK_THRESHOLD') or cls.low_stock_threshold),
            enable_profiling=_env_bool(env.get('POS_ENABLE_PROFILING'), True),
            logs_dir=env.get('POS_LOGS_DIR') or _DEFAULT_LOGS_DIR,
        )
