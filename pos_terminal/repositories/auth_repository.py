# ==============================================================================
# REPOSITORIO DE IDENTIDAD - Cliente del proveedor de sesiones
# ==============================================================================

from typing import Any

from pos_terminal.errors import TransportError
from pos_terminal.models import Session, User
from pos_terminal.performance_logger import profile_function
from pos_terminal.repositories.base import HttpRepository


def _parse_user(data: Any) -> User:
    if not isinstance(data, dict):
        raise TransportError('Respuesta de usuario inválida')
    try:
        return User.from_dict(data)
    except (KeyError, ValueError, TypeError) as exc:
        raise TransportError('Respuesta de usuario inválida', cause=exc) from exc


class AuthRepository(HttpRepository):
    """
    Acceso al proveedor de identidad.

    Endpoints:
        POST /auth/login  {email, password} → {token, user}
        GET  /users/me                      → User
    """

    @profile_function(name="Iniciar sesión")
    def login(self, email: str, password: str) -> Session:
        """
        Autentica credenciales.

        Raises:
            AuthenticationError: Credenciales inválidas (401)
            TransportError: Fallo de red o respuesta inválida
        """
        data = self._post('/auth/login', json_body={'email': email, 'password': password})
        if not isinstance(data, dict) or not data.get('token'):
            raise TransportError('Respuesta de inicio de sesión inválida')
        return Session(token=str(data['token']), user=_parse_user(data.get('user')))

    @profile_function(name="Usuario actual")
    def get_current_user(self) -> User:
        return _parse_user(self._get('/users/me'))
