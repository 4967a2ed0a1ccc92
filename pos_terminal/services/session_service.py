# ==============================================================================
# SERVICIO DE SESIÓN
# ==============================================================================
# Guarda la sesión del único operador del terminal (token bearer + usuario)
# y la expone a los repositorios como proveedor de token.
#
# Los roles (manager / cashier) solo se verifican en la frontera web;
# el carrito y el cobro únicamente exigen "hay sesión".
# ==============================================================================

import logging
import threading
from typing import Optional, Union

from pos_terminal.errors import AuthenticationError, PermissionDeniedError, ValidationError
from pos_terminal.models import Session, User, UserRole
from pos_terminal.repositories.interfaces import IAuthRepository


logger = logging.getLogger(__name__)


def require_role(session: Optional[Session], role: Union[UserRole, str]) -> Session:
    """
    Verifica que la sesión exista y tenga el rol indicado.

    Args:
        session: Sesión actual (o None)
        role: Rol exigido

    Returns:
        La misma sesión, para encadenar

    Raises:
        AuthenticationError: Si no hay sesión
        PermissionDeniedError: Si el rol no coincide
    """
    if session is None:
        raise AuthenticationError()
    if session.role != UserRole(role):
        raise PermissionDeniedError()
    return session


class SessionService:
    """
    Sesión del operador.

    Responsabilidades:
    - Iniciar / cerrar sesión contra el proveedor de identidad
    - Entregar el token a los repositorios HTTP
    - Verificar autenticación y rol en la frontera
    """

    def __init__(self, auth_repo: IAuthRepository = None):
        """
        Inicializa el servicio.

        Args:
            auth_repo: Repositorio del proveedor de identidad
        """
        self.auth_repo = auth_repo
        self._session: Optional[Session] = None
        self._lock = threading.Lock()

    @property
    def current(self) -> Optional[Session]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def token(self) -> Optional[str]:
        """Proveedor de token para los repositorios (None sin sesión)."""
        session = self._session
        return session.token if session else None

    def start(self, session: Session) -> Session:
        with self._lock:
            self._session = session
        logger.info("Sesión iniciada: %s (%s)", session.user.email, session.role.value)
        return session

    def login(self, email: str, password: str) -> Session:
        """
        Autentica contra el proveedor de identidad e inicia la sesión.

        Raises:
            ValidationError: Si faltan correo o contraseña
            AuthenticationError: Credenciales inválidas
            TransportError: Fallo de red
        """
        email = (email or '').strip()
        if not email or not password:
            raise ValidationError('Correo y contraseña requeridos')
        if self.auth_repo is None:
            raise AuthenticationError('No hay proveedor de identidad configurado')
        return self.start(self.auth_repo.login(email, password))

    def logout(self) -> None:
        with self._lock:
            session, self._session = self._session, None
        if session is not None:
            logger.info("Sesión cerrada: %s", session.user.email)

    def require_authenticated(self) -> Session:
        """
        Raises:
            AuthenticationError: Si no hay sesión activa
        """
        session = self._session
        if session is None:
            raise AuthenticationError()
        return session

    def require_role(self, role: Union[UserRole, str]) -> Session:
        return require_role(self._session, role)

    def refresh_user(self) -> User:
        """
        Vuelve a consultar el usuario actual (GET /users/me).

        Si el proveedor rechaza el token, la sesión se cierra.

        Raises:
            AuthenticationError: Sin sesión o token rechazado
        """
        session = self.require_authenticated()
        if self.auth_repo is None:
            return session.user
        try:
            user = self.auth_repo.get_current_user()
        except AuthenticationError:
            self.logout()
            raise
        with self._lock:
            if self._session is not None and self._session.token == session.token:
                self._session = Session(token=session.token, user=user)
        return user
