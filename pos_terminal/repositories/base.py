# ==============================================================================
# REPOSITORIO BASE - Funcionalidad común para acceso HTTP
# ==============================================================================
# Todas las llamadas a servicios externos pasan por HttpRepository._request,
# que traduce cada resultado a la taxonomía de errores del terminal:
#
#   excepción de requests (red, timeout)   → TransportError
#   401                                    → AuthenticationError
#   otro no-2xx con {"error": "..."}       → RemoteRejectedError (mensaje tal cual)
#   no-2xx sin mensaje utilizable          → TransportError("La solicitud falló con estado N")
#   2xx con cuerpo ilegible                → TransportError
#   204 / cuerpo vacío                     → None
# ==============================================================================

import logging
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

import requests

from pos_terminal.errors import AuthenticationError, RemoteRejectedError, TransportError


logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


def _error_message(resp: requests.Response) -> Optional[str]:
    """Extrae el campo "error" del cuerpo de una respuesta de error, si existe."""
    try:
        data = resp.json()
    except ValueError:
        return None
    if isinstance(data, dict):
        message = data.get('error')
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None


class HttpRepository:
    """
    Clase base para los clientes de los servicios externos.

    Mantiene una requests.Session reutilizable, adjunta el token bearer
    de la sesión actual y aplica el timeout configurado a cada llamada.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider = None,
        timeout: float = 10.0,
        http: requests.Session = None
    ):
        """
        Inicializa el repositorio.

        Args:
            base_url: URL base de la API (sin barra final)
            token_provider: Función que devuelve el token bearer actual (o None)
            timeout: Timeout de cada llamada en segundos
            http: Sesión de requests (inyectable para tests)
        """
        self.base_url = base_url.rstrip('/')
        self.token_provider = token_provider
        self.timeout = timeout
        self.http = http or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] = None,
        json_body: Any = None
    ) -> Any:
        """
        Ejecuta una llamada HTTP y devuelve el cuerpo JSON ya parseado.

        Los números decimales se parsean como Decimal.

        Returns:
            Cuerpo de la respuesta, o None si no hay contenido

        Raises:
            TransportError, AuthenticationError, RemoteRejectedError
        """
        url = f'{self.base_url}{path}'
        try:
            resp = self.http.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("Fallo de red en %s %s: %s", method, url, exc)
            raise TransportError(cause=exc) from exc

        status = resp.status_code
        if status == 401:
            raise AuthenticationError(_error_message(resp))

        if not 200 <= status < 300:
            message = _error_message(resp)
            logger.info("%s %s respondió %s: %s", method, url, status, message)
            if message:
                raise RemoteRejectedError(message, status_code=status)
            raise TransportError(f'La solicitud falló con estado {status}')

        if status == 204 or not resp.content:
            return None

        try:
            return resp.json(parse_float=Decimal)
        except ValueError as exc:
            logger.warning("Respuesta ilegible de %s %s", method, url)
            raise TransportError('Respuesta inválida del servidor', cause=exc) from exc

    def _get(self, path: str, params: Dict[str, Any] = None) -> Any:
        return self._request('GET', path, params=params)

    def _post(self, path: str, json_body: Any = None) -> Any:
        return self._request('POST', path, json_body=json_body)
