# ==============================================================================
# ERRORES DEL MOTOR DE CAJA
# ==============================================================================
# Taxonomía de errores tipados. Ninguna operación del motor que pueda fallar
# termina en una excepción genérica: siempre se lanza una subclase de PosError.
#
#   PosError
#   ├── ValidationError          → detectados localmente, nunca llegan a la red
#   │   ├── EmptyCartError
#   │   ├── NegativePaymentError
#   │   └── CheckoutInProgressError
#   ├── RemoteRejectedError      → el servidor rechazó (stock, precio, validación)
#   ├── TransportError           → red caída, respuesta malformada, HTTP sin mensaje
#   │   └── CatalogFetchError
#   ├── AuthenticationError      → 401 / sin sesión (redirigir a login)
#   └── PermissionDeniedError    → rol insuficiente (solo en la frontera web)
# ==============================================================================

from typing import Optional


class PosError(Exception):
    """Error base del terminal."""

    default_message = 'Error inesperado'

    def __init__(self, message: Optional[str] = None, cause: Optional[Exception] = None):
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# ==============================================================================
# ERRORES DE VALIDACIÓN (locales)
# ==============================================================================

class ValidationError(PosError):
    """Precondición incumplida antes de cualquier llamada de red."""
    default_message = 'Datos inválidos'


class EmptyCartError(ValidationError):
    default_message = 'El carrito está vacío'


class NegativePaymentError(ValidationError):
    default_message = 'El monto pagado no puede ser negativo'


class CheckoutInProgressError(ValidationError):
    default_message = 'Ya hay una venta en proceso'


# ==============================================================================
# ERRORES REMOTOS
# ==============================================================================

class RemoteRejectedError(PosError):
    """
    El servicio remoto rechazó la operación con un mensaje utilizable.

    El mensaje se muestra tal cual al operador (ej: stock insuficiente).
    """
    default_message = 'El servidor rechazó la operación'

    def __init__(self, message: Optional[str] = None, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class TransportError(PosError):
    """Fallo de red, respuesta malformada o error HTTP sin mensaje."""
    default_message = 'No se pudo comunicar con el servidor'


class CatalogFetchError(TransportError):
    default_message = 'No se pudo cargar el catálogo de productos'


class AuthenticationError(PosError):
    """Sesión ausente o credencial rechazada (HTTP 401)."""
    default_message = 'Debes iniciar sesión'


class PermissionDeniedError(PosError):
    default_message = 'Permiso denegado'
