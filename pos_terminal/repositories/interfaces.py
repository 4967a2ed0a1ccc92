# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos (protocolos) de los servicios externos que usa el terminal.
#
# 1. INDEPENDENCIA DEL TRANSPORTE
#    - Los servicios dependen de interfaces, NO de implementaciones HTTP
#    - Cambiar de API REST a otro transporte solo requiere nueva implementación
#
# 2. TESTING
#    - Los tests usan repositorios falsos que cumplen estas interfaces
#    - Sin red ni servidor real
#
# ERRORES:
# Toda implementación debe lanzar solo subclases de PosError (errors.py):
# TransportError, RemoteRejectedError o AuthenticationError.
# ==============================================================================

from typing import List, Protocol, runtime_checkable

from pos_terminal.models import Product, SaleRequest, SaleResult, Session, User


@runtime_checkable
class ICatalogRepository(Protocol):
    """
    Interfaz del servicio de catálogo (solo lectura).
    """

    def list_products(self) -> List[Product]:
        """Obtiene el catálogo completo."""
        ...

    def list_low_stock(self, threshold: int) -> List[Product]:
        """Obtiene los productos con stock <= threshold."""
        ...


@runtime_checkable
class ISalesRepository(Protocol):
    """
    Interfaz del libro de ventas.

    create_sale se llama UNA sola vez por intento de venta (sin reintentos).
    """

    def create_sale(self, request: SaleRequest) -> SaleResult:
        """Registra una venta y devuelve el registro autoritativo."""
        ...

    def get_sale(self, sale_id: int) -> SaleResult:
        """Obtiene una venta por ID (boleta)."""
        ...

    def list_sales(self) -> List[SaleResult]:
        """Obtiene el historial de ventas."""
        ...


@runtime_checkable
class IAuthRepository(Protocol):
    """
    Interfaz del proveedor de identidad.
    """

    def login(self, email: str, password: str) -> Session:
        """Autentica credenciales y devuelve token + usuario."""
        ...

    def get_current_user(self) -> User:
        """Obtiene el usuario asociado al token actual."""
        ...
