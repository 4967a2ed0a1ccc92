# ==============================================================================
# REPOSITORIO DE VENTAS - Cliente del libro de ventas
# ==============================================================================
# El libro de ventas es la autoridad sobre stock, precios y totales.
# Este cliente solo envía producto + cantidad y devuelve lo que el
# servidor registró, sin recalcular nada.
# ==============================================================================

from typing import Any, List

from pos_terminal.errors import TransportError
from pos_terminal.models import SaleRequest, SaleResult
from pos_terminal.performance_logger import profile_function
from pos_terminal.repositories.base import HttpRepository


def parse_sale(data: Any) -> SaleResult:
    """
    Convierte la respuesta JSON de una venta.

    Raises:
        TransportError: Si la respuesta está vacía o malformada
    """
    if not isinstance(data, dict):
        raise TransportError('Respuesta de venta inválida')
    try:
        return SaleResult.from_dict(data)
    except (KeyError, ValueError, TypeError) as exc:
        raise TransportError('Respuesta de venta inválida', cause=exc) from exc


class SalesRepository(HttpRepository):
    """
    Acceso al libro de ventas.

    Endpoints:
        POST /sales       → 201 SaleResult
        GET  /sales/{id}  → SaleResult
        GET  /sales       → SaleResult[]
    """

    SALES_PATH = '/sales'

    @profile_function(name="Registrar venta")
    def create_sale(self, request: SaleRequest) -> SaleResult:
        """
        Envía la venta al servidor (una sola vez, sin reintentos).

        Raises:
            RemoteRejectedError: Stock insuficiente, producto inexistente, etc.
            TransportError: Fallo de red o respuesta inválida
            AuthenticationError: Sesión expirada
        """
        return parse_sale(self._post(self.SALES_PATH, json_body=request.to_dict()))

    @profile_function(name="Consultar venta")
    def get_sale(self, sale_id: int) -> SaleResult:
        return parse_sale(self._get(f'{self.SALES_PATH}/{int(sale_id)}'))

    @profile_function(name="Listar ventas")
    def list_sales(self) -> List[SaleResult]:
        data = self._get(self.SALES_PATH)
        if data is None:
            return []
        if not isinstance(data, list):
            raise TransportError('Respuesta de ventas inválida')
        return [parse_sale(item) for item in data]
