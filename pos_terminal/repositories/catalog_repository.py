# ==============================================================================
# REPOSITORIO DE CATÁLOGO - Cliente del servicio de productos
# ==============================================================================

from typing import Any, List

from pos_terminal.errors import TransportError
from pos_terminal.models import Product
from pos_terminal.performance_logger import profile_function
from pos_terminal.repositories.base import HttpRepository


def parse_products(data: Any) -> List[Product]:
    """
    Convierte la respuesta JSON del catálogo en productos.

    Raises:
        TransportError: Si la respuesta no es una lista de productos válidos
    """
    if data is None:
        return []
    if not isinstance(data, list):
        raise TransportError('Respuesta de catálogo inválida')
    try:
        return [Product.from_dict(item) for item in data]
    except (KeyError, ValueError, TypeError) as exc:
        raise TransportError('Respuesta de catálogo inválida', cause=exc) from exc


class CatalogRepository(HttpRepository):
    """
    Acceso al servicio de catálogo.

    Endpoints:
        GET /catalog/products
        GET /catalog/products?lowStockThreshold=N
    """

    PRODUCTS_PATH = '/catalog/products'

    @profile_function(name="Cargar catálogo")
    def list_products(self) -> List[Product]:
        return parse_products(self._get(self.PRODUCTS_PATH))

    @profile_function(name="Consultar stock bajo")
    def list_low_stock(self, threshold: int) -> List[Product]:
        """
        Obtiene productos con stock menor o igual al umbral.

        Args:
            threshold: Umbral de stock (>= 0)
        """
        data = self._get(self.PRODUCTS_PATH, params={'lowStockThreshold': threshold})
        return parse_products(data)
