# ==============================================================================
# VISTA DE CATÁLOGO
# ==============================================================================
# Mantiene una instantánea de solo lectura del catálogo y resuelve búsquedas.
#
# El estado es explícito:
#   NotLoaded          → nunca se cargó
#   Loaded(products)   → última carga exitosa
#   LoadFailed(msg)    → última carga falló (el catálogo se ve vacío)
#
# El estado se reemplaza completo en cada carga, nunca se modifica en sitio.
# ==============================================================================

import logging
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from pos_terminal.errors import AuthenticationError, CatalogFetchError, PosError
from pos_terminal.models import Product
from pos_terminal.repositories.interfaces import ICatalogRepository


logger = logging.getLogger(__name__)


# ==============================================================================
# ESTADOS DEL CATÁLOGO
# ==============================================================================

class CatalogState:
    """Estado base: todos los estados exponen products."""

    @property
    def products(self) -> Tuple[Product, ...]:
        return ()


@dataclass(frozen=True)
class NotLoaded(CatalogState):
    pass


@dataclass(frozen=True)
class Loaded(CatalogState):
    items: Tuple[Product, ...] = field(default_factory=tuple)

    @property
    def products(self) -> Tuple[Product, ...]:
        return self.items


@dataclass(frozen=True)
class LoadFailed(CatalogState):
    message: str = ''


# ==============================================================================
# SERVICIO
# ==============================================================================

class ProductCatalogView:
    """
    Vista del catálogo para el terminal.

    Responsabilidades:
    - Cargar el catálogo desde el servicio remoto
    - Buscar por nombre, SKU o ID
    - Consultar productos con stock bajo (panel de gerente)
    """

    def __init__(self, catalog_repo: ICatalogRepository):
        """
        Inicializa la vista.

        Args:
            catalog_repo: Repositorio del servicio de catálogo
        """
        self.catalog_repo = catalog_repo
        self._state: CatalogState = NotLoaded()
        # Cargas concurrentes (recargas post-venta): gana la más reciente
        self._lock = threading.Lock()
        self._started_seq = 0
        self._applied_seq = 0

    @property
    def state(self) -> CatalogState:
        return self._state

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._state.products

    def load(self) -> List[Product]:
        """
        Carga el catálogo completo y reemplaza la instantánea.

        Returns:
            Lista de productos cargados

        Raises:
            AuthenticationError: Sesión expirada o ausente (401)
            CatalogFetchError: Cualquier otro fallo de carga
        """
        with self._lock:
            self._started_seq += 1
            seq = self._started_seq

        try:
            products = self.catalog_repo.list_products()
        except AuthenticationError as exc:
            self._apply(seq, LoadFailed(exc.message))
            raise
        except PosError as exc:
            self._apply(seq, LoadFailed(exc.message))
            raise CatalogFetchError(exc.message, cause=exc) from exc

        if self._apply(seq, Loaded(tuple(products))):
            logger.info("Catálogo cargado: %d productos", len(products))
        return list(products)

    def _apply(self, seq: int, state: CatalogState) -> bool:
        """Reemplaza el estado salvo que una carga más reciente ya haya terminado."""
        with self._lock:
            if seq < self._applied_seq:
                logger.debug("Carga de catálogo #%d descartada (ya se aplicó #%d)", seq, self._applied_seq)
                return False
            self._applied_seq = seq
            self._state = state
            return True

    def refresh(self) -> CatalogState:
        """
        Recarga el catálogo sin lanzar errores.

        Se usa después de cada venta (en segundo plano); un fallo solo
        deja el estado en LoadFailed y queda registrado en el log.
        """
        try:
            self.load()
        except PosError as exc:
            logger.warning("No se pudo recargar el catálogo: %s", exc.message)
        return self._state

    def search(self, query: str) -> List[Product]:
        """
        Busca productos en la instantánea actual.

        Coincidencia por subcadena sin distinguir mayúsculas en nombre,
        SKU o ID. Una consulta vacía devuelve todo el catálogo.

        Args:
            query: Texto de búsqueda

        Returns:
            Productos coincidentes en el orden del catálogo
        """
        products = self._state.products
        term = (query or '').strip().lower()
        if not term:
            return list(products)
        return [p for p in products if p.matches(term)]

    def get(self, product_id: int) -> Optional[Product]:
        """Obtiene un producto de la instantánea por ID."""
        for product in self._state.products:
            if product.id == product_id:
                return product
        return None

    def low_stock(self, threshold: int) -> List[Product]:
        """
        Consulta al servicio los productos con stock <= threshold.

        No modifica la instantánea del catálogo.

        Raises:
            ValueError: Si el umbral es negativo
            AuthenticationError: Sesión expirada
            CatalogFetchError: Fallo de la consulta
        """
        if threshold < 0:
            raise ValueError('El umbral de stock no puede ser negativo')
        try:
            return self.catalog_repo.list_low_stock(threshold)
        except AuthenticationError:
            raise
        except PosError as exc:
            raise CatalogFetchError(exc.message, cause=exc) from exc
