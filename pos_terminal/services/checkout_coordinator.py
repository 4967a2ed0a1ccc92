# ==============================================================================
# COORDINADOR DE COBRO
# ==============================================================================
# Convierte el carrito en una venta registrada en el libro de ventas.
#
# Máquina de estados:
#   IDLE → SUBMITTING → SUCCEEDED | FAILED
#   acknowledge() devuelve un estado terminal a IDLE.
#
# Reglas:
# - Como máximo una venta en vuelo (CheckoutInProgressError sin tocar la red)
# - Validaciones locales antes de cualquier llamada
# - create_sale se llama UNA vez por intento, sin reintentos
# - Éxito: se vacía el carrito y se recarga el catálogo en segundo plano
# - Fallo: el carrito queda intacto para corregir y reintentar
# ==============================================================================

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

from pos_terminal.errors import (
    AuthenticationError,
    CheckoutInProgressError,
    EmptyCartError,
    NegativePaymentError,
    PosError,
    TransportError,
)
from pos_terminal.models import SaleRequest, SaleResult
from pos_terminal.repositories.interfaces import ISalesRepository
from pos_terminal.services.cart_store import CartStore
from pos_terminal.services.catalog_view import ProductCatalogView


logger = logging.getLogger(__name__)

RefreshRunner = Callable[[Callable[[], Any]], None]


class CheckoutState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def run_in_background(task: Callable[[], Any]) -> None:
    """Ejecuta la tarea en un hilo daemon (no bloquea la respuesta)."""
    thread = threading.Thread(target=task, name='catalog-refresh', daemon=True)
    thread.start()


class CheckoutCoordinator:
    """
    Orquesta el cobro del carrito actual.

    Uso:
        coordinator = CheckoutCoordinator(cart_store, sales_repo, catalog_view)
        result = coordinator.checkout()
        print(result.id, result.total_amount, result.change)
    """

    def __init__(
        self,
        cart_store: CartStore,
        sales_repo: ISalesRepository,
        catalog_view: ProductCatalogView,
        session_service=None,
        refresh_runner: RefreshRunner = None
    ):
        """
        Inicializa el coordinador.

        Args:
            cart_store: Carrito a cobrar
            sales_repo: Repositorio del libro de ventas
            catalog_view: Vista del catálogo a recargar tras cada venta
            session_service: Si se indica, exige sesión activa antes de cobrar
            refresh_runner: Cómo ejecutar la recarga del catálogo (hilo por defecto)
        """
        self.cart_store = cart_store
        self.sales_repo = sales_repo
        self.catalog_view = catalog_view
        self.session_service = session_service
        self.refresh_runner = refresh_runner or run_in_background

        self._lock = threading.Lock()
        self._state = CheckoutState.IDLE
        self.last_result: Optional[SaleResult] = None
        self.last_error: Optional[PosError] = None

    @property
    def state(self) -> CheckoutState:
        return self._state

    @property
    def is_submitting(self) -> bool:
        return self._state == CheckoutState.SUBMITTING

    def _begin(self) -> SaleRequest:
        """Valida y pasa a SUBMITTING de forma atómica."""
        with self._lock:
            if self._state == CheckoutState.SUBMITTING:
                raise CheckoutInProgressError()
            if self.session_service is not None and not self.session_service.is_authenticated:
                raise AuthenticationError()

            lines = self.cart_store.snapshot()
            payment = self.cart_store.payment
            if not lines:
                raise EmptyCartError()
            if payment.paid_amount < 0:
                raise NegativePaymentError()

            request = SaleRequest.from_cart(lines, payment)
            self._state = CheckoutState.SUBMITTING
            self.last_result = None
            self.last_error = None
            return request

    def _fail(self, error: PosError) -> None:
        with self._lock:
            self._state = CheckoutState.FAILED
            self.last_error = error

    def checkout(self) -> SaleResult:
        """
        Cobra el carrito actual.

        Returns:
            Venta registrada por el servidor (totales autoritativos)

        Raises:
            CheckoutInProgressError: Ya hay una venta en vuelo
            AuthenticationError: Sin sesión o sesión expirada
            EmptyCartError: Carrito vacío
            NegativePaymentError: Monto pagado negativo
            RemoteRejectedError: El servidor rechazó la venta (mensaje tal cual)
            TransportError: Fallo de red o respuesta inválida
        """
        request = self._begin()
        logger.info(
            "Enviando venta: %d líneas, método=%s, pagado=%s",
            len(request.items), request.payment_method.value, request.paid_amount
        )

        try:
            result = self.sales_repo.create_sale(request)
        except PosError as exc:
            logger.warning("Venta rechazada: %s", exc.message)
            self._fail(exc)
            raise
        except Exception as exc:
            logger.exception("Error inesperado al registrar la venta")
            error = TransportError(cause=exc)
            self._fail(error)
            raise error from exc

        with self._lock:
            self._state = CheckoutState.SUCCEEDED
            self.last_result = result

        logger.info("Venta %s registrada: total=%s", result.id, result.total_amount)
        self.cart_store.clear()
        self.refresh_runner(self.catalog_view.refresh)
        return result

    def acknowledge(self) -> CheckoutState:
        """
        Marca como visto el resultado de la última venta (vuelve a IDLE).

        Mientras la venta está en vuelo no hace nada.
        """
        with self._lock:
            if self._state in (CheckoutState.SUCCEEDED, CheckoutState.FAILED):
                self._state = CheckoutState.IDLE
            return self._state

    def to_dict(self) -> dict:
        return {
            'state': self._state.value,
            'last_result': self.last_result.to_dict() if self.last_result else None,
            'last_error': self.last_error.message if self.last_error else None,
        }
