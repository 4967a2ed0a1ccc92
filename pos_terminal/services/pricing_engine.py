# ==============================================================================
# MOTOR DE PRECIOS
# ==============================================================================
# Calcula el subtotal del carrito y propone el monto pagado.
# Toda la aritmética es Decimal exacta, redondeada a 2 decimales al final.
# ==============================================================================

import logging
from decimal import Decimal
from typing import Callable, Iterable, Optional, Tuple

from pos_terminal.models import CartLine, ZERO, to_money
from pos_terminal.services.cart_store import CartStore


logger = logging.getLogger(__name__)


def subtotal(lines: Iterable[CartLine]) -> Decimal:
    """
    Suma precio * cantidad de todas las líneas.

    Returns:
        Subtotal con 2 decimales (0.00 para un carrito vacío)
    """
    return to_money(sum((line.product.price * line.quantity for line in lines), ZERO))


def derive_paid_amount(current: Decimal, subtotal: Decimal, cart_is_empty: bool) -> Decimal:
    """
    Propone el monto pagado a mostrar.

    - Carrito vacío → 0.00
    - Monto actual exactamente 0 → subtotal
    - Cualquier otro valor ingresado por el operador se respeta
    """
    if cart_is_empty:
        return ZERO
    if current == 0:
        return to_money(subtotal)
    return current


class PricingEngine:
    """
    Mantiene el subtotal del carrito y autocompleta el monto pagado.

    Se suscribe al CartStore. El autocompletado solo se aplica cuando
    cambia el par (subtotal, cantidad de líneas); editar el pago no lo
    vuelve a disparar.
    """

    subtotal = staticmethod(subtotal)
    derive_paid_amount = staticmethod(derive_paid_amount)

    def __init__(self, cart_store: CartStore):
        """
        Inicializa el motor y lo vincula al carrito.

        Args:
            cart_store: Carrito a observar
        """
        self.cart_store = cart_store
        self._current_subtotal = ZERO
        self._last_key: Optional[Tuple[Decimal, int]] = None
        self._unsubscribe: Optional[Callable[[], None]] = cart_store.subscribe(self._on_change)
        self._on_change(cart_store)

    @property
    def current_subtotal(self) -> Decimal:
        return self._current_subtotal

    def _on_change(self, store: CartStore) -> None:
        lines = store.snapshot()
        self._current_subtotal = subtotal(lines)
        key = (self._current_subtotal, len(lines))
        if key == self._last_key:
            return
        self._last_key = key

        proposed = derive_paid_amount(store.payment.paid_amount, self._current_subtotal, not lines)
        if proposed != store.payment.paid_amount:
            logger.debug("Monto pagado autocompletado a %s", proposed)
            store.set_paid_amount(proposed)

    def close(self) -> None:
        """Cancela la suscripción al carrito."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
