# ==============================================================================
# ALMACÉN DEL CARRITO
# ==============================================================================
# Carrito en memoria del terminal (un solo operador, un solo carrito).
# Las mutaciones son síncronas; cada cambio efectivo notifica a los
# suscriptores (PricingEngine, interfaz). Las operaciones que no cambian
# nada NO notifican.
#
# El tope de stock es solo una ayuda para el operador: el libro de ventas
# sigue siendo la autoridad al confirmar.
# ==============================================================================

import logging
import threading
from typing import Any, Callable, List, Optional, Tuple

from pos_terminal.models import (
    CartLine,
    PaymentSelection,
    Product,
    find_line,
    parse_payment_method,
    to_money,
)


logger = logging.getLogger(__name__)

Listener = Callable[['CartStore'], None]


class CartStore:
    """
    Estado del carrito y de la selección de pago.

    Invariantes:
    - Una línea por producto, en orden de primera inserción
    - 1 <= cantidad <= stock del producto en cada línea
    - Una línea que llega a 0 se elimina
    """

    def __init__(self):
        self._lines: Tuple[CartLine, ...] = ()
        self._payment = PaymentSelection()
        self._listeners: List[Listener] = []
        self._listeners_lock = threading.Lock()

    # =========================================================================
    # SUSCRIPCIONES
    # =========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Registra un suscriptor de cambios.

        Args:
            listener: Función que recibe el store tras cada cambio efectivo

        Returns:
            Función que cancela la suscripción
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener(self)

    # =========================================================================
    # LECTURA
    # =========================================================================

    def snapshot(self) -> Tuple[CartLine, ...]:
        """Vista inmutable de las líneas, en orden de inserción."""
        return self._lines

    @property
    def payment(self) -> PaymentSelection:
        return self._payment

    def get_line(self, product_id: int) -> Optional[CartLine]:
        return find_line(self._lines, product_id)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def __len__(self) -> int:
        return len(self._lines)

    # =========================================================================
    # MUTACIONES DE LÍNEAS
    # =========================================================================

    def _replace_line(self, product_id: int, new_line: Optional[CartLine]) -> None:
        lines = []
        for line in self._lines:
            if line.product_id == product_id:
                if new_line is not None:
                    lines.append(new_line)
            else:
                lines.append(line)
        self._lines = tuple(lines)

    def add(self, product: Product) -> None:
        """
        Agrega una unidad del producto.

        - Si ya está en el carrito suma 1 sin superar el stock
          (en el tope no hace nada).
        - Si no está y no tiene stock, no hace nada.
        - Si no está, crea una línea con cantidad 1 al final.
        """
        existing = self.get_line(product.id)
        if existing is not None:
            new_qty = min(existing.quantity + 1, product.stock)
            if new_qty <= existing.quantity:
                logger.debug("Producto %s ya está en el tope de stock", product.id)
                return
            self._replace_line(product.id, CartLine(product, new_qty))
        else:
            if product.stock <= 0:
                logger.debug("Producto %s sin stock, no se agrega", product.id)
                return
            self._lines = self._lines + (CartLine(product, 1),)
        self._notify()

    def set_quantity(self, product_id: int, requested_qty: int) -> None:
        """
        Fija la cantidad de una línea, acotada a [1, stock].

        Si el valor acotado queda en 0 (producto sin stock) la línea se
        elimina. Un ID que no está en el carrito no hace nada.
        """
        line = self.get_line(product_id)
        if line is None:
            return
        clamped = min(max(1, int(requested_qty)), line.product.stock)
        if clamped <= 0:
            self._replace_line(product_id, None)
        elif clamped == line.quantity:
            return
        else:
            self._replace_line(product_id, CartLine(line.product, clamped))
        self._notify()

    def remove(self, product_id: int) -> None:
        """Elimina la línea del producto (idempotente)."""
        if self.get_line(product_id) is None:
            return
        self._replace_line(product_id, None)
        self._notify()

    def clear(self) -> None:
        """Vacía el carrito y reinicia el pago a efectivo / 0.00."""
        if not self._lines and self._payment == PaymentSelection():
            return
        self._lines = ()
        self._payment = PaymentSelection()
        self._notify()

    # =========================================================================
    # PAGO
    # =========================================================================

    def set_payment_method(self, method: Any) -> None:
        """
        Cambia el método de pago.

        Raises:
            ValueError: Si el método no es efectivo ni tarjeta
        """
        method = parse_payment_method(method)
        if method == self._payment.method:
            return
        self._payment = PaymentSelection(method, self._payment.paid_amount)
        self._notify()

    def set_paid_amount(self, amount: Any) -> None:
        """
        Registra el monto entregado por el cliente.

        Los montos negativos se aceptan aquí y se rechazan al confirmar.

        Raises:
            ValueError: Si el monto no es numérico
        """
        amount = to_money(amount)
        if amount == self._payment.paid_amount:
            return
        self._payment = PaymentSelection(self._payment.method, amount)
        self._notify()
