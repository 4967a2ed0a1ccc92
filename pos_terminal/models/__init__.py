# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del terminal
# ==============================================================================
# Entidades del dominio como dataclasses inmutables:
#   - Producto (instantánea del catálogo)
#   - Línea de carrito y selección de pago
#   - Solicitud y resultado de venta (formato de red)
#   - Usuario y sesión
# ==============================================================================

from .entities import (
    # Montos
    TWOPLACES,
    ZERO,
    to_money,

    # Catálogo
    Product,

    # Carrito
    CartLine,
    PaymentMethod,
    PaymentSelection,
    find_line,
    parse_payment_method,

    # Ventas
    SaleRequest,
    SaleRequestItem,
    SaleResult,
    SaleResultItem,

    # Sesión
    Session,
    User,
    UserRole,
)

__all__ = [
    # Montos
    'TWOPLACES',
    'ZERO',
    'to_money',

    # Catálogo
    'Product',

    # Carrito
    'CartLine',
    'PaymentMethod',
    'PaymentSelection',
    'find_line',
    'parse_payment_method',

    # Ventas
    'SaleRequest',
    'SaleRequestItem',
    'SaleResult',
    'SaleResultItem',

    # Sesión
    'Session',
    'User',
    'UserRole',
]
