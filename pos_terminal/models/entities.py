# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del terminal de venta.
# Los montos se manejan SIEMPRE con Decimal a dos decimales: nunca float.
# El formato de red (JSON) se convierte en from_dict / to_dict.
# ==============================================================================

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


TWOPLACES = Decimal('0.01')
ZERO = Decimal('0.00')


def to_money(value: Any) -> Decimal:
    """
    Convierte un valor a monto monetario (Decimal con 2 decimales).

    Acepta int, str, float, Decimal o None (None y '' equivalen a 0.00).
    Los float se convierten vía str() para no arrastrar error binario.

    Raises:
        ValueError: Si el valor no es numérico o no es finito
    """
    if value is None or value == '':
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f'Monto inválido: {value!r}')
    try:
        amount = Decimal(str(value))
        if not amount.is_finite():
            raise ValueError(f'Monto inválido: {value!r}')
        return amount.quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f'Monto inválido: {value!r}') from exc


# ==============================================================================
# ENUMERACIONES
# ==============================================================================

class UserRole(str, Enum):
    """Roles emitidos por el proveedor de identidad."""
    MANAGER = "manager"
    CASHIER = "cashier"


class PaymentMethod(str, Enum):
    """Métodos de pago aceptados por el terminal."""
    CASH = "cash"
    CARD = "card"


# ==============================================================================
# ENTIDADES DE CATÁLOGO
# ==============================================================================

@dataclass(frozen=True)
class Product:
    """
    Producto del catálogo (copia de solo lectura).

    El dueño es el servicio de catálogo; el terminal solo guarda una
    instantánea que se reemplaza completa en cada recarga.

    Attributes:
        id: Identificador asignado por el servidor
        name: Nombre del producto
        sku: Código SKU único dentro del catálogo
        price: Precio unitario (>= 0)
        stock: Stock conocido al momento de la carga (>= 0)
    """
    id: int
    name: str
    sku: str
    price: Decimal = ZERO
    stock: int = 0

    def matches(self, query: str) -> bool:
        """Búsqueda por nombre, SKU o ID (query ya en minúsculas)."""
        return (
            query in self.name.lower()
            or query in self.sku.lower()
            or query in str(self.id)
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario serializable."""
        return {
            'id': self.id,
            'name': self.name,
            'sku': self.sku,
            'price': float(self.price),
            'stock': self.stock,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        """
        Crea instancia desde el JSON del catálogo.

        Raises:
            KeyError: Si falta el id
            ValueError: Si el precio es inválido o negativo
        """
        price = to_money(data.get('price'))
        if price < 0:
            raise ValueError(f"Precio inválido para producto {data.get('id')}: {price}")
        return cls(
            id=int(data['id']),
            name=str(data.get('name', '')),
            sku=str(data.get('sku', '')),
            price=price,
            stock=max(0, int(data.get('stock', 0))),
        )


# ==============================================================================
# ENTIDADES DE CARRITO
# ==============================================================================

@dataclass(frozen=True)
class CartLine:
    """
    Línea del carrito: producto + cantidad.

    Attributes:
        product: Instantánea del producto al momento de agregarlo
        quantity: Cantidad (1 <= quantity <= product.stock)
    """
    product: Product
    quantity: int

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def line_total(self) -> Decimal:
        """Total de la línea (precio * cantidad)."""
        return to_money(self.product.price * self.quantity)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product': self.product.to_dict(),
            'quantity': self.quantity,
            'line_total': float(self.line_total),
        }


@dataclass(frozen=True)
class PaymentSelection:
    """
    Selección de pago asociada al carrito.

    Attributes:
        method: Método de pago (efectivo por defecto)
        paid_amount: Monto entregado por el cliente
    """
    method: PaymentMethod = PaymentMethod.CASH
    paid_amount: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            'method': self.method.value,
            'paid_amount': float(self.paid_amount),
        }


# ==============================================================================
# ENTIDADES DE VENTA
# ==============================================================================

@dataclass(frozen=True)
class SaleRequestItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class SaleRequest:
    """
    Venta saliente hacia el libro de ventas.

    No incluye precios unitarios: el servidor usa su precio vigente.
    """
    items: Tuple[SaleRequestItem, ...]
    payment_method: PaymentMethod
    paid_amount: Decimal

    @classmethod
    def from_cart(
        cls,
        lines: Tuple[CartLine, ...],
        payment: PaymentSelection
    ) -> 'SaleRequest':
        """Construye la solicitud desde una instantánea del carrito."""
        return cls(
            items=tuple(SaleRequestItem(line.product_id, line.quantity) for line in lines),
            payment_method=payment.method,
            paid_amount=to_money(payment.paid_amount),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Cuerpo JSON para POST /sales."""
        return {
            'items': [
                {'product_id': item.product_id, 'quantity': item.quantity}
                for item in self.items
            ],
            'payment_method': self.payment_method.value,
            'paid_amount': float(self.paid_amount),
        }


@dataclass(frozen=True)
class SaleResultItem:
    """
    Ítem de una venta registrada por el servidor.

    Attributes:
        product_id: ID del producto vendido
        product_name: Nombre al momento de la venta
        quantity: Cantidad vendida
        unit_price: Precio unitario aplicado por el servidor
        line_total: Total de la línea según el servidor
    """
    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'quantity': self.quantity,
            'unit_price': float(self.unit_price),
            'line_total': float(self.line_total),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleResultItem':
        return cls(
            product_id=int(data['product_id']),
            product_name=str(data.get('product_name') or ''),
            quantity=int(data['quantity']),
            unit_price=to_money(data.get('unit_price')),
            line_total=to_money(data.get('line_total')),
        )


@dataclass(frozen=True)
class SaleResult:
    """
    Registro autoritativo de una venta devuelto por el libro de ventas.

    El terminal NO recalcula ni corrige estos valores.

    Attributes:
        id: ID de la venta
        total_amount: Total calculado por el servidor
        paid_amount: Monto pagado
        payment_method: Método de pago registrado
        created_at: Timestamp tal como lo envía el servidor
        items: Ítems vendidos
    """
    id: int
    total_amount: Decimal
    paid_amount: Decimal
    payment_method: str
    created_at: str = ''
    items: Tuple[SaleResultItem, ...] = field(default_factory=tuple)

    @property
    def change(self) -> Decimal:
        """Vuelto para la boleta (pagado - total)."""
        return to_money(self.paid_amount - self.total_amount)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'total_amount': float(self.total_amount),
            'paid_amount': float(self.paid_amount),
            'payment_method': self.payment_method,
            'created_at': self.created_at,
            'change': float(self.change),
            'items': [item.to_dict() for item in self.items],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleResult':
        """
        Crea instancia desde la respuesta del servidor.

        Raises:
            KeyError, ValueError, TypeError: Si la respuesta está malformada
        """
        items: List[Dict[str, Any]] = data.get('items') or []
        return cls(
            id=int(data['id']),
            total_amount=to_money(data['total_amount']),
            paid_amount=to_money(data.get('paid_amount')),
            payment_method=str(data.get('payment_method', '')),
            created_at=str(data.get('created_at', '')),
            items=tuple(SaleResultItem.from_dict(i) for i in items),
        )


# ==============================================================================
# ENTIDADES DE SESIÓN
# ==============================================================================

@dataclass(frozen=True)
class User:
    """
    Usuario autenticado (emitido por el proveedor de identidad).

    Attributes:
        id: ID del usuario
        name: Nombre visible
        email: Correo de acceso
        role: Rol (manager / cashier)
    """
    id: int
    name: str
    email: str
    role: UserRole = UserRole.CASHIER

    def is_manager(self) -> bool:
        """Verifica si el usuario tiene rol de gerente."""
        return self.role == UserRole.MANAGER

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Crea instancia desde diccionario. Rol desconocido = cajero."""
        try:
            role = UserRole(data.get('role', 'cashier'))
        except ValueError:
            role = UserRole.CASHIER
        return cls(
            id=int(data['id']),
            name=str(data.get('name', '')),
            email=str(data.get('email', '')),
            role=role,
        )


@dataclass(frozen=True)
class Session:
    """Credencial bearer + usuario de la sesión actual."""
    token: str
    user: User

    @property
    def role(self) -> UserRole:
        return self.user.role


# ==============================================================================
# HELPERS
# ==============================================================================

def parse_payment_method(value: Any) -> PaymentMethod:
    """
    Normaliza un método de pago (enum o string, sin importar mayúsculas).

    Raises:
        ValueError: Si el método no es efectivo ni tarjeta
    """
    if isinstance(value, PaymentMethod):
        return value
    try:
        return PaymentMethod(str(value or '').strip().lower())
    except ValueError as exc:
        raise ValueError(f'Método de pago inválido: {value!r}') from exc


def find_line(lines: Tuple[CartLine, ...], product_id: int) -> Optional[CartLine]:
    """Busca la línea de un producto en una instantánea del carrito."""
    for line in lines:
        if line.product_id == product_id:
            return line
    return None
