# ==============================================================================
# API DEL TERMINAL - Rutas Flask
# ==============================================================================
# Capa delgada sobre el motor de carrito y cobro. Las rutas solo traducen
# JSON ⇄ servicios; toda la lógica vive en services/.
#
# Todas las respuestas son JSON: {"ok": true, ...} o {"ok": false, "error": "..."}
# Los errores del motor se traducen en errorhandler(PosError):
#   validación → 400   venta en proceso → 409   rechazo remoto → 400/4xx
#   transporte → 502   sin sesión → 401 (+ redirect /login)   rol → 403
# ==============================================================================

import logging
import os
from functools import wraps

from flask import Flask, request, session

from pos_terminal.config import Settings
from pos_terminal.errors import (
    AuthenticationError,
    CheckoutInProgressError,
    PermissionDeniedError,
    PosError,
    RemoteRejectedError,
    TransportError,
    ValidationError,
)
from pos_terminal.models import UserRole
from pos_terminal.performance_logger import init_profiling, setup_logging
from pos_terminal.services import Loaded, LoadFailed, NotLoaded

# ═══════════════════════════════════════════════════════════════════════════
# CONTENEDOR DE DEPENDENCIAS - Servicios y Repositorios
# ═══════════════════════════════════════════════════════════════════════════
# Las rutas obtienen los servicios del contenedor; los tests lo reemplazan
# con repositorios falsos antes del primer request.
# ═══════════════════════════════════════════════════════════════════════════
from pos_terminal.app_container import get_container


logger = logging.getLogger(__name__)

SETTINGS = Settings.from_env()

app = Flask(__name__)

# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZAR SISTEMA DE PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Mide rendimiento de rutas y llamadas remotas. Logs en POS_LOGS_DIR.
# Para desactivar: POS_ENABLE_PROFILING=0
setup_logging(SETTINGS)
init_profiling(app)

# ═══════════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN DE SESIONES
# ═══════════════════════════════════════════════════════════════════════════════
# La cookie solo guarda quién está logueado; el token bearer queda del lado
# del servidor en SessionService.
app.secret_key = SETTINGS.secret_key
app.config.update(
    SESSION_COOKIE_HTTPONLY=True,      # Protege contra XSS
    SESSION_COOKIE_SECURE=False,       # False para HTTP local (True solo para HTTPS)
    SESSION_COOKIE_SAMESITE='Lax',
    PERMANENT_SESSION_LIFETIME=43200,  # 12 horas (un turno)
)


def container():
    return get_container(settings=SETTINGS)


def to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default


def _json_body():
    return request.get_json(silent=True) or request.form.to_dict() or {}


# ═══════════════════════════════════════════════════════════════════════════
# DECORADORES DE ACCESO
# ═══════════════════════════════════════════════════════════════════════════

def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if "user" not in session or not container().session_service.is_authenticated:
            raise AuthenticationError()
        return f(*args, **kwargs)
    return wrapper


def role_required(role_name):
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            container().session_service.require_role(role_name)
            return f(*args, **kwargs)
        return wrapper
    return deco


# ═══════════════════════════════════════════════════════════════════════════
# MANEJO DE ERRORES
# ═══════════════════════════════════════════════════════════════════════════

def _status_for(error: PosError) -> int:
    if isinstance(error, CheckoutInProgressError):
        return 409
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, RemoteRejectedError):
        return error.status_code if 400 <= error.status_code < 500 else 400
    if isinstance(error, TransportError):
        return 502
    if isinstance(error, AuthenticationError):
        return 401
    if isinstance(error, PermissionDeniedError):
        return 403
    return 500


@app.errorhandler(PosError)
def handle_pos_error(error: PosError):
    status = _status_for(error)
    body = {"ok": False, "error": error.message}
    if isinstance(error, AuthenticationError):
        # Token expirado o ausente: cerrar todo y volver al login
        container().session_service.logout()
        session.clear()
        body["redirect"] = "/login"
    if status >= 500:
        logger.error("Error en %s %s: %s", request.method, request.path, error.message)
    return body, status


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Cache-Control'] = 'no-store'
    return response


# ═══════════════════════════════════════════════════════════════════════════
# HELPERS DE RESPUESTA
# ═══════════════════════════════════════════════════════════════════════════

def _cart_payload():
    c = container()
    cart = c.cart_store
    lines = cart.snapshot()
    return {
        "items": [line.to_dict() for line in lines],
        "items_count": len(lines),
        "total_items": sum(line.quantity for line in lines),
        "subtotal": float(c.pricing_engine.current_subtotal),
        "payment": cart.payment.to_dict(),
        "checkout": c.checkout_coordinator.to_dict(),
    }


def _catalog_status(state):
    if isinstance(state, Loaded):
        return "loaded"
    if isinstance(state, LoadFailed):
        return "failed"
    return "not_loaded"


# ═══════════════════════════════════════════════════════════════════════════
# SESIÓN
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/login", methods=["POST"])
def login():
    """
    Inicia sesión contra el proveedor de identidad.
    Espera JSON o formulario con: email, password
    """
    data = _json_body()
    c = container()
    auth = c.session_service.login(data.get("email"), data.get("password") or "")

    session.clear()
    session.permanent = True
    session["user"] = auth.user.email
    session["role"] = auth.role.value

    # El catálogo se carga al entrar; un fallo no impide el login
    c.catalog_view.refresh()
    return {"ok": True, "user": auth.user.to_dict()}


@app.route("/logout", methods=["POST"])
def logout():
    c = container()
    c.session_service.logout()
    c.cart_store.clear()
    c.checkout_coordinator.acknowledge()
    session.clear()
    return {"ok": True, "mensaje": "Sesión cerrada"}


# ═══════════════════════════════════════════════════════════════════════════
# CATÁLOGO
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/productos", methods=["GET"])
@login_required
def api_productos():
    """Buscar productos por nombre, SKU o ID (?q=)."""
    view = container().catalog_view
    if isinstance(view.state, NotLoaded):
        view.refresh()

    state = view.state
    response = {
        "ok": True,
        "estado": _catalog_status(state),
        "productos": [p.to_dict() for p in view.search(request.args.get("q", ""))],
    }
    if isinstance(state, LoadFailed):
        response["error"] = state.message
    return response


@app.route("/api/productos/recargar", methods=["POST"])
@login_required
def api_productos_recargar():
    products = container().catalog_view.load()
    return {"ok": True, "total": len(products)}


@app.route("/api/productos/stock-bajo", methods=["GET"])
@login_required
@role_required(UserRole.MANAGER)
def api_productos_stock_bajo():
    """Productos con stock <= threshold (solo gerente)."""
    raw = request.args.get("threshold")
    threshold = SETTINGS.low_stock_threshold if raw in (None, "") else to_int(raw)
    if threshold is None or threshold < 0:
        return {"ok": False, "error": "Umbral de stock inválido"}, 400

    products = container().catalog_view.low_stock(threshold)
    return {
        "ok": True,
        "threshold": threshold,
        "productos": [p.to_dict() for p in products],
    }


# ═══════════════════════════════════════════════════════════════════════════
# CARRITO
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/carrito", methods=["GET"])
@login_required
def api_carrito():
    """Ver contenido actual del carrito"""
    return {"ok": True, "carrito": _cart_payload()}


@app.route("/api/carrito/agregar", methods=["POST"])
@login_required
def api_carrito_agregar():
    """
    Agregar una unidad de un producto del catálogo.
    Espera JSON con: product_id
    """
    data = _json_body()
    product_id = to_int(data.get("product_id"))
    if product_id is None:
        return {"ok": False, "error": "ID de producto inválido"}, 400

    product = container().catalog_view.get(product_id)
    if product is None:
        return {"ok": False, "error": "Producto no encontrado"}, 404

    container().cart_store.add(product)
    return {"ok": True, "carrito": _cart_payload()}


@app.route("/api/carrito/cantidad", methods=["POST"])
@login_required
def api_carrito_cantidad():
    """
    Cambiar la cantidad de una línea (se ajusta a [1, stock]).
    Espera JSON con: product_id, quantity
    """
    data = _json_body()
    product_id = to_int(data.get("product_id"))
    quantity = to_int(data.get("quantity"))
    if product_id is None:
        return {"ok": False, "error": "ID de producto inválido"}, 400
    if quantity is None:
        return {"ok": False, "error": "Cantidad inválida"}, 400

    container().cart_store.set_quantity(product_id, quantity)
    return {"ok": True, "carrito": _cart_payload()}


@app.route("/api/carrito/eliminar", methods=["POST"])
@login_required
def api_carrito_eliminar():
    """Eliminar una línea del carrito"""
    data = _json_body()
    product_id = to_int(data.get("product_id"))
    if product_id is None:
        return {"ok": False, "error": "ID de producto inválido"}, 400

    container().cart_store.remove(product_id)
    return {"ok": True, "carrito": _cart_payload()}


@app.route("/api/carrito/limpiar", methods=["POST"])
@login_required
def api_carrito_limpiar():
    """Vaciar el carrito"""
    container().cart_store.clear()
    return {"ok": True, "mensaje": "Carrito vaciado", "carrito": _cart_payload()}


@app.route("/api/carrito/pago", methods=["POST"])
@login_required
def api_carrito_pago():
    """
    Editar la selección de pago.
    Espera JSON con: method (cash/card) y/o paid_amount
    """
    data = _json_body()
    cart = container().cart_store
    try:
        if data.get("method") is not None:
            cart.set_payment_method(data["method"])
        if "paid_amount" in data:
            cart.set_paid_amount(data["paid_amount"])
    except ValueError as e:
        return {"ok": False, "error": str(e)}, 400
    return {"ok": True, "carrito": _cart_payload()}


@app.route("/api/carrito/confirmar", methods=["POST"])
@login_required
def api_carrito_confirmar():
    """
    Confirmar el carrito y registrar la venta en el libro de ventas.

    Respuesta (201):
    - venta: registro del servidor (total, pagado, vuelto, ítems)
    - carrito: carrito ya vaciado
    """
    result = container().checkout_coordinator.checkout()
    return {
        "ok": True,
        "venta": result.to_dict(),
        "mensaje": f"Venta {result.id} registrada",
        "carrito": _cart_payload(),
    }, 201


@app.route("/api/carrito/confirmar/ack", methods=["POST"])
@login_required
def api_carrito_confirmar_ack():
    state = container().checkout_coordinator.acknowledge()
    return {"ok": True, "estado": state.value}


# ═══════════════════════════════════════════════════════════════════════════
# VENTAS
# ═══════════════════════════════════════════════════════════════════════════

@app.route("/api/ventas", methods=["GET"])
@login_required
def api_ventas():
    sales = container().sales_repo.list_sales()
    return {"ok": True, "ventas": [s.to_dict() for s in sales]}


@app.route("/api/ventas/<int:sale_id>", methods=["GET"])
@login_required
def api_venta(sale_id):
    """Boleta de una venta"""
    sale = container().sales_repo.get_sale(sale_id)
    return {"ok": True, "venta": sale.to_dict()}


if __name__ == "__main__":
    # Configuración para desarrollo local
    # En producción usar WSGI (gunicorn wsgi:app)
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    PORT = int(os.environ.get('FLASK_PORT', 5000))

    if not DEBUG:
        print(f"\n{'='*50}")
        print(f"  Terminal iniciado en http://{HOST}:{PORT}")
        print(f"  API de catálogo/ventas: {SETTINGS.api_base_url}")
        print(f"{'='*50}\n")

    app.run(host=HOST, port=PORT, debug=DEBUG)
