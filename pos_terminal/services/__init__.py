# ==============================================================================
# CAPA DE SERVICIOS - Motor de carrito y cobro
# ==============================================================================
# PRINCIPIOS:
# 1. Los servicios dependen de INTERFACES de repositorios, no del transporte
# 2. Las validaciones locales ocurren antes de cualquier llamada de red
# 3. Las rutas (controllers) solo llaman a servicios
#
# ESTRUCTURA:
# ├── catalog_view.py          → Instantánea del catálogo, búsqueda, stock bajo
# ├── cart_store.py            → Carrito en memoria con suscriptores
# ├── pricing_engine.py        → Subtotal y autocompletado del monto pagado
# ├── checkout_coordinator.py  → Máquina de estados del cobro
# └── session_service.py       → Sesión del operador y verificación de rol
# ==============================================================================

from pos_terminal.services.catalog_view import (
    CatalogState,
    Loaded,
    LoadFailed,
    NotLoaded,
    ProductCatalogView,
)
from pos_terminal.services.cart_store import CartStore
from pos_terminal.services.pricing_engine import PricingEngine, derive_paid_amount, subtotal
from pos_terminal.services.checkout_coordinator import (
    CheckoutCoordinator,
    CheckoutState,
    run_in_background,
)
from pos_terminal.services.session_service import SessionService, require_role

__all__ = [
    'CatalogState',
    'Loaded',
    'LoadFailed',
    'NotLoaded',
    'ProductCatalogView',
    'CartStore',
    'PricingEngine',
    'derive_paid_amount',
    'subtotal',
    'CheckoutCoordinator',
    'CheckoutState',
    'run_in_background',
    'SessionService',
    'require_role',
]
