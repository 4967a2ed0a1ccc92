# ==============================================================================
# POS TERMINAL - Motor de carrito y cobro
# ==============================================================================
# Paquete principal del terminal de venta:
#   models/        → Entidades (Decimal para montos)
#   repositories/  → Clientes HTTP de catálogo, ventas e identidad
#   services/      → Catálogo, carrito, precios, cobro, sesión
#   main.py        → API JSON (Flask)
# ==============================================================================

__version__ = '1.0.0'
