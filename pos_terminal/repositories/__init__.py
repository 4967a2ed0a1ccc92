# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a servicios externos
# ==============================================================================
# Esta capa encapsula todo el acceso a los servicios remotos (API REST).
# Los servicios del terminal dependen de las interfaces, no del transporte.
#
# ESTRUCTURA:
# ├── interfaces.py          → Protocolos (contratos de cada servicio)
# ├── base.py                → HttpRepository (requests + mapeo de errores)
# ├── catalog_repository.py  → Catálogo de productos
# ├── sales_repository.py    → Libro de ventas
# └── auth_repository.py     → Proveedor de identidad
# ==============================================================================

# Interfaces
from pos_terminal.repositories.interfaces import (
    IAuthRepository,
    ICatalogRepository,
    ISalesRepository,
)

# Implementaciones HTTP
from pos_terminal.repositories.base import HttpRepository
from pos_terminal.repositories.catalog_repository import CatalogRepository
from pos_terminal.repositories.sales_repository import SalesRepository
from pos_terminal.repositories.auth_repository import AuthRepository

__all__ = [
    # Interfaces
    'IAuthRepository',
    'ICatalogRepository',
    'ISalesRepository',

    # Clase base
    'HttpRepository',

    # Implementaciones HTTP
    'CatalogRepository',
    'SalesRepository',
    'AuthRepository',
]
