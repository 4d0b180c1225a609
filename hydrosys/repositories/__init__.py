# ==============================================================================
# CAPA DE REPOSITORIOS - Acceso a datos
# ==============================================================================
# Los datos viven en el backend REST de HydroSyS; esta capa encapsula cada
# llamada HTTP. La sesión del usuario se persiste localmente (cookie o JSON).
#
# ESTRUCTURA:
# ├── interfaces.py               → Protocolos (contratos para servicios y tests)
# ├── base.py                     → ApiRepository (HTTP) y JSONFileRepository
# ├── auth_repository.py          → /api/auth
# ├── product_repository.py       → /api/productos
# ├── cart_repository.py          → /api/carrito
# ├── order_repository.py         → /api/pedidos
# ├── order_detail_repository.py  → /api/detalles
# ├── analytics_repository.py     → fuente analítica de solo lectura
# └── session_repository.py       → token + identidad persistidos
# ==============================================================================

# Interfaces
from .interfaces import (
    IAuthRepository,
    IProductRepository,
    ICartRepository,
    IOrderRepository,
    IOrderDetailRepository,
    IAnalyticsRepository,
    ISessionStorage,
)

# Clases base
from .base import ApiRepository, JSONFileRepository, error_message

# Implementaciones
from .auth_repository import AuthRepository
from .product_repository import ProductRepository
from .cart_repository import CartRepository
from .order_repository import OrderRepository
from .order_detail_repository import OrderDetailRepository
from .analytics_repository import AnalyticsRepository
from .session_repository import (
    CookieSessionStorage,
    FileSessionRepository,
    AUTH_TOKEN_KEY,
    USER_DATA_KEY,
)

__all__ = [
    # Interfaces
    'IAuthRepository',
    'IProductRepository',
    'ICartRepository',
    'IOrderRepository',
    'IOrderDetailRepository',
    'IAnalyticsRepository',
    'ISessionStorage',

    # Clases base
    'ApiRepository',
    'JSONFileRepository',
    'error_message',

    # Implementaciones
    'AuthRepository',
    'ProductRepository',
    'CartRepository',
    'OrderRepository',
    'OrderDetailRepository',
    'AnalyticsRepository',
    'CookieSessionStorage',
    'FileSessionRepository',
    'AUTH_TOKEN_KEY',
    'USER_DATA_KEY',
]
