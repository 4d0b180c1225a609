# ==============================================================================
# CAPA DE SERVICIOS - Lógica de negocio
# ==============================================================================
# Esta capa contiene TODA la lógica de negocio de la aplicación.
#
# PRINCIPIOS:
# 1. Los servicios orquestan operaciones entre repositorios
# 2. Aplican reglas de negocio y validaciones
# 3. Las rutas y comandos de CLI solo llaman a servicios
# 4. Los servicios NO conocen el transporte (requests) ni Flask
#
# ESTRUCTURA:
# ├── session_service.py   → Sesión: login, registro, logout, sincronización
# ├── checkout_service.py  → Carrito → pedido + detalles + carrito vacío
# ├── cart_service.py      → Carrito de compras
# ├── order_service.py     → Historial y monitoreo de pedidos
# ├── product_service.py   → Catálogo e inventario
# ├── stats_service.py     → Dashboards principal y analítico
# └── report_service.py    → Reportes PDF
# ==============================================================================

from hydrosys.services.session_service import SessionStore, AuthResponseError
from hydrosys.services.checkout_service import CheckoutService, CheckoutError
from hydrosys.services.cart_service import CartService
from hydrosys.services.order_service import OrderService
from hydrosys.services.product_service import ProductService
from hydrosys.services.stats_service import StatsService
from hydrosys.services.report_service import ReportService, UnknownReportError

__all__ = [
    'SessionStore',
    'AuthResponseError',
    'CheckoutService',
    'CheckoutError',
    'CartService',
    'OrderService',
    'ProductService',
    'StatsService',
    'ReportService',
    'UnknownReportError',
]
