# ==============================================================================
# INTERFACES DE REPOSITORIOS
# ==============================================================================
#
# Contratos que cumplen los clientes REST y el almacenamiento de sesión.
# Los servicios dependen de estas interfaces, NO de requests ni de Flask:
#
# 1. TESTING
#    - Los tests usan clientes en memoria que implementan estos protocolos
#    - Sin red ni backend real
#
# 2. INDEPENDENCIA DEL TRANSPORTE
#    - Cambiar de backend o de almacenamiento de sesión solo requiere
#      una nueva implementación y tocar app_container.py
#
# ==============================================================================

from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable


@runtime_checkable
class IAuthRepository(Protocol):
    """Autenticación contra el backend."""

    def login(self, email: str, password: str) -> Dict[str, Any]:
        ...

    def register(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...


@runtime_checkable
class IProductRepository(Protocol):
    """Catálogo de productos."""

    def get_all(self) -> List[Dict[str, Any]]:
        ...

    def get_by_id(self, producto_id: int) -> Dict[str, Any]:
        ...

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update(self, producto_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def delete(self, producto_id: int) -> None:
        ...


@runtime_checkable
class ICartRepository(Protocol):
    """Carrito de un usuario."""

    def get_cart(self, usuario_id: int) -> List[Dict[str, Any]]:
        ...

    def add(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def delete_line(self, linea_id: int) -> None:
        ...

    def clear(self, usuario_id: int) -> None:
        ...


@runtime_checkable
class IOrderRepository(Protocol):
    """Pedidos."""

    def get_all(self) -> List[Dict[str, Any]]:
        ...

    def get_by_id(self, pedido_id: int) -> Dict[str, Any]:
        ...

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def update_status(self, pedido_id: int, estado: str) -> Dict[str, Any]:
        ...

    def delete(self, pedido_id: int) -> None:
        ...


@runtime_checkable
class IOrderDetailRepository(Protocol):
    """Líneas de pedido."""

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        ...

    def get_by_order(self, pedido_id: int) -> List[Dict[str, Any]]:
        ...

    def delete(self, detalle_id: int) -> None:
        ...


@runtime_checkable
class IAnalyticsRepository(Protocol):
    """Fuente analítica de solo lectura."""

    @property
    def configured(self) -> bool:
        ...

    def get_records(self) -> List[Dict[str, Any]]:
        ...


@runtime_checkable
class ISessionStorage(Protocol):
    """
    Almacenamiento durable del par (token, identidad).

    stamp() cambia cada vez que otro proceso/pestaña modifica el
    almacenamiento; el SessionStore lo usa para detectar cambios externos.
    """

    def load(self) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
        ...

    def save(self, token: str, user: Dict[str, Any]) -> None:
        ...

    def clear(self) -> None:
        ...

    def stamp(self) -> Any:
        ...
