# ==============================================================================
# REPOSITORIO DE CARRITO
# ==============================================================================
# El carrito vive en el backend, una colección de líneas por usuario.
# Las líneas nunca se actualizan: se crean y se eliminan.
# ==============================================================================

from typing import Any, Dict, List

from hydrosys.repositories.base import ApiRepository


class CartRepository(ApiRepository):
    """Acceso a /api/carrito."""

    def get_cart(self, usuario_id: int) -> List[Dict[str, Any]]:
        return self._get(f'/api/carrito/{usuario_id}') or []

    def add(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Agrega una línea.

        Args:
            data: {usuarioId, productoId, cantidadProducto, precioUnitario}
        """
        return self._post('/api/carrito', data)

    def delete_line(self, linea_id: int) -> None:
        self._delete(f'/api/carrito/{linea_id}')

    def clear(self, usuario_id: int) -> None:
        """Vacía el carrito completo del usuario."""
        self._delete(f'/api/carrito/vaciar/{usuario_id}')
