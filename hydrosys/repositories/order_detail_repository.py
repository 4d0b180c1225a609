# ==============================================================================
# REPOSITORIO DE DETALLES DE PEDIDO
# ==============================================================================

from typing import Any, Dict, List

from hydrosys.repositories.base import ApiRepository


class OrderDetailRepository(ApiRepository):
    """Acceso a /api/detalles (líneas de pedido)."""

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Args:
            data: {pedidoId, productoId, cantidadProducto, precioUnitario}
        """
        return self._post('/api/detalles', data)

    def get_by_order(self, pedido_id: int) -> List[Dict[str, Any]]:
        return self._get(f'/api/detalles/pedido/{pedido_id}') or []

    def delete(self, detalle_id: int) -> None:
        self._delete(f'/api/detalles/{detalle_id}')
