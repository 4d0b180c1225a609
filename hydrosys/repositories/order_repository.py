# ==============================================================================
# REPOSITORIO DE PEDIDOS
# ==============================================================================
# /api/pedidos. totalPedido viaja como string (BigDecimal en el backend).
# ==============================================================================

from typing import Any, Dict, List

from hydrosys.repositories.base import ApiRepository


class OrderRepository(ApiRepository):
    """Acceso a pedidos."""

    def get_all(self) -> List[Dict[str, Any]]:
        return self._get('/api/pedidos') or []

    def get_by_id(self, pedido_id: int) -> Dict[str, Any]:
        return self._get(f'/api/pedidos/{pedido_id}')

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Crea un pedido.

        Args:
            data: {usuarioId, metodoPagoId, estadoPedido, direccionEnvio, totalPedido}
        """
        return self._post('/api/pedidos', data)

    def update_status(self, pedido_id: int, estado: str) -> Dict[str, Any]:
        return self._patch(f'/api/pedidos/{pedido_id}', {'estadoPedido': estado})

    def delete(self, pedido_id: int) -> None:
        self._delete(f'/api/pedidos/{pedido_id}')
