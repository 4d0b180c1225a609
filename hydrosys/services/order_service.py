# ==============================================================================
# SERVICIO DE PEDIDOS
# ==============================================================================
# Historial y monitoreo de pedidos:
#   - Administrador: ve TODOS los pedidos, cambia estados y elimina
#   - Cliente: solo sus pedidos (dueño embebido o usuarioId)
# Orden: más recientes primero; pedidos sin fecha al final.
# ==============================================================================

import logging
from typing import Any, Dict, List, Optional

from hydrosys.models import Identity, Order, OrderLine, to_int
from hydrosys.repositories.interfaces import IOrderDetailRepository, IOrderRepository


logger = logging.getLogger(__name__)


def newest_first(orders: List[Order]) -> List[Order]:
    """Ordena por fecha descendente; sin fecha van al final."""
    return sorted(
        orders,
        key=lambda o: o.fecha.timestamp() if o.fecha else float('-inf'),
        reverse=True,
    )


class OrderService:
    """
    Servicio de consulta y administración de pedidos.
    """

    def __init__(self, order_repo: IOrderRepository, detail_repo: IOrderDetailRepository):
        self.order_repo = order_repo
        self.detail_repo = detail_repo

    def list_all(self) -> List[Order]:
        return newest_first([Order.from_dict(o) for o in self.order_repo.get_all()])

    def list_for(self, identity: Identity) -> List[Order]:
        """Pedidos visibles para la identidad."""
        orders = self.list_all()
        if identity.is_admin:
            return orders
        return [o for o in orders if o.usuario_id == identity.id]

    def can_view(self, identity: Identity, order: Order) -> bool:
        return identity.is_admin or order.usuario_id == identity.id

    def get_detail(self, identity: Identity, pedido_id: int) -> Optional[Order]:
        """
        Pedido con sus detalles.

        Returns:
            None si no existe o la identidad no puede verlo
        """
        data = self.order_repo.get_by_id(pedido_id)
        if not data:
            return None
        order = Order.from_dict(data)
        if not self.can_view(identity, order):
            logger.warning("[PEDIDOS] Usuario %s intentó ver el pedido %s", identity.id, pedido_id)
            return None
        if not order.lines:
            order.lines = [OrderLine.from_dict(d) for d in self.detail_repo.get_by_order(pedido_id) or []]
        return order

    def update_status(self, pedido_id: Any, estado: Any) -> Dict[str, Any]:
        """
        Cambia el estado de un pedido (solo administradores).
        El estado es una etiqueta libre; no hay máquina de estados.
        """
        pedido_id = to_int(pedido_id)
        if pedido_id is None:
            return {'ok': False, 'error': 'ID de pedido inválido'}
        estado = (estado or '').strip() if isinstance(estado, str) else ''
        if not estado:
            return {'ok': False, 'error': 'El estado es requerido'}

        data = self.order_repo.update_status(pedido_id, estado)
        logger.info("[PEDIDOS] Pedido %s -> %s", pedido_id, estado)
        return {
            'ok': True,
            'pedido': Order.from_dict(data).to_dict() if isinstance(data, dict) else None,
        }

    def delete(self, pedido_id: Any) -> Dict[str, Any]:
        pedido_id = to_int(pedido_id)
        if pedido_id is None:
            return {'ok': False, 'error': 'ID de pedido inválido'}
        self.order_repo.delete(pedido_id)
        logger.info("[PEDIDOS] Pedido %s eliminado", pedido_id)
        return {'ok': True}
