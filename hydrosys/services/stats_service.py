# ==============================================================================
# SERVICIO DE ESTADÍSTICAS - Dashboards de administración
# ==============================================================================
# Dos tableros:
#
# 1. PRINCIPAL (backend REST): pedidos + productos
#    - Total de ventas (suma de totales de pedidos)
#    - Pedidos hoy, por estado, ventas por día
#    - 5 pedidos más recientes
#    - Productos con stock bajo (< 10)
#
# 2. ANALÍTICO (fuente de solo lectura, una fila por producto vendido)
#    - Total de ventas (precio unitario × cantidad)
#    - Unidades vendidas por producto (ranking)
#    - Clientes únicos, registros de hoy, registros por estado
#
# "Hoy" se evalúa en la fecha local del servidor.
# ==============================================================================

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from hydrosys.models import Order, Product, SalesRecord, json_number
from hydrosys.repositories.interfaces import IAnalyticsRepository
from hydrosys.services.order_service import OrderService, newest_first
from hydrosys.services.product_service import ProductService


RECENT_ORDERS = 5
TOP_PRODUCTS = 10


def local_date(value: Optional[datetime]) -> Optional[date]:
    """Fecha local de un datetime (con o sin zona horaria)."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.date()


class StatsService:
    """
    Servicio para cálculo de estadísticas de ventas.

    Recibe los servicios de pedidos/productos y la fuente analítica;
    los métodos compute_* son puros para facilitar testing.
    """

    def __init__(
        self,
        order_service: OrderService,
        product_service: ProductService,
        analytics_repo: IAnalyticsRepository
    ):
        self.order_service = order_service
        self.product_service = product_service
        self.analytics_repo = analytics_repo

    # =========================================================================
    # DASHBOARD PRINCIPAL
    # =========================================================================

    @staticmethod
    def compute_dashboard(
        orders: List[Order],
        products: List[Product],
        today: date = None
    ) -> Dict[str, Any]:
        today = today or date.today()
        orders = newest_first(orders)

        total_ventas = sum((o.total for o in orders), Decimal('0'))

        por_estado: Dict[str, int] = defaultdict(int)
        por_dia: Dict[str, Decimal] = defaultdict(lambda: Decimal('0'))
        pedidos_hoy = 0
        for order in orders:
            por_estado[order.estado or 'SIN ESTADO'] += 1
            day = local_date(order.fecha)
            if day is None:
                continue
            por_dia[day.isoformat()] += order.total
            if day == today:
                pedidos_hoy += 1

        stock_bajo = ProductService.low_stock(products)

        return {
            'total_ventas': json_number(total_ventas),
            'total_pedidos': len(orders),
            'pedidos_hoy': pedidos_hoy,
            'total_productos': len(products),
            'pedidos_recientes': [o.to_dict() for o in orders[:RECENT_ORDERS]],
            'stock_bajo': [p.to_dict() for p in stock_bajo],
            'stock_bajo_count': len(stock_bajo),
            'pedidos_por_estado': dict(por_estado),
            'ventas_por_dia': {k: json_number(por_dia[k]) for k in sorted(por_dia)},
        }

    def get_dashboard(self) -> Dict[str, Any]:
        return self.compute_dashboard(
            self.order_service.list_all(),
            self.product_service.list_products(),
        )

    # =========================================================================
    # DASHBOARD ANALÍTICO
    # =========================================================================

    def get_records(self) -> List[SalesRecord]:
        """Filas de la fuente analítica, más recientes primero."""
        if not self.analytics_repo.configured:
            return []
        records = [SalesRecord.from_dict(r) for r in self.analytics_repo.get_records()]
        return sorted(
            records,
            key=lambda r: r.fecha.timestamp() if r.fecha else float('-inf'),
            reverse=True,
        )

    @staticmethod
    def compute_analytics(records: List[SalesRecord], today: date = None) -> Dict[str, Any]:
        today = today or date.today()

        total_ventas = sum((r.subtotal for r in records), Decimal('0'))

        productos: Dict[Any, Dict[str, Any]] = {}
        for r in records:
            entry = productos.setdefault(r.id_producto, {
                'id_producto': r.id_producto,
                'nombre': r.nombre_producto,
                'ventas': 0,
            })
            entry['ventas'] += r.cantidad
        ranking = sorted(productos.values(), key=lambda p: p['ventas'], reverse=True)

        por_estado: Dict[str, int] = defaultdict(int)
        for r in records:
            por_estado[r.estado] += 1

        return {
            'total_ventas': json_number(total_ventas),
            'total_registros': len(records),
            'productos_vendidos': len(productos),
            'top_productos': ranking[:TOP_PRODUCTS],
            'clientes_unicos': len({r.id_cliente for r in records}),
            'pedidos_hoy': sum(1 for r in records if local_date(r.fecha) == today),
            'pedidos_por_estado': dict(por_estado),
            'registros': [r.to_dict() for r in records],
        }

    def get_analytics(self) -> Dict[str, Any]:
        data = self.compute_analytics(self.get_records())
        data['configurado'] = self.analytics_repo.configured
        return data
