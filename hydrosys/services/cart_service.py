# ==============================================================================
# SERVICIO DE CARRITO
# ==============================================================================
# Centraliza la lógica de negocio del carrito de compras.
# El carrito se almacena en el backend (una colección de líneas por usuario);
# los totales se calculan con cart_total(), la misma fórmula del checkout.
# ==============================================================================

import logging
from decimal import Decimal
from typing import Any, Dict, List

from hydrosys.models import CartLine, Product, cart_total, format_decimal, json_number, to_int
from hydrosys.repositories.interfaces import ICartRepository, IProductRepository


logger = logging.getLogger(__name__)


class CartService:
    """
    Servicio para gestión del carrito de compras.

    Responsabilidades:
    - Leer el carrito y normalizar sus líneas
    - Calcular totales
    - Agregar/eliminar líneas
    - Vaciar carrito
    """

    def __init__(self, cart_repo: ICartRepository, product_repo: IProductRepository):
        """
        Args:
            cart_repo: Cliente de carrito
            product_repo: Cliente de productos (precio y stock al agregar)
        """
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    def get_lines(self, usuario_id: int) -> List[CartLine]:
        """Líneas del carrito ya normalizadas."""
        return [CartLine.from_dict(item) for item in self.cart_repo.get_cart(usuario_id)]

    @staticmethod
    def summarize(lines: List[CartLine]) -> Dict[str, Any]:
        """
        Resumen del carrito.

        Returns:
            Dict con items, total (string decimal), total_items, items_count
        """
        total = cart_total(lines)
        return {
            'items': [line.to_dict() for line in lines],
            'total': format_decimal(total) if total.is_finite() else None,
            'total_items': json_number(sum((line.quantity for line in lines), Decimal('0'))),
            'items_count': len(lines),
        }

    def get_cart(self, usuario_id: int) -> Dict[str, Any]:
        return self.summarize(self.get_lines(usuario_id))

    def add_item(self, usuario_id: int, producto_id: Any, cantidad: Any = 1) -> Dict[str, Any]:
        """
        Agrega un producto al carrito al precio actual del catálogo.

        Args:
            usuario_id: Dueño del carrito
            producto_id: Producto a agregar
            cantidad: Unidades (>= 1 y <= stock)

        Returns:
            Dict con resultado (ok, error, linea)
        """
        producto_id = to_int(producto_id)
        if producto_id is None:
            return {'ok': False, 'error': 'ID de producto inválido'}

        cantidad = to_int(cantidad)
        if cantidad is None or cantidad < 1:
            return {'ok': False, 'error': 'Cantidad debe ser mayor a 0'}

        data = self.product_repo.get_by_id(producto_id)
        if not data:
            return {'ok': False, 'error': 'Producto no encontrado'}
        product = Product.from_dict(data)

        if not product.available:
            return {'ok': False, 'error': 'Este producto no está disponible en este momento'}
        if cantidad > product.stock:
            return {
                'ok': False,
                'error': f'Stock insuficiente. Disponible: {product.stock}',
                'disponible': product.stock
            }

        saved = self.cart_repo.add({
            'usuarioId': usuario_id,
            'productoId': producto_id,
            'cantidadProducto': cantidad,
            'precioUnitario': json_number(product.precio),
        })
        logger.info("[CARRITO] Usuario %s agregó %d x producto %s", usuario_id, cantidad, producto_id)

        return {
            'ok': True,
            'message': f"{cantidad} {'producto agregado' if cantidad == 1 else 'productos agregados'} al carrito",
            'linea': CartLine.from_dict(saved).to_dict() if isinstance(saved, dict) else None,
        }

    def remove_item(self, usuario_id: int, linea_id: Any) -> Dict[str, Any]:
        """Elimina una línea, solo si pertenece al carrito del usuario."""
        linea_id = to_int(linea_id)
        if linea_id is None:
            return {'ok': False, 'error': 'ID de línea inválido'}
        if not any(line.id == linea_id for line in self.get_lines(usuario_id)):
            return {'ok': False, 'error': 'Línea no encontrada en el carrito'}
        self.cart_repo.delete_line(linea_id)
        return {'ok': True}

    def clear(self, usuario_id: int) -> Dict[str, Any]:
        self.cart_repo.clear(usuario_id)
        logger.info("[CARRITO] Carrito del usuario %s vaciado", usuario_id)
        return {'ok': True}
