# ==============================================================================
# SERVICIO DE PRODUCTOS
# ==============================================================================
# Catálogo (público) y administración de productos (solo administradores).
# El checkout NUNCA descuenta stock: el stock solo cambia editando el producto.
# ==============================================================================

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from hydrosys.models import Product, json_number, to_decimal, to_int
from hydrosys.repositories.interfaces import IProductRepository


logger = logging.getLogger(__name__)

HOME_CATALOG_LIMIT = 10


class ProductService:
    """
    Servicio de catálogo e inventario.

    Responsabilidades:
    - Listar productos (con límite opcional para la portada)
    - Validar datos antes de crear/editar
    - Métricas de inventario (stock bajo, agotados, valor total)
    """

    def __init__(self, product_repo: IProductRepository):
        self.product_repo = product_repo

    # =========================================================================
    # CONSULTAS
    # =========================================================================

    def list_products(self, limit: Optional[int] = None) -> List[Product]:
        products = [Product.from_dict(p) for p in self.product_repo.get_all()]
        if limit is not None:
            return products[:limit]
        return products

    def get_product(self, producto_id: int) -> Optional[Product]:
        data = self.product_repo.get_by_id(producto_id)
        return Product.from_dict(data) if data else None

    @staticmethod
    def low_stock(products: List[Product]) -> List[Product]:
        return [p for p in products if p.is_low_stock]

    @staticmethod
    def out_of_stock(products: List[Product]) -> List[Product]:
        return [p for p in products if p.is_out_of_stock]

    @staticmethod
    def inventory_value(products: List[Product]) -> Decimal:
        return sum((p.stock_value for p in products), Decimal('0'))

    def inventory_summary(self, products: List[Product] = None) -> Dict[str, Any]:
        if products is None:
            products = self.list_products()
        return {
            'total_productos': len(products),
            'stock_bajo': len(self.low_stock(products)),
            'agotados': len(self.out_of_stock(products)),
            'valor_total': json_number(self.inventory_value(products)),
        }

    # =========================================================================
    # ADMINISTRACIÓN
    # =========================================================================

    @staticmethod
    def _validate(data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Valida y normaliza los datos de un producto.

        Returns:
            {'ok': True, 'product': Product} o {'ok': False, 'error': str}
        """
        nombre = data.get('nombre')
        if nombre is not None and not isinstance(nombre, str):
            return {'ok': False, 'error': 'Nombre inválido'}
        nombre = (nombre or '').strip()
        if not nombre:
            return {'ok': False, 'error': 'El nombre es requerido'}

        descripcion = data.get('descripcion')
        imagen_url = data.get('imagenUrl')
        if not all(v is None or isinstance(v, str) for v in (descripcion, imagen_url)):
            return {'ok': False, 'error': 'Descripción o imagen inválidas'}

        precio = to_decimal(data.get('precio'))
        if precio is None or not precio.is_finite() or precio < 0:
            return {'ok': False, 'error': 'Precio inválido'}

        stock = to_int(data.get('stock', 0))
        if stock is None or stock < 0:
            return {'ok': False, 'error': 'Stock inválido'}

        categoria_id = data.get('categoriaId')
        if categoria_id not in (None, ''):
            categoria_id = to_int(categoria_id)
            if categoria_id is None:
                return {'ok': False, 'error': 'Categoría inválida'}
        else:
            categoria_id = None

        return {'ok': True, 'product': Product(
            id=None,
            nombre=nombre,
            descripcion=(descripcion or '').strip(),
            precio=precio,
            stock=stock,
            categoria_id=categoria_id,
            imagen_url=(imagen_url or '').strip(),
        )}

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = self._validate(data)
        if not result['ok']:
            return result
        saved = self.product_repo.create(result['product'].to_payload())
        logger.info("[PRODUCTOS] Producto creado: %s", result['product'].nombre)
        return {'ok': True, 'producto': Product.from_dict(saved).to_dict() if isinstance(saved, dict) else None}

    def update(self, producto_id: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        producto_id = to_int(producto_id)
        if producto_id is None:
            return {'ok': False, 'error': 'ID de producto inválido'}
        result = self._validate(data)
        if not result['ok']:
            return result
        saved = self.product_repo.update(producto_id, result['product'].to_payload())
        logger.info("[PRODUCTOS] Producto %s actualizado", producto_id)
        return {'ok': True, 'producto': Product.from_dict(saved).to_dict() if isinstance(saved, dict) else None}

    def delete(self, producto_id: Any) -> Dict[str, Any]:
        producto_id = to_int(producto_id)
        if producto_id is None:
            return {'ok': False, 'error': 'ID de producto inválido'}
        self.product_repo.delete(producto_id)
        logger.info("[PRODUCTOS] Producto %s eliminado", producto_id)
        return {'ok': True}
