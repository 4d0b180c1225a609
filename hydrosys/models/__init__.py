# ==============================================================================
# CAPA DE MODELOS - Estructuras de datos del sistema
# ==============================================================================
# Entidades del dominio como dataclasses. Normalizan las respuestas del
# backend REST a una forma canónica en el borde de ingreso.
# ==============================================================================

from .entities import (
    # Usuarios
    Identity,
    Role,

    # Catálogo
    Product,
    ProductSummary,

    # Carrito
    CartLine,
    cart_total,

    # Pedidos
    Order,
    OrderLine,
    INITIAL_ORDER_STATUS,

    # Analítica
    SalesRecord,

    # Conversiones
    format_decimal,
    json_number,
    to_decimal,
    to_int,
)

__all__ = [
    'Identity',
    'Role',
    'Product',
    'ProductSummary',
    'CartLine',
    'cart_total',
    'Order',
    'OrderLine',
    'INITIAL_ORDER_STATUS',
    'SalesRecord',
    'format_decimal',
    'json_number',
    'to_decimal',
    'to_int',
]
