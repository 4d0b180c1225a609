from datetime import datetime
from decimal import Decimal

from hydrosys.models import (
    CartLine,
    Identity,
    Order,
    OrderLine,
    Product,
    Role,
    SalesRecord,
    cart_total,
    format_decimal,
)


# ==============================================================================
# LÍNEAS DE CARRITO
# ==============================================================================

def test_cart_line_quantity_fallbacks():
    assert CartLine.from_dict({'cantidadProducto': 3, 'cantidad': 7}).quantity == 3
    assert CartLine.from_dict({'cantidadProducto': 0, 'cantidad': 7}).quantity == 7
    assert CartLine.from_dict({'cantidad': 2}).quantity == 2
    # ni cero ni ausente: cae a 1
    assert CartLine.from_dict({'cantidadProducto': 0}).quantity == 1
    assert CartLine.from_dict({}).quantity == 1


def test_cart_line_price_prefers_embedded_product():
    line = CartLine.from_dict({'precioUnitario': 800, 'producto': {'id': 4, 'precio': 1000}})
    assert line.unit_price == Decimal('1000')

    line = CartLine.from_dict({'precioUnitario': 800, 'producto': {'id': 4, 'precio': 0}})
    assert line.unit_price == Decimal('800')

    line = CartLine.from_dict({'producto': {'id': 4}})
    assert line.unit_price == Decimal('0')


def test_cart_line_product_id_resolution():
    assert CartLine.from_dict({'productoId': 9, 'producto': {'id': 4}}).product_id == 4
    assert CartLine.from_dict({'productoId': 9}).product_id == 9
    assert CartLine.from_dict({'producto': {'nombre': 'sin id'}}).product_id is None
    assert CartLine.from_dict({}).product_id is None


def test_cart_line_unparseable_price_is_not_finite():
    line = CartLine.from_dict({'precioUnitario': 'abc', 'cantidadProducto': 1})
    assert not line.subtotal.is_finite()


def test_cart_total_and_format():
    lines = [
        CartLine.from_dict({'producto': {'id': 1, 'precio': 1000}, 'cantidadProducto': 2}),
        CartLine.from_dict({'producto': {'id': 2, 'precio': 500}, 'cantidad': 1}),
    ]
    total = cart_total(lines)
    assert total == Decimal('2500')
    assert format_decimal(total) == '2500'
    assert format_decimal(Decimal('19.990')) == '19.99'
    assert format_decimal(Decimal('1E+3')) == '1000'


def test_order_line_from_cart_line():
    line = CartLine.from_dict({'id': 5, 'productoId': 3, 'precioUnitario': '19.99', 'cantidadProducto': 2})
    detail = OrderLine.from_cart_line(77, line)
    assert detail.to_payload() == {
        'pedidoId': 77,
        'productoId': 3,
        'cantidadProducto': 2,
        'precioUnitario': 19.99,
    }


# ==============================================================================
# IDENTIDAD Y ROLES
# ==============================================================================

def test_role_parse_variants():
    assert Role.parse('admin') is Role.ADMINISTRATOR
    assert Role.parse('ADMINISTRADOR') is Role.ADMINISTRATOR
    assert Role.parse('ADMIN') is Role.ADMINISTRATOR
    assert Role.parse('cliente') is Role.CUSTOMER
    assert Role.parse('CLIENTE') is Role.CUSTOMER
    assert Role.parse(None, code=0) is Role.ADMINISTRATOR
    assert Role.parse(None, code=1) is Role.CUSTOMER
    assert Role.parse(None) is Role.CUSTOMER
    assert Role.ADMINISTRATOR.code == 0
    assert Role.CUSTOMER.code == 1


def test_identity_from_login_response_with_correo_and_admin():
    identity = Identity.from_auth_response({
        'token': 't', 'userId': 7, 'correo': 'ana@hydrosys.co', 'nombre': 'Ana', 'rol': 'admin',
    })
    assert identity.id == 7
    assert identity.email == 'ana@hydrosys.co'
    assert identity.is_admin
    assert identity.role_code == 0
    assert identity.display_name == 'Ana'


def test_identity_register_falls_back_to_submitted():
    identity = Identity.from_auth_response(
        {'token': 't', 'id': 8},
        {'nombre': 'Luis', 'apellido': 'Gómez', 'correo': 'luis@hydrosys.co', 'rol': 'cliente'},
    )
    assert identity.email == 'luis@hydrosys.co'
    assert identity.display_name == 'Luis Gómez'
    assert identity.role is Role.CUSTOMER
    assert identity.role_code == 1


def test_identity_persisted_shape():
    identity = Identity(id=3, email='x@y.co', nombre='X', apellido='Y', role=Role.ADMINISTRATOR)
    data = identity.to_dict()
    assert data == {'id': 3, 'email': 'x@y.co', 'nombre': 'X', 'apellido': 'Y', 'rol': 'admin', 'rolId': 0}
    assert Identity.from_dict(data) == identity


# ==============================================================================
# PEDIDOS Y PRODUCTOS
# ==============================================================================

def test_order_owner_embedded_or_bare():
    embedded = Order.from_dict({'id': 1, 'usuario': {'id': 5, 'nombre': 'Ana', 'apellido': 'Rojas'},
                                'totalPedido': '2500', 'fechaPedido': '2024-05-01T10:00:00'})
    bare = Order.from_dict({'id': 2, 'usuarioId': 6, 'totalPedido': 19.99,
                            'fechaCreacion': '2024-05-02T10:00:00Z'})
    assert embedded.usuario_id == 5
    assert embedded.cliente == 'Ana Rojas'
    assert embedded.total == Decimal('2500')
    assert embedded.fecha == datetime(2024, 5, 1, 10, 0)
    assert bare.usuario_id == 6
    assert bare.fecha is not None and bare.fecha.tzinfo is not None


def test_order_payload_total_is_string():
    order = Order(id=None, usuario_id=2, total=Decimal('2500'), metodo_pago_id=1,
                  direccion_envio='Calle 1')
    payload = order.to_payload()
    assert payload['totalPedido'] == '2500'
    assert payload['estadoPedido'] == 'PENDIENTE'


def test_product_stock_flags():
    product = Product.from_dict({'id': 1, 'nombre': 'Cilindro', 'precio': 1000, 'stock': 9,
                                 'categoria': {'id': 2, 'nombre': 'Cilindros'}})
    assert product.is_low_stock
    assert not product.is_out_of_stock
    assert product.categoria_id == 2
    assert product.categoria == 'Cilindros'
    assert product.stock_value == Decimal('9000')


def test_sales_record_to_order():
    record = SalesRecord.from_dict({'id_producto': 4, 'nombre_producto': 'Cilindro', 'id_cliente': 9,
                                    'nombre_cliente': 'Ana Rojas', 'precio_unitario': 1000,
                                    'cantidad': 3, 'fecha': '2024-05-01T10:00:00', 'estado': 'ENTREGADO'})
    order = record.to_order()
    assert order.total == Decimal('3000')
    assert order.cliente == 'Ana Rojas'
    assert order.direccion_envio == 'N/A'
