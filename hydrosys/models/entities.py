# ==============================================================================
# ENTIDADES DEL DOMINIO - Definiciones de dataclasses
# ==============================================================================
# Cada entidad representa un concepto del negocio tal como lo entrega el
# backend REST. Las ambigüedades del backend (nombres de campo alternativos,
# objetos embebidos o claves foráneas sueltas) se resuelven UNA sola vez en
# from_dict(); el resto del código solo ve la forma canónica.
# ==============================================================================

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional


# ==============================================================================
# CONVERSIONES
# ==============================================================================

NAN = Decimal('NaN')


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convierte un valor del backend a Decimal.

    Returns:
        None si el valor no viene, Decimal('NaN') si no es numérico
    """
    if value is None or value == '':
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return NAN
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return NAN


def first_truthy(*values: Any) -> Any:
    """Primer valor no vacío ni cero."""
    for value in values:
        if value:
            return value
    return None


def format_decimal(value: Decimal) -> str:
    """Serializa un monto sin símbolo de moneda ni ceros sobrantes ("2500", "19.99")."""
    text = format(value.normalize(), 'f')
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text


def json_number(value: Optional[Decimal]) -> Any:
    """Decimal -> int/float para cuerpos JSON."""
    if value is None:
        return None
    if value.is_finite() and value == value.to_integral_value():
        return int(value)
    return float(value)


def to_int(value: Any) -> Optional[int]:
    """Convierte a int, None si no es posible."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return int(number) if math.isfinite(number) and number.is_integer() else None


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parsea fechas ISO del backend (con o sin zona horaria)."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None


def _ref_id(embedded: Any, bare: Any) -> Optional[int]:
    """ID desde objeto embebido ({id: ...}) o clave foránea suelta."""
    if isinstance(embedded, dict) and embedded.get('id') is not None:
        return to_int(embedded.get('id'))
    return to_int(bare)


# ==============================================================================
# ENUMERACIONES
# ==============================================================================

class Role(str, Enum):
    """Roles del sistema. El backend ha usado muchas variantes del texto."""
    CUSTOMER = "cliente"
    ADMINISTRATOR = "admin"

    @property
    def code(self) -> int:
        """Código numérico: 0 = administrador, 1 = cliente."""
        return 0 if self is Role.ADMINISTRATOR else 1

    @classmethod
    def parse(cls, value: Any, code: Any = None) -> 'Role':
        """
        Resuelve el rol desde el texto del backend ("admin", "ADMINISTRADOR",
        "ADMIN", "cliente", "CLIENTE"...). Sin texto, usa el código numérico.
        """
        if value:
            low = str(value).strip().lower()
            if low in ('admin', 'administrador', 'administrator'):
                return cls.ADMINISTRATOR
            return cls.CUSTOMER
        if to_int(code) == 0:
            return cls.ADMINISTRATOR
        return cls.CUSTOMER


INITIAL_ORDER_STATUS = 'PENDIENTE'


# ==============================================================================
# IDENTIDAD
# ==============================================================================

@dataclass
class Identity:
    """
    Usuario autenticado.

    Attributes:
        id: ID del usuario en el backend
        email: Correo (el backend lo llama "email" o "correo")
        nombre: Nombre
        apellido: Apellido
        role: Rol canónico
    """
    id: int
    email: str
    nombre: str = 'Usuario'
    apellido: str = ''
    role: Role = Role.CUSTOMER

    @property
    def role_code(self) -> int:
        return self.role.code

    @property
    def display_name(self) -> str:
        return f"{self.nombre} {self.apellido}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMINISTRATOR

    def to_dict(self) -> Dict[str, Any]:
        """Forma persistida en el almacenamiento de sesión."""
        return {
            'id': self.id,
            'email': self.email,
            'nombre': self.nombre,
            'apellido': self.apellido,
            'rol': self.role.value,
            'rolId': self.role_code,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Identity':
        """Restaura desde la forma persistida."""
        return cls(
            id=to_int(data.get('id')),
            email=data.get('email') or '',
            nombre=data.get('nombre') or 'Usuario',
            apellido=data.get('apellido') or '',
            role=Role.parse(data.get('rol'), data.get('rolId')),
        )

    @classmethod
    def from_auth_response(
        cls,
        data: Dict[str, Any],
        submitted: Dict[str, Any] = None
    ) -> 'Identity':
        """
        Normaliza la respuesta de login/registro del backend.

        Args:
            data: Respuesta plana ({token, userId|id, email|correo, nombre, apellido, rol})
            submitted: Datos enviados en el registro (respaldo de campos faltantes)
        """
        submitted = submitted or {}
        return cls(
            id=to_int(data.get('userId') or data.get('id')),
            email=data.get('correo') or data.get('email') or submitted.get('correo') or submitted.get('email') or '',
            nombre=data.get('nombre') or submitted.get('nombre') or 'Usuario',
            apellido=data.get('apellido') or submitted.get('apellido') or '',
            role=Role.parse(
                data.get('rol') or data.get('role') or submitted.get('rol'),
                data.get('rolId') if data.get('rolId') is not None else data.get('roleId'),
            ),
        )


# ==============================================================================
# PRODUCTOS
# ==============================================================================

@dataclass
class ProductSummary:
    """Resumen de producto embebido en líneas de carrito y de pedido."""
    id: Optional[int]
    nombre: str = ''
    precio: Optional[Decimal] = None
    descripcion: str = ''
    imagen_url: str = ''

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['ProductSummary']:
        if not isinstance(data, dict):
            return None
        return cls(
            id=to_int(data.get('id')),
            nombre=data.get('nombre') or '',
            precio=to_decimal(data.get('precio')),
            descripcion=data.get('descripcion') or '',
            imagen_url=data.get('imagenUrl') or '',
        )


@dataclass
class Product:
    """
    Producto del catálogo. Solo lectura para el checkout: el stock nunca se
    descuenta al comprar.

    Attributes:
        id: ID del producto
        nombre: Nombre
        descripcion: Descripción
        precio: Precio unitario
        stock: Unidades disponibles
        categoria_id: ID de categoría (embebida o suelta)
        categoria: Nombre de la categoría si viene embebida
        imagen_url: URL de imagen
    """
    id: Optional[int]
    nombre: str
    descripcion: str = ''
    precio: Decimal = Decimal('0')
    stock: int = 0
    categoria_id: Optional[int] = None
    categoria: str = ''
    imagen_url: str = ''

    LOW_STOCK_THRESHOLD = 10

    @property
    def is_low_stock(self) -> bool:
        return self.stock < self.LOW_STOCK_THRESHOLD

    @property
    def is_out_of_stock(self) -> bool:
        return self.stock == 0

    @property
    def available(self) -> bool:
        return self.stock > 0

    @property
    def stock_value(self) -> Decimal:
        return self.precio * self.stock

    def to_payload(self) -> Dict[str, Any]:
        """Cuerpo de creación/actualización (ProductoDTO)."""
        payload = {
            'nombre': self.nombre,
            'descripcion': self.descripcion,
            'precio': json_number(self.precio),
            'stock': self.stock,
            'categoriaId': self.categoria_id,
        }
        if self.imagen_url:
            payload['imagenUrl'] = self.imagen_url
        return payload

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_payload()
        data['id'] = self.id
        data['categoria'] = self.categoria
        data['imagenUrl'] = self.imagen_url
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Product':
        categoria = data.get('categoria')
        precio = to_decimal(data.get('precio'))
        return cls(
            id=to_int(data.get('id')),
            nombre=data.get('nombre') or '',
            descripcion=data.get('descripcion') or '',
            precio=precio if precio is not None and precio.is_finite() else Decimal('0'),
            stock=to_int(data.get('stock')) or 0,
            categoria_id=_ref_id(categoria, data.get('categoriaId')),
            categoria=categoria.get('nombre', '') if isinstance(categoria, dict) else '',
            imagen_url=data.get('imagenUrl') or '',
        )


# ==============================================================================
# CARRITO
# ==============================================================================

@dataclass
class CartLine:
    """
    Línea del carrito (DetalleCarrito).

    Attributes:
        id: ID de la línea
        usuario_id: Dueño del carrito
        producto_id: Clave foránea suelta del producto (puede faltar)
        quantity: Cantidad efectiva (cantidadProducto, cantidad o 1)
        unit_price: Precio efectivo (precio del producto, precioUnitario o 0)
        producto: Resumen de producto embebido
    """
    id: Optional[int]
    usuario_id: Optional[int]
    producto_id: Optional[int]
    quantity: Decimal
    unit_price: Decimal
    producto: Optional[ProductSummary] = None

    @property
    def product_id(self) -> Optional[int]:
        """ID de producto resuelto: el embebido tiene prioridad."""
        if self.producto is not None and self.producto.id is not None:
            return self.producto.id
        return self.producto_id

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def nombre(self) -> str:
        return self.producto.nombre if self.producto else ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'usuarioId': self.usuario_id,
            'productoId': self.product_id,
            'nombre': self.nombre,
            'cantidadProducto': json_number(self.quantity),
            'precioUnitario': json_number(self.unit_price),
            'subtotal': json_number(self.subtotal),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartLine':
        producto = ProductSummary.from_dict(data.get('producto'))
        quantity = to_decimal(first_truthy(data.get('cantidadProducto'), data.get('cantidad'))) or Decimal('1')
        embedded_price = producto.precio if producto else None
        unit_price = to_decimal(first_truthy(embedded_price, data.get('precioUnitario'))) or Decimal('0')
        return cls(
            id=to_int(data.get('id')),
            usuario_id=to_int(data.get('usuarioId')),
            producto_id=to_int(data.get('productoId')),
            quantity=quantity,
            unit_price=unit_price,
            producto=producto,
        )


def cart_total(lines: Iterable[CartLine]) -> Decimal:
    """
    Total del carrito: Σ precio efectivo × cantidad efectiva.

    Es la ÚNICA fórmula de total; la usan el resumen del carrito y el
    checkout para que lo mostrado sea lo cobrado.
    """
    return sum((line.subtotal for line in lines), Decimal('0'))


# ==============================================================================
# PEDIDOS
# ==============================================================================

@dataclass
class OrderLine:
    """
    Línea de pedido (DetallePedido). Inmutable una vez creada.
    """
    id: Optional[int]
    pedido_id: Optional[int]
    producto_id: Optional[int]
    quantity: Decimal
    unit_price: Decimal
    producto: Optional[ProductSummary] = None

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_payload(self) -> Dict[str, Any]:
        """Cuerpo de POST /api/detalles."""
        return {
            'pedidoId': self.pedido_id,
            'productoId': self.producto_id,
            'cantidadProducto': json_number(self.quantity),
            'precioUnitario': json_number(self.unit_price),
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_payload()
        data['id'] = self.id
        data['nombre'] = self.producto.nombre if self.producto else ''
        data['subtotal'] = json_number(self.subtotal)
        return data

    @classmethod
    def from_cart_line(cls, pedido_id: int, line: CartLine) -> 'OrderLine':
        return cls(
            id=None,
            pedido_id=pedido_id,
            producto_id=line.product_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            producto=line.producto,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'OrderLine':
        producto = ProductSummary.from_dict(data.get('producto'))
        return cls(
            id=to_int(data.get('id')),
            pedido_id=to_int(data.get('pedidoId')),
            producto_id=_ref_id(data.get('producto'), data.get('productoId')),
            quantity=to_decimal(data.get('cantidadProducto')) or Decimal('0'),
            unit_price=to_decimal(data.get('precioUnitario')) or Decimal('0'),
            producto=producto,
        )


@dataclass
class Order:
    """
    Pedido. Se crea una vez por checkout; el administrador cambia su estado.

    Attributes:
        id: ID del pedido
        usuario_id: Dueño (objeto "usuario" embebido o "usuarioId")
        cliente: Nombre del cliente si el usuario viene embebido
        metodo_pago_id: Método de pago (embebido o suelto)
        estado: Etiqueta libre de estado
        direccion_envio: Dirección de envío
        total: Total del pedido (el backend lo maneja como BigDecimal)
        fecha: Fecha de creación (fechaPedido o fechaCreacion)
        lines: Detalles del pedido, si vienen
    """
    id: Optional[int]
    usuario_id: Optional[int]
    estado: str = INITIAL_ORDER_STATUS
    direccion_envio: str = ''
    total: Decimal = Decimal('0')
    metodo_pago_id: Optional[int] = None
    cliente: str = ''
    fecha: Optional[datetime] = None
    lines: List[OrderLine] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """Cuerpo de POST /api/pedidos: el total viaja como string."""
        return {
            'usuarioId': self.usuario_id,
            'metodoPagoId': self.metodo_pago_id,
            'estadoPedido': self.estado,
            'direccionEnvio': self.direccion_envio,
            'totalPedido': format_decimal(self.total),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'usuarioId': self.usuario_id,
            'cliente': self.cliente,
            'metodoPagoId': self.metodo_pago_id,
            'estadoPedido': self.estado,
            'direccionEnvio': self.direccion_envio,
            'totalPedido': format_decimal(self.total),
            'fecha': self.fecha.isoformat() if self.fecha else None,
            'detalles': [line.to_dict() for line in self.lines],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Order':
        usuario = data.get('usuario')
        cliente = ''
        if isinstance(usuario, dict):
            cliente = f"{usuario.get('nombre') or ''} {usuario.get('apellido') or ''}".strip()
        total = to_decimal(data.get('totalPedido'))
        return cls(
            id=to_int(data.get('id')),
            usuario_id=_ref_id(usuario, data.get('usuarioId')),
            cliente=cliente,
            metodo_pago_id=_ref_id(data.get('metodoPago'), data.get('metodoPagoId')),
            estado=data.get('estadoPedido') or '',
            direccion_envio=data.get('direccionEnvio') or '',
            total=total if total is not None and total.is_finite() else Decimal('0'),
            fecha=parse_datetime(data.get('fechaPedido') or data.get('fechaCreacion')),
            lines=[OrderLine.from_dict(d) for d in data.get('detalles') or []],
        )


# ==============================================================================
# ANALÍTICA
# ==============================================================================

@dataclass
class SalesRecord:
    """Fila aplanada de la fuente analítica (vista v_pedidos_detalle)."""
    id_producto: Optional[int]
    nombre_producto: str
    id_cliente: Optional[int]
    nombre_cliente: str
    precio_unitario: Decimal
    cantidad: int
    fecha: Optional[datetime]
    estado: str

    @property
    def subtotal(self) -> Decimal:
        return self.precio_unitario * self.cantidad

    def to_order(self) -> Order:
        """Adapta la fila al formato de pedido (para el reporte PDF)."""
        return Order(
            id=self.id_producto,
            usuario_id=self.id_cliente,
            cliente=self.nombre_cliente,
            estado=self.estado,
            direccion_envio='N/A',
            total=self.subtotal,
            fecha=self.fecha,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id_producto': self.id_producto,
            'nombre_producto': self.nombre_producto,
            'id_cliente': self.id_cliente,
            'nombre_cliente': self.nombre_cliente,
            'precio_unitario': json_number(self.precio_unitario),
            'cantidad': self.cantidad,
            'fecha': self.fecha.isoformat() if self.fecha else None,
            'estado': self.estado,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SalesRecord':
        precio = to_decimal(data.get('precio_unitario'))
        return cls(
            id_producto=to_int(data.get('id_producto')),
            nombre_producto=data.get('nombre_producto') or '',
            id_cliente=to_int(data.get('id_cliente')),
            nombre_cliente=data.get('nombre_cliente') or '',
            precio_unitario=precio if precio is not None and precio.is_finite() else Decimal('0'),
            cantidad=to_int(data.get('cantidad')) or 0,
            fecha=parse_datetime(data.get('fecha')),
            estado=data.get('estado') or '',
        )
