import itertools
import json
import os
import tempfile
from datetime import datetime

import pytest
import requests

# Configuración de pruebas ANTES de importar la app
_TMP = tempfile.mkdtemp(prefix='hydrosys_tests_')
os.environ.setdefault('HYDROSYS_LOGS_DIR', os.path.join(_TMP, 'logs'))
os.environ.setdefault('HYDROSYS_SESSION_FILE', os.path.join(_TMP, 'session.json'))
os.environ.setdefault('HYDROSYS_ENABLE_PROFILING', '0')

from hydrosys.app_container import get_container  # noqa: E402
from hydrosys.repositories import FileSessionRepository  # noqa: E402


# ==============================================================================
# RESPUESTAS HTTP
# ==============================================================================

def make_response(status=200, body=None, url='http://backend.test/api'):
    resp = requests.Response()
    resp.status_code = status
    resp._content = b'' if body is None else json.dumps(body).encode('utf-8')
    resp.headers['Content-Type'] = 'application/json'
    resp.url = url
    return resp


def http_error(status=500, body=None):
    return requests.HTTPError(f'{status} Server Error', response=make_response(status, body))


class FakeHttp:
    """Sustituto de requests.Session: registra llamadas y devuelve respuestas en cola."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append({'method': method, 'url': url, **kwargs})
        item = self.responses.pop(0) if self.responses else make_response(200, None)
        if isinstance(item, Exception):
            raise item
        return item


# ==============================================================================
# BACKEND EN MEMORIA
# ==============================================================================

class FakeBackend:
    """Estado compartido por los clientes falsos + registro de llamadas."""

    def __init__(self):
        self.calls = []
        self.fail_on = {}
        self.ids = itertools.count(100)
        self.users = {}
        self.products = {}
        self.cart = []
        self.orders = {}
        self.details = {}

    def record(self, name, *args):
        self.calls.append((name,) + args)
        exc = self.fail_on.get(name)
        if exc is not None:
            raise exc

    def names(self):
        return [c[0] for c in self.calls]


class FakeAuthRepository:
    def __init__(self, backend):
        self.backend = backend

    def login(self, email, password):
        self.backend.record('auth.login', email)
        user = self.backend.users.get(email)
        if user is None or user['password'] != password:
            raise http_error(401, {'message': 'Credenciales inválidas'})
        return dict(user['response'])

    def register(self, data):
        self.backend.record('auth.register', data.get('correo'))
        return {'token': 'tok-nuevo', 'userId': next(self.backend.ids)}


class FakeProductRepository:
    def __init__(self, backend):
        self.backend = backend

    def get_all(self):
        self.backend.record('productos.get_all')
        return list(self.backend.products.values())

    def get_by_id(self, producto_id):
        self.backend.record('productos.get', producto_id)
        if producto_id not in self.backend.products:
            raise http_error(404, {'message': 'Producto no encontrado'})
        return dict(self.backend.products[producto_id])

    def create(self, data):
        self.backend.record('productos.create', data)
        pid = next(self.backend.ids)
        self.backend.products[pid] = dict(data, id=pid)
        return self.backend.products[pid]

    def update(self, producto_id, data):
        self.backend.record('productos.update', producto_id, data)
        self.backend.products[producto_id] = dict(data, id=producto_id)
        return self.backend.products[producto_id]

    def delete(self, producto_id):
        self.backend.record('productos.delete', producto_id)
        self.backend.products.pop(producto_id, None)


class FakeCartRepository:
    def __init__(self, backend):
        self.backend = backend

    def get_cart(self, usuario_id):
        self.backend.record('carrito.get', usuario_id)
        return [dict(line) for line in self.backend.cart if line.get('usuarioId') == usuario_id]

    def add(self, data):
        self.backend.record('carrito.add', data)
        product = self.backend.products.get(data['productoId'], {})
        line = dict(data, id=next(self.backend.ids), producto={
            'id': data['productoId'],
            'nombre': product.get('nombre', ''),
            'precio': product.get('precio'),
        })
        self.backend.cart.append(line)
        return line

    def delete_line(self, linea_id):
        self.backend.record('carrito.delete', linea_id)
        self.backend.cart = [line for line in self.backend.cart if line.get('id') != linea_id]

    def clear(self, usuario_id):
        self.backend.record('carrito.clear', usuario_id)
        self.backend.cart = [line for line in self.backend.cart if line.get('usuarioId') != usuario_id]


class FakeOrderRepository:
    def __init__(self, backend):
        self.backend = backend

    def get_all(self):
        self.backend.record('pedidos.get_all')
        return list(self.backend.orders.values())

    def get_by_id(self, pedido_id):
        self.backend.record('pedidos.get', pedido_id)
        if pedido_id not in self.backend.orders:
            raise http_error(404, {'message': 'Pedido no encontrado'})
        return dict(self.backend.orders[pedido_id])

    def create(self, data):
        self.backend.record('pedidos.create', data)
        oid = next(self.backend.ids)
        self.backend.orders[oid] = dict(data, id=oid, fechaPedido=datetime.now().isoformat())
        return self.backend.orders[oid]

    def update_status(self, pedido_id, estado):
        self.backend.record('pedidos.update_status', pedido_id, estado)
        self.backend.orders[pedido_id]['estadoPedido'] = estado
        return self.backend.orders[pedido_id]

    def delete(self, pedido_id):
        self.backend.record('pedidos.delete', pedido_id)
        self.backend.orders.pop(pedido_id, None)


class FakeOrderDetailRepository:
    def __init__(self, backend):
        self.backend = backend

    def create(self, data):
        self.backend.record('detalles.create', data)
        did = next(self.backend.ids)
        self.backend.details[did] = dict(data, id=did)
        return self.backend.details[did]

    def get_by_order(self, pedido_id):
        self.backend.record('detalles.get_by_order', pedido_id)
        return [d for d in self.backend.details.values() if d['pedidoId'] == pedido_id]

    def delete(self, detalle_id):
        self.backend.record('detalles.delete', detalle_id)
        self.backend.details.pop(detalle_id, None)


class FakeAnalyticsRepository:
    def __init__(self, records=None, configured=True):
        self.records = records or []
        self._configured = configured

    @property
    def configured(self):
        return self._configured

    def get_records(self):
        return list(self.records)


class MemorySessionStorage:
    """Almacenamiento de sesión en memoria; stamp cambia en cada escritura."""

    def __init__(self):
        self.data = {}
        self.version = 0

    def load(self):
        return self.data.get('auth_token'), self.data.get('user_data')

    def save(self, token, user):
        self.data = {'auth_token': token, 'user_data': dict(user)}
        self.version += 1

    def clear(self):
        self.data = {}
        self.version += 1

    def stamp(self):
        return self.version


# ==============================================================================
# DATOS DE PRUEBA
# ==============================================================================

ADMIN_EMAIL = 'admin@hydrosys.co'
ADMIN_PASSWORD = 'admin123'
CLIENT_EMAIL = 'cliente@hydrosys.co'
CLIENT_PASSWORD = 'cliente123'


def seed(backend):
    backend.users[ADMIN_EMAIL] = {
        'password': ADMIN_PASSWORD,
        'response': {'token': 'tok-admin', 'userId': 1, 'correo': ADMIN_EMAIL,
                     'nombre': 'Ana', 'apellido': 'Rojas', 'rol': 'admin'},
    }
    backend.users[CLIENT_EMAIL] = {
        'password': CLIENT_PASSWORD,
        'response': {'token': 'tok-cliente', 'id': 2, 'email': CLIENT_EMAIL,
                     'nombre': 'Carlos', 'apellido': 'Pérez', 'rol': 'cliente'},
    }
    backend.products[1] = {'id': 1, 'nombre': 'Cilindro 10 kg', 'descripcion': 'Gas propano',
                           'precio': 1000, 'stock': 20, 'categoria': {'id': 1, 'nombre': 'Cilindros'}}
    backend.products[2] = {'id': 2, 'nombre': 'Cilindro 5 kg', 'descripcion': 'Gas propano',
                           'precio': 500, 'stock': 5, 'categoriaId': 1}
    backend.products[3] = {'id': 3, 'nombre': 'Regulador', 'descripcion': 'Regulador de presión',
                           'precio': 19.99, 'stock': 0, 'categoriaId': 2}
    return backend


@pytest.fixture
def backend():
    return seed(FakeBackend())


@pytest.fixture
def repos(backend):
    return {
        'auth_repo': FakeAuthRepository(backend),
        'product_repo': FakeProductRepository(backend),
        'cart_repo': FakeCartRepository(backend),
        'order_repo': FakeOrderRepository(backend),
        'detail_repo': FakeOrderDetailRepository(backend),
        'analytics_repo': FakeAnalyticsRepository(),
    }


@pytest.fixture
def container(repos, tmp_path):
    c = get_container()
    c.reset()
    c.override(session_file=FileSessionRepository(str(tmp_path / 'session.json')), **repos)
    yield c
    c.reset()


@pytest.fixture
def app(container):
    from hydrosys.main import app as flask_app
    flask_app.config['TESTING'] = True
    flask_app.config['CSRF_ENABLED'] = True
    return flask_app


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def csrf(client):
    """Token CSRF de la sesión del cliente de pruebas."""
    def _csrf():
        r = client.get('/api/csrf')
        assert r.status_code == 200
        return r.get_json()['csrf_token']
    return _csrf


@pytest.fixture
def login_as(client, csrf):
    """Inicia sesión por la API y retorna el token CSRF para los requests siguientes."""
    def _login(email, password):
        token = csrf()
        r = client.post('/api/auth/login', json={'email': email, 'password': password},
                        headers={'X-CSRF-Token': token})
        assert r.status_code == 200, r.get_json()
        return token
    return _login
