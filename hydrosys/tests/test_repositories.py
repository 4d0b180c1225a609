import json
import os

import pytest
import requests

from conftest import FakeHttp, make_response
from hydrosys.repositories import (
    AnalyticsRepository,
    AuthRepository,
    CartRepository,
    CookieSessionStorage,
    FileSessionRepository,
    OrderDetailRepository,
    OrderRepository,
    ProductRepository,
    error_message,
)

BASE = 'http://backend.test'


def test_bearer_token_attached_when_present():
    http = FakeHttp(make_response(200, [{'id': 1}]))
    repo = ProductRepository(BASE, token_provider=lambda: 'abc', http=http)

    assert repo.get_all() == [{'id': 1}]
    call = http.calls[0]
    assert call['method'] == 'GET'
    assert call['url'] == f'{BASE}/api/productos'
    assert call['headers']['Authorization'] == 'Bearer abc'


def test_no_authorization_without_token():
    http = FakeHttp(make_response(200, {'token': 't'}))
    repo = AuthRepository(BASE, token_provider=lambda: None, http=http)
    repo.login('a@b.co', 'x')

    call = http.calls[0]
    assert 'Authorization' not in call['headers']
    assert call['json'] == {'email': 'a@b.co', 'password': 'x'}
    assert call['url'] == f'{BASE}/api/auth/login'


def test_errors_propagate_unchanged():
    error = requests.ConnectionError('sin red')
    http = FakeHttp(error)
    repo = OrderRepository(BASE, http=http)
    with pytest.raises(requests.ConnectionError) as exc:
        repo.get_all()
    assert exc.value is error


def test_http_error_raised_for_non_2xx():
    http = FakeHttp(make_response(409, {'message': 'Stock insuficiente'}))
    repo = CartRepository(BASE, http=http)
    with pytest.raises(requests.HTTPError) as exc:
        repo.add({'usuarioId': 1, 'productoId': 2, 'cantidadProducto': 1, 'precioUnitario': 10})
    assert error_message(exc.value) == 'Stock insuficiente'


def test_cart_endpoints():
    http = FakeHttp(make_response(200, []), make_response(204), make_response(204))
    repo = CartRepository(BASE, http=http)

    assert repo.get_cart(7) == []
    assert repo.delete_line(3) is None
    repo.clear(7)

    assert [(c['method'], c['url']) for c in http.calls] == [
        ('GET', f'{BASE}/api/carrito/7'),
        ('DELETE', f'{BASE}/api/carrito/3'),
        ('DELETE', f'{BASE}/api/carrito/vaciar/7'),
    ]


def test_order_and_detail_endpoints():
    http = FakeHttp(make_response(200, {'id': 4, 'estadoPedido': 'ENVIADO'}), make_response(200, []))
    OrderRepository(BASE, http=http).update_status(4, 'ENVIADO')
    OrderDetailRepository(BASE, http=http).get_by_order(4)

    assert http.calls[0]['method'] == 'PATCH'
    assert http.calls[0]['url'] == f'{BASE}/api/pedidos/4'
    assert http.calls[0]['json'] == {'estadoPedido': 'ENVIADO'}
    assert http.calls[1]['url'] == f'{BASE}/api/detalles/pedido/4'


def test_product_update_uses_put():
    http = FakeHttp(make_response(200, {'id': 2}))
    ProductRepository(BASE, http=http).update(2, {'nombre': 'x'})
    assert http.calls[0]['method'] == 'PUT'
    assert http.calls[0]['url'] == f'{BASE}/api/productos/2'


def test_analytics_uses_api_key_and_no_session_token():
    http = FakeHttp(make_response(200, [{'id_producto': 1}]))
    repo = AnalyticsRepository('https://analitica.test/rest/v1/v_pedidos_detalle', 'clave', http=http)

    assert repo.configured
    assert repo.get_records() == [{'id_producto': 1}]
    call = http.calls[0]
    assert call['url'] == 'https://analitica.test/rest/v1/v_pedidos_detalle'
    assert call['params'] == {'select': '*', 'apikey': 'clave'}
    assert 'Authorization' not in call['headers']
    assert not AnalyticsRepository('', '').configured


def test_error_message_order():
    with_message = requests.HTTPError('500', response=make_response(500, {'message': 'm', 'error': 'e'}))
    with_error = requests.HTTPError('500', response=make_response(500, {'error': 'e'}))
    plain_body = requests.HTTPError('502 Bad Gateway', response=make_response(502, None))

    assert error_message(with_message) == 'm'
    assert error_message(with_error) == 'e'
    assert error_message(plain_body) == '502 Bad Gateway'
    assert error_message(plain_body, 'fallback', include_transport=False) == 'fallback'
    assert error_message(requests.RequestException(), 'fallback') == 'fallback'


# ==============================================================================
# ALMACENAMIENTO DE SESIÓN
# ==============================================================================

def test_file_session_pair(tmp_path):
    path = str(tmp_path / 'session.json')
    repo = FileSessionRepository(path)
    assert repo.load() == (None, None)
    assert repo.stamp() is None

    repo.save('tok', {'id': 1, 'email': 'a@b.co'})
    with open(path, encoding='utf-8') as f:
        raw = json.load(f)
    assert raw['auth_token'] == 'tok'
    assert json.loads(raw['user_data'])['email'] == 'a@b.co'
    assert repo.load() == ('tok', {'id': 1, 'email': 'a@b.co'})
    assert repo.stamp() is not None

    repo.clear()
    assert not os.path.exists(path)
    assert repo.load() == (None, None)


def test_file_session_corrupt_file_is_empty(tmp_path):
    path = tmp_path / 'session.json'
    path.write_text('{no es json', encoding='utf-8')
    assert FileSessionRepository(str(path)).load() == (None, None)


@pytest.mark.skipif(os.name == 'nt', reason='permisos POSIX')
def test_file_session_is_private(tmp_path):
    path = tmp_path / 'session.json'
    path.write_text('{}', encoding='utf-8')
    os.chmod(path, 0o644)
    (tmp_path / 'session.json.tmp').write_text('', encoding='utf-8')

    FileSessionRepository(str(path)).save('tok', {'id': 1})
    assert os.stat(path).st_mode & 0o777 == 0o600


def test_cookie_session_storage():
    session = {}
    storage = CookieSessionStorage(session)
    storage.save('tok', {'id': 2})
    assert storage.load() == ('tok', {'id': 2})
    assert storage.stamp() == session['user_data']

    storage.clear()
    assert 'auth_token' not in session
    assert 'user_data' not in session
    assert storage.load() == (None, None)
