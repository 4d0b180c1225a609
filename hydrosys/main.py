# ==============================================================================
# HYDROSYS - Aplicación Flask (BFF del storefront)
# ==============================================================================
# Expone en JSON las vistas de la tienda y del back-office:
#   - Autenticación (cookie firmada con token + identidad)
#   - Catálogo, carrito y checkout
#   - Pedidos del cliente y monitoreo del administrador
#   - Dashboards y reportes PDF (solo administradores)
#
# Todas las llamadas salen al backend REST de HydroSyS a través de los
# servicios del contenedor; las rutas NO hablan con requests directamente.
# ==============================================================================

import logging
import uuid
from functools import wraps
from io import BytesIO

import requests
from flask import Flask, g, jsonify, request, send_file, session
from werkzeug.exceptions import HTTPException

from hydrosys.app_container import get_container
from hydrosys.config import Config
from hydrosys.models import to_int
from hydrosys.performance_logger import configure_logging, init_profiling
from hydrosys.repositories import CookieSessionStorage, error_message
from hydrosys.services import AuthResponseError, UnknownReportError
from hydrosys.services.product_service import HOME_CATALOG_LIMIT


logger = logging.getLogger(__name__)

config = Config()

app = Flask(__name__)
app.config.from_object(config)
app.secret_key = config.SECRET_KEY

# ═══════════════════════════════════════════════════════════════════════════
# LOGS Y PROFILING
# ═══════════════════════════════════════════════════════════════════════════
# Mide rendimiento de rutas y llamadas al backend. Logs en HYDROSYS_LOGS_DIR
# Para desactivar: HYDROSYS_ENABLE_PROFILING=0
configure_logging(config.LOGS_DIR, enabled=config.ENABLE_PROFILING)
init_profiling(app)

if config.PRODUCTION_MODE and not config.has_custom_secret:
    logger.warning("[ADVERTENCIA] PRODUCTION_MODE activo sin HYDROSYS_SECRET_KEY definida")

get_container(config)


# ═══════════════════════════════════════════════════════════════════════════
# SESIÓN POR REQUEST
# ═══════════════════════════════════════════════════════════════════════════

@app.before_request
def load_session_store():
    """Arma el SessionStore de este request desde la cookie del navegador."""
    store = get_container().session_store_for(CookieSessionStorage(session))
    store.restore()
    g.session_store = store


def current_store():
    return g.session_store


def fail(error, status=400, **extra):
    body = {'ok': False, 'error': error}
    body.update(extra)
    return jsonify(body), status


def json_body():
    """Cuerpo JSON del request; {} si no viene o no es un objeto."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def text_field(data, key):
    """Campo de texto sin espacios extremos; '' si falta o no es string."""
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ''


def result_response(result, status_ok=200):
    """Traduce el dict {'ok': ...} de un servicio a una respuesta HTTP."""
    if not result.get('ok'):
        return jsonify(result), 400
    return jsonify(result), status_ok


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if not current_store().is_authenticated:
            return fail("Debes iniciar sesión.", 401)
        return f(*args, **kwargs)
    return wrapper


def admin_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        store = current_store()
        if not store.is_authenticated:
            return fail("Debes iniciar sesión.", 401)
        if not store.is_admin:
            return fail("Permiso denegado.", 403)
        return f(*args, **kwargs)
    return wrapper


# ═══════════════════════════════════════════════════════════════════════════
# CSRF Y CABECERAS DE SEGURIDAD
# ═══════════════════════════════════════════════════════════════════════════

def generate_csrf_token():
    if 'csrf_token' not in session:
        session['csrf_token'] = uuid.uuid4().hex
    return session['csrf_token']


def verify_csrf(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        if app.config.get('CSRF_ENABLED', True) and request.method in ('POST', 'PUT', 'PATCH', 'DELETE'):
            token = session.get('csrf_token')
            sent = request.headers.get('X-CSRF-Token') or request.headers.get('X-CSRFToken')
            if not sent and request.is_json:
                sent = json_body().get('csrf_token')
            if not token or not sent or token != sent:
                return fail("CSRF token inválido", 403)
        return f(*args, **kwargs)
    return wrapper


@app.after_request
def set_security_headers(response):
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['Referrer-Policy'] = 'no-referrer-when-downgrade'
    response.headers['Permissions-Policy'] = 'geolocation=(), microphone=()'
    # HSTS solo con HTTPS real
    if request.is_secure:
        response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'
    return response


# ═══════════════════════════════════════════════════════════════════════════
# ERRORES
# ═══════════════════════════════════════════════════════════════════════════

@app.errorhandler(requests.RequestException)
def handle_backend_error(e):
    """Errores del backend: 401/403/404 se respetan, el resto es 502."""
    status = 502
    response = getattr(e, 'response', None)
    if response is not None and response.status_code in (401, 403, 404):
        status = response.status_code
    logger.error("[BACKEND] %s %s -> %s", request.method, request.path, e)
    return fail(error_message(e), status)


@app.errorhandler(HTTPException)
def handle_http_error(e):
    return fail(e.description, e.code)


# ═══════════════════════════════════════════════════════════════════════════
# AUTENTICACIÓN
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/csrf', methods=['GET'])
def csrf_token():
    return jsonify({'csrf_token': generate_csrf_token()})


def _auth_failure(store, e, status):
    if isinstance(e, requests.HTTPError):
        return fail(store.error, status)
    return fail(store.error, 502)


@app.route('/api/auth/login', methods=['POST'])
@verify_csrf
def login():
    data = json_body()
    email = text_field(data, 'email')
    password = data.get('password') if isinstance(data.get('password'), str) else ''
    if not email or not password:
        return fail("Correo y contraseña son requeridos")
    store = current_store()
    try:
        identity = store.login(email, password)
    except (requests.RequestException, AuthResponseError) as e:
        return _auth_failure(store, e, 401)
    return jsonify({'ok': True, 'usuario': identity.to_dict()})


@app.route('/api/auth/register', methods=['POST'])
@verify_csrf
def register():
    data = json_body()
    data.pop('csrf_token', None)
    for campo in ('nombre', 'correo', 'password'):
        if not text_field(data, campo):
            return fail(f"El campo {campo} es requerido")
    data.setdefault('rol', 'cliente')
    store = current_store()
    try:
        identity = store.register(data)
    except (requests.RequestException, AuthResponseError) as e:
        return _auth_failure(store, e, 400)
    return jsonify({'ok': True, 'usuario': identity.to_dict()}), 201


@app.route('/api/auth/logout', methods=['POST'])
@verify_csrf
def logout():
    current_store().logout()
    return jsonify({'ok': True})


@app.route('/api/auth/me', methods=['GET'])
@login_required
def me():
    identity = current_store().identity
    data = identity.to_dict()
    data['nombreCompleto'] = identity.display_name
    return jsonify({'ok': True, 'usuario': data})


# ═══════════════════════════════════════════════════════════════════════════
# CATÁLOGO
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/productos', methods=['GET'])
def catalog():
    """?portada=1 limita a los primeros productos, como la página de inicio."""
    limit = request.args.get('limit', type=int)
    if limit is None and request.args.get('portada'):
        limit = HOME_CATALOG_LIMIT
    products = get_container().product_service.list_products(limit)
    return jsonify([p.to_dict() for p in products])


@app.route('/api/productos/<int:producto_id>', methods=['GET'])
def product_detail(producto_id):
    product = get_container().product_service.get_product(producto_id)
    if product is None:
        return fail("Producto no encontrado", 404)
    data = product.to_dict()
    data['disponible'] = product.available
    data['stockBajo'] = product.is_low_stock and product.available
    return jsonify(data)


@app.route('/api/productos', methods=['POST'])
@verify_csrf
@admin_required
def product_create():
    result = get_container().product_service.create(json_body())
    return result_response(result, 201)


@app.route('/api/productos/<int:producto_id>', methods=['PUT'])
@verify_csrf
@admin_required
def product_update(producto_id):
    result = get_container().product_service.update(producto_id, json_body())
    return result_response(result)


@app.route('/api/productos/<int:producto_id>', methods=['DELETE'])
@verify_csrf
@admin_required
def product_delete(producto_id):
    return result_response(get_container().product_service.delete(producto_id))


@app.route('/api/inventario', methods=['GET'])
@admin_required
def inventory():
    service = get_container().product_service
    products = service.list_products()
    return jsonify({
        'productos': [p.to_dict() for p in products],
        'resumen': service.inventory_summary(products),
    })


# ═══════════════════════════════════════════════════════════════════════════
# CARRITO Y CHECKOUT
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/carrito', methods=['GET'])
@login_required
def cart_view():
    return jsonify(get_container().cart_service.get_cart(current_store().identity.id))


@app.route('/api/carrito', methods=['POST'])
@verify_csrf
@login_required
def cart_add():
    data = json_body()
    result = get_container().cart_service.add_item(
        current_store().identity.id,
        data.get('productoId'),
        data.get('cantidad', 1),
    )
    return result_response(result, 201)


@app.route('/api/carrito/<int:linea_id>', methods=['DELETE'])
@verify_csrf
@login_required
def cart_remove(linea_id):
    return result_response(get_container().cart_service.remove_item(current_store().identity.id, linea_id))


@app.route('/api/carrito', methods=['DELETE'])
@verify_csrf
@login_required
def cart_clear():
    return result_response(get_container().cart_service.clear(current_store().identity.id))


@app.route('/api/checkout', methods=['POST'])
@verify_csrf
@login_required
def checkout():
    """
    Confirma la compra del carrito actual.

    400: carrito inválido (no se llamó al backend)
    502: falló un paso en el backend (result['order_id'] indica si quedó pedido)
    """
    data = json_body()
    container = get_container()
    usuario_id = current_store().identity.id

    kwargs = {}
    if data.get('metodoPagoId') is not None:
        metodo_pago_id = to_int(data['metodoPagoId'])
        if metodo_pago_id is None:
            return fail("Método de pago inválido")
        kwargs['metodo_pago_id'] = metodo_pago_id
    direccion = data.get('direccionEnvio')
    if direccion is not None and not isinstance(direccion, str):
        return fail("Dirección de envío inválida")
    if (direccion or '').strip():
        kwargs['direccion_envio'] = direccion.strip()

    lines = container.cart_service.get_lines(usuario_id)
    result = container.checkout_service.process_purchase(usuario_id, lines, **kwargs)
    if result['success']:
        return jsonify(result), 201
    return jsonify(result), 502 if result['failed_step'] else 400


# ═══════════════════════════════════════════════════════════════════════════
# PEDIDOS
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/pedidos', methods=['GET'])
@login_required
def orders():
    """Administradores ven todos los pedidos; clientes, solo los suyos."""
    orders = get_container().order_service.list_for(current_store().identity)
    return jsonify([o.to_dict() for o in orders])


@app.route('/api/pedidos/<int:pedido_id>', methods=['GET'])
@login_required
def order_detail(pedido_id):
    order = get_container().order_service.get_detail(current_store().identity, pedido_id)
    if order is None:
        return fail("Pedido no encontrado", 404)
    return jsonify(order.to_dict())


@app.route('/api/pedidos/<int:pedido_id>', methods=['PATCH'])
@verify_csrf
@admin_required
def order_status(pedido_id):
    data = json_body()
    return result_response(get_container().order_service.update_status(pedido_id, data.get('estadoPedido')))


@app.route('/api/pedidos/<int:pedido_id>', methods=['DELETE'])
@verify_csrf
@admin_required
def order_delete(pedido_id):
    return result_response(get_container().order_service.delete(pedido_id))


# ═══════════════════════════════════════════════════════════════════════════
# DASHBOARDS Y REPORTES
# ═══════════════════════════════════════════════════════════════════════════

@app.route('/api/dashboard', methods=['GET'])
@admin_required
def dashboard():
    return jsonify(get_container().stats_service.get_dashboard())


@app.route('/api/dashboard/analytics', methods=['GET'])
@admin_required
def dashboard_analytics():
    return jsonify(get_container().stats_service.get_analytics())


@app.route('/reportes/<tipo>', methods=['GET'])
@admin_required
def download_report(tipo):
    """PDF descargable. ?fuente=analitica exporta los pedidos de la fuente analítica."""
    try:
        filename, content = get_container().report_service.generate(
            tipo, source=request.args.get('fuente', 'backend'))
    except UnknownReportError as e:
        return fail(str(e), 404)
    return send_file(
        BytesIO(content),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename,
    )


# ═══════════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════════

from hydrosys.cli import register_commands  # noqa: E402

register_commands(app)


if __name__ == "__main__":
    import os
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    PORT = int(os.environ.get('FLASK_PORT', 5000))
    app.run(host=HOST, port=PORT, debug=DEBUG)
