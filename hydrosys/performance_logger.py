# ==============================================================================
# SISTEMA DE PROFILING Y LOGS
# ==============================================================================
# Mide rendimiento de rutas y de llamadas al backend REST sin afectar la
# experiencia del usuario. Guarda logs legibles en logs/:
#   - performance.log     → todas las rutas
#   - slow_routes.log     → rutas que superan los umbrales
#   - slow_functions.log  → llamadas lentas (backend, reportes)
#
# ACTIVAR/DESACTIVAR: HYDROSYS_ENABLE_PROFILING
# ==============================================================================

import logging
import os
import threading
import time
from collections import defaultdict
from functools import wraps


# ═══════════════════════════════════════════════════════════════════════════
# CONFIGURACIÓN
# ═══════════════════════════════════════════════════════════════════════════

# Umbrales de tiempo (en milisegundos)
THRESHOLD_WARNING = 300
THRESHOLD_CRITICAL = 700

PERFORMANCE_LOGGER = 'hydrosys.performance'
SLOW_ROUTES_LOGGER = 'hydrosys.performance.slow_routes'
SLOW_FUNCTIONS_LOGGER = 'hydrosys.performance.slow_functions'

# Nombres legibles de rutas para los logs
ROUTE_NAMES = {
    # Autenticación
    'POST /api/auth/login': 'Iniciar sesión',
    'POST /api/auth/register': 'Registrarse',
    'POST /api/auth/logout': 'Cerrar sesión',

    # Catálogo
    'GET /api/productos': 'Ver catálogo',
    'GET /api/productos/<int:producto_id>': 'Ver producto',
    'POST /api/productos': 'Crear producto',
    'PUT /api/productos/<int:producto_id>': 'Editar producto',
    'DELETE /api/productos/<int:producto_id>': 'Eliminar producto',

    # Carrito
    'GET /api/carrito': 'Ver carrito',
    'POST /api/carrito': 'Agregar al carrito',
    'DELETE /api/carrito/<int:linea_id>': 'Eliminar del carrito',
    'DELETE /api/carrito': 'Vaciar carrito',
    'POST /api/checkout': 'Confirmar compra',

    # Pedidos
    'GET /api/pedidos': 'Ver pedidos',
    'GET /api/pedidos/<int:pedido_id>': 'Ver detalle de pedido',
    'PATCH /api/pedidos/<int:pedido_id>': 'Cambiar estado de pedido',

    # Dashboard y reportes
    'GET /api/dashboard': 'Ver dashboard',
    'GET /api/dashboard/analytics': 'Ver dashboard analítico',
    'GET /reportes/<tipo>': 'Descargar reporte PDF',
}

_state = {'enabled': True, 'configured_dir': None}
_config_lock = threading.Lock()


# ═══════════════════════════════════════════════════════════════════════════
# INICIALIZACIÓN
# ═══════════════════════════════════════════════════════════════════════════

def _file_handler(path):
    handler = logging.FileHandler(path, encoding='utf-8')
    handler.setFormatter(logging.Formatter('%(message)s'))
    return handler


def configure_logging(logs_dir, enabled=True, level=logging.INFO):
    """
    Configura los loggers de la aplicación.

    Args:
        logs_dir: Directorio donde se escriben los archivos de log
        enabled: False desactiva el profiling (los logs de la app siguen)
        level: Nivel del logger raíz 'hydrosys'
    """
    with _config_lock:
        _state['enabled'] = enabled

        app_logger = logging.getLogger('hydrosys')
        app_logger.setLevel(level)
        if not app_logger.handlers:
            console = logging.StreamHandler()
            console.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s'))
            app_logger.addHandler(console)

        if not enabled or _state['configured_dir'] == logs_dir:
            return

        os.makedirs(logs_dir, exist_ok=True)
        for name, filename in [(PERFORMANCE_LOGGER, 'performance.log'),
                               (SLOW_ROUTES_LOGGER, 'slow_routes.log'),
                               (SLOW_FUNCTIONS_LOGGER, 'slow_functions.log')]:
            logger = logging.getLogger(name)
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
            logger.addHandler(_file_handler(os.path.join(logs_dir, filename)))
            logger.propagate = False
            logger.setLevel(logging.INFO)
        _state['configured_dir'] = logs_dir


def is_enabled():
    return _state['enabled']


# ═══════════════════════════════════════════════════════════════════════════
# ESTADÍSTICAS DE FUNCIONES (en memoria)
# ═══════════════════════════════════════════════════════════════════════════

# {nombre_funcion: {calls, total_time, max_time}}
_function_stats = defaultdict(lambda: {'calls': 0, 'total_time': 0.0, 'max_time': 0.0})
_stats_lock = threading.Lock()


def _get_route_name(method, path, rule=None):
    """
    Obtiene nombre legible para una ruta.
    Intenta con la regla de Flask y si no, devuelve la ruta tal cual.
    """
    key = f"{method} {path}"
    if key in ROUTE_NAMES:
        return ROUTE_NAMES[key]
    if rule:
        rule_key = f"{method} {rule}"
        if rule_key in ROUTE_NAMES:
            return ROUTE_NAMES[rule_key]
    return key


# ═══════════════════════════════════════════════════════════════════════════
# 1️⃣ PROFILING DE RUTAS
# ═══════════════════════════════════════════════════════════════════════════

def log_route_performance(method, path, rule, time_ms, user=None):
    """Registra el rendimiento de una ruta en performance.log"""
    if not is_enabled():
        return
    logging.getLogger(PERFORMANCE_LOGGER).info(
        "[PERFORMANCE] %s | %s | usuario=%s | %s %s | %.0f ms",
        time.strftime('%Y-%m-%d %H:%M:%S'),
        _get_route_name(method, path, rule),
        user or 'anónimo',
        method, path, time_ms,
    )


def log_slow_route(method, path, rule, time_ms, user=None, level='WARNING'):
    """
    Registra una ruta lenta en slow_routes.log

    Args:
        level: 'WARNING' (>300ms) o 'CRITICAL' (>700ms)
    """
    if not is_enabled():
        return
    threshold = THRESHOLD_WARNING if level == 'WARNING' else THRESHOLD_CRITICAL
    logging.getLogger(SLOW_ROUTES_LOGGER).log(
        logging.CRITICAL if level == 'CRITICAL' else logging.WARNING,
        "[%s] %s | Ruta %s: %s | usuario=%s | %s %s | %.0f ms (umbral: %d ms)",
        level,
        time.strftime('%Y-%m-%d %H:%M:%S'),
        'LENTA' if level == 'WARNING' else 'MUY LENTA',
        _get_route_name(method, path, rule),
        user or 'anónimo',
        method, path, time_ms, threshold,
    )


def init_profiling(app):
    """
    Registra hooks before_request/after_request en la app Flask.

    Uso:
        from hydrosys.performance_logger import init_profiling
        init_profiling(app)
    """
    if not is_enabled():
        return

    @app.before_request
    def _start_timer():
        from flask import g
        g.start_time = time.perf_counter()

    @app.after_request
    def _log_request(response):
        from flask import g, request

        if not hasattr(g, 'start_time'):
            return response

        elapsed = (time.perf_counter() - g.start_time) * 1000

        method = request.method
        path = request.path
        rule = str(request.url_rule) if request.url_rule else path
        store = g.get('session_store')
        user = store.identity.email if store is not None and store.identity else None

        if path.startswith('/static'):
            return response

        log_route_performance(method, path, rule, elapsed, user)

        if elapsed >= THRESHOLD_CRITICAL:
            log_slow_route(method, path, rule, elapsed, user, 'CRITICAL')
        elif elapsed >= THRESHOLD_WARNING:
            log_slow_route(method, path, rule, elapsed, user, 'WARNING')

        return response


# ═══════════════════════════════════════════════════════════════════════════
# 2️⃣ DECORADOR PARA FUNCIONES CLAVE
# ═══════════════════════════════════════════════════════════════════════════

def profile_function(func=None, name=None):
    """
    Decorador para medir rendimiento de funciones críticas.

    Uso:
        @profile_function
        def mi_funcion():
            ...

        @profile_function(name="Generar reporte PDF")
        def build_pdf():
            ...
    """
    def decorator(fn):
        func_name = name or fn.__name__

        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not is_enabled():
                return fn(*args, **kwargs)
            start = time.perf_counter()
            try:
                return fn(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000

                with _stats_lock:
                    stats = _function_stats[func_name]
                    stats['calls'] += 1
                    stats['total_time'] += elapsed_ms
                    if elapsed_ms > stats['max_time']:
                        stats['max_time'] = elapsed_ms

                if elapsed_ms >= THRESHOLD_WARNING:
                    _log_slow_function_call(func_name, elapsed_ms)

        return wrapper

    # Permitir uso sin paréntesis: @profile_function
    if func is not None:
        return decorator(func)
    return decorator


def _log_slow_function_call(func_name, time_ms):
    severity = 'CRÍTICO' if time_ms >= THRESHOLD_CRITICAL else 'LENTO'
    logging.getLogger(SLOW_FUNCTIONS_LOGGER).warning(
        "[%s] %s | Función: %s | %.0f ms",
        severity, time.strftime('%Y-%m-%d %H:%M:%S'), func_name, time_ms,
    )


# ═══════════════════════════════════════════════════════════════════════════
# 3️⃣ REPORTE DE ESTADÍSTICAS
# ═══════════════════════════════════════════════════════════════════════════

def get_function_stats():
    """
    Obtiene estadísticas de todas las funciones perfiladas.

    Returns:
        dict: {nombre: {calls, avg_time, max_time}}
    """
    with _stats_lock:
        result = {}
        for func_name, stats in _function_stats.items():
            calls = stats['calls']
            avg = stats['total_time'] / calls if calls > 0 else 0
            result[func_name] = {
                'calls': calls,
                'avg_time': round(avg, 2),
                'max_time': round(stats['max_time'], 2)
            }
        return result


def reset_stats():
    """Reinicia todas las estadísticas (útil para testing)"""
    with _stats_lock:
        _function_stats.clear()


__all__ = [
    'configure_logging',
    'init_profiling',
    'profile_function',
    'get_function_stats',
    'reset_stats',
]
