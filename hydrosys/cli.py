# ==============================================================================
# COMANDOS DE CONSOLA - flask --app hydrosys.main <comando>
# ==============================================================================
# Los mismos servicios que la web, con la sesión guardada en un archivo JSON
# (HYDROSYS_SESSION_FILE). Varias terminales comparten ese archivo: antes de
# cada comando la sesión se sincroniza con lo que haya escrito otra.
#
#   flask --app hydrosys.main login ana@hydrosys.co
#   flask --app hydrosys.main catalog --limit 10
#   flask --app hydrosys.main add 3 --cantidad 2
#   flask --app hydrosys.main checkout --direccion "Calle 10 # 5-20"
#   flask --app hydrosys.main report inventario -o ./reportes
# ==============================================================================

import os
from functools import wraps

import click
import requests
from flask import g

from hydrosys.app_container import get_container
from hydrosys.models import format_decimal
from hydrosys.repositories import error_message
from hydrosys.services import AuthResponseError, UnknownReportError
from hydrosys.services.report_service import REPORT_TYPES


def _store():
    """SessionStore de la CLI, sincronizado y expuesto al token_provider."""
    store = get_container().cli_session_store
    store.sync()
    g.session_store = store
    return store


def _require_login(admin=False):
    store = _store()
    if not store.is_authenticated:
        raise click.ClickException("Debes iniciar sesión (flask login <correo>).")
    if admin and not store.is_admin:
        raise click.ClickException("Permiso denegado.")
    return store.identity


def backend_errors(f):
    """Convierte errores del backend en mensajes de consola."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except requests.RequestException as e:
            raise click.ClickException(error_message(e))
    return wrapper


def register_commands(app):
    """Registra los comandos en app.cli."""

    @app.cli.command('login')
    @click.argument('email')
    @click.password_option('--password', confirmation_prompt=False)
    def login_command(email, password):
        """Inicia sesión y la guarda en el archivo de sesión."""
        store = _store()
        try:
            identity = store.login(email, password)
        except (requests.RequestException, AuthResponseError):
            raise click.ClickException(store.error)
        click.echo(f"Bienvenido, {identity.display_name} ({identity.role.value})")

    @app.cli.command('logout')
    def logout_command():
        """Cierra la sesión guardada."""
        _store().logout()
        click.echo("Sesión cerrada")

    @app.cli.command('whoami')
    def whoami_command():
        """Muestra la identidad de la sesión guardada."""
        identity = _require_login()
        click.echo(f"{identity.display_name} <{identity.email}> rol={identity.role.value} id={identity.id}")

    @app.cli.command('catalog')
    @click.option('--limit', type=int, default=None, help='Máximo de productos a mostrar')
    @backend_errors
    def catalog_command(limit):
        """Lista el catálogo de productos."""
        _store()
        for p in get_container().product_service.list_products(limit):
            estado = 'AGOTADO' if p.is_out_of_stock else f'stock={p.stock}'
            click.echo(f"#{p.id:<4} {p.nombre:<30} ${format_decimal(p.precio):>10}  {estado}")

    @app.cli.command('cart')
    @backend_errors
    def cart_command():
        """Muestra el carrito."""
        identity = _require_login()
        summary = get_container().cart_service.get_cart(identity.id)
        if not summary['items']:
            click.echo("El carrito está vacío")
            return
        for item in summary['items']:
            click.echo(f"[{item['id']}] {item['nombre'] or '#' + str(item['productoId'])} "
                       f"x{item['cantidadProducto']} = ${item['subtotal']}")
        click.echo(f"Total: ${summary['total']} ({summary['total_items']} unidades)")

    @app.cli.command('add')
    @click.argument('producto_id', type=int)
    @click.option('--cantidad', type=int, default=1, show_default=True)
    @backend_errors
    def add_command(producto_id, cantidad):
        """Agrega un producto al carrito."""
        identity = _require_login()
        result = get_container().cart_service.add_item(identity.id, producto_id, cantidad)
        if not result['ok']:
            raise click.ClickException(result['error'])
        click.echo(result['message'])

    @app.cli.command('checkout')
    @click.option('--direccion', default=None, help='Dirección de envío')
    @click.option('--metodo-pago', 'metodo_pago', type=int, default=None)
    @click.option('--compensar/--no-compensar', default=None,
                  help='Deshacer pedido y detalles si un paso posterior falla')
    @backend_errors
    def checkout_command(direccion, metodo_pago, compensar):
        """Confirma la compra del carrito."""
        identity = _require_login()
        container = get_container()
        kwargs = {'compensate': compensar}
        if direccion:
            kwargs['direccion_envio'] = direccion
        if metodo_pago is not None:
            kwargs['metodo_pago_id'] = metodo_pago

        lines = container.cart_service.get_lines(identity.id)
        result = container.checkout_service.process_purchase(identity.id, lines, **kwargs)

        for line in result['skipped']:
            click.echo(f"Aviso: línea {line['id']} sin producto, se omitió", err=True)
        if result['success']:
            click.echo(f"Pedido #{result['order_id']} creado")
            return
        if result.get('order_id') is not None:
            click.echo(f"Quedó creado el pedido #{result['order_id']} (falló: {result['failed_step']})", err=True)
        if 'rollback' in result:
            rb = result['rollback']
            click.echo(f"Compensación: {rb['run']} deshechos, {rb['failed']} fallidos", err=True)
        raise click.ClickException(result['error'])

    @app.cli.command('orders')
    @backend_errors
    def orders_command():
        """Lista los pedidos visibles para la sesión."""
        identity = _require_login()
        for o in get_container().order_service.list_for(identity):
            fecha = o.fecha.strftime('%Y-%m-%d %H:%M') if o.fecha else 'N/A'
            click.echo(f"#{o.id:<5} {fecha}  {o.estado:<12} ${format_decimal(o.total)}")

    @app.cli.command('report')
    @click.argument('tipo', type=click.Choice(sorted(REPORT_TYPES)))
    @click.option('--fuente', type=click.Choice(['backend', 'analitica']), default='backend')
    @click.option('-o', '--output', 'output_dir', default='.', type=click.Path(file_okay=False))
    @backend_errors
    def report_command(tipo, fuente, output_dir):
        """Genera un reporte PDF (solo administradores)."""
        _require_login(admin=True)
        try:
            filename, content = get_container().report_service.generate(tipo, source=fuente)
        except UnknownReportError as e:
            raise click.ClickException(str(e))
        os.makedirs(output_dir, exist_ok=True)
        path = os.path.join(output_dir, filename)
        with open(path, 'wb') as f:
            f.write(content)
        click.echo(f"Reporte guardado en {path}")
