# ==============================================================================
# SERVICIO DE CHECKOUT
# ==============================================================================
# Convierte el carrito de un usuario en un pedido:
#
#   1. Validar: carrito no vacío, subtotales y total finitos, total > 0
#   2. Crear pedido (estado PENDIENTE, total como string decimal)
#   3. Crear un detalle por línea, EN ORDEN y de a uno
#      (líneas sin producto resoluble se omiten con warning)
#   4. Vaciar el carrito
#
# REGLAS:
# - Sin reintentos. Cualquier fallo aborta los pasos restantes.
# - Nunca lanza excepciones: el resultado siempre es un dict.
# - El inventario NO se toca.
# - Cada paso queda registrado en result['steps']; si hubo pedido, su ID
#   viaja en el resultado aunque la operación falle.
# - Compensación opcional (compensate=True): ante un fallo posterior a la
#   creación del pedido, se deshacen en orden inverso los detalles y el
#   pedido creados. Por defecto desactivada: el pedido queda en el backend.
# ==============================================================================

import logging
from decimal import Decimal, DecimalException
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from hydrosys.models import CartLine, Order, OrderLine, INITIAL_ORDER_STATUS, cart_total, format_decimal, to_int
from hydrosys.performance_logger import profile_function
from hydrosys.repositories.base import error_message
from hydrosys.repositories.interfaces import ICartRepository, IOrderDetailRepository, IOrderRepository


logger = logging.getLogger(__name__)

CHECKOUT_ERROR = 'Error al procesar la compra'
DEFAULT_PAYMENT_METHOD_ID = 1
DEFAULT_SHIPPING_ADDRESS = 'Dirección por defecto'

# Pasos registrados en result['steps']
STEP_CREATE_ORDER = 'create_order'
STEP_CREATE_LINE = 'create_line'
STEP_SKIP_LINE = 'skip_line'
STEP_CLEAR_CART = 'clear_cart'

Undo = Tuple[str, Callable[[], Any]]


class CheckoutError(Exception):
    """Carrito inválido o respuesta del backend inutilizable."""


class CheckoutService:
    """
    Orquestador de compra.

    Responsabilidades:
    - Calcular el total con la misma fórmula que el resumen del carrito
    - Crear pedido y detalles de forma secuencial
    - Vaciar el carrito
    - Reportar éxito parcial de forma estructurada
    """

    def __init__(
        self,
        order_repo: IOrderRepository,
        detail_repo: IOrderDetailRepository,
        cart_repo: ICartRepository,
        compensate: bool = False
    ):
        """
        Args:
            order_repo: Cliente de pedidos
            detail_repo: Cliente de detalles de pedido
            cart_repo: Cliente de carrito
            compensate: Deshacer pedido y detalles si un paso posterior falla
        """
        self.order_repo = order_repo
        self.detail_repo = detail_repo
        self.cart_repo = cart_repo
        self.compensate = compensate

    # =========================================================================
    # VALIDACIÓN
    # =========================================================================

    @staticmethod
    def _normalize(cart_lines: Iterable[Union[CartLine, Dict[str, Any]]]) -> List[CartLine]:
        """
        Raises:
            CheckoutError: alguna entrada no es una línea de carrito
        """
        lines = []
        for line in cart_lines or []:
            if isinstance(line, CartLine):
                lines.append(line)
            elif isinstance(line, dict):
                lines.append(CartLine.from_dict(line))
            else:
                raise CheckoutError('El carrito contiene líneas inválidas')
        return lines

    @staticmethod
    def validate(lines: List[CartLine]) -> Decimal:
        """
        Valida el carrito y retorna el total.

        Raises:
            CheckoutError: carrito vacío, montos no numéricos o total <= 0
        """
        if not lines:
            raise CheckoutError('El carrito está vacío')
        try:
            for line in lines:
                if not line.subtotal.is_finite():
                    raise CheckoutError('El total calculado no es válido')
            total = cart_total(lines)
        except DecimalException:
            # sNaN, desbordamiento y demás montos no calculables
            raise CheckoutError('El total calculado no es válido')
        if not total.is_finite() or total <= 0:
            raise CheckoutError('El total calculado no es válido')
        return total

    # =========================================================================
    # PROCESO DE COMPRA
    # =========================================================================

    @profile_function(name='Procesar compra')
    def process_purchase(
        self,
        usuario_id: int,
        cart_lines: Iterable[Union[CartLine, Dict[str, Any]]],
        metodo_pago_id: int = DEFAULT_PAYMENT_METHOD_ID,
        direccion_envio: str = DEFAULT_SHIPPING_ADDRESS,
        compensate: Optional[bool] = None
    ) -> Dict[str, Any]:
        """
        Procesa la compra del carrito.

        Args:
            usuario_id: Usuario que compra
            cart_lines: Líneas del carrito (CartLine o dicts del backend)
            metodo_pago_id: Método de pago
            direccion_envio: Dirección de envío
            compensate: Sobrescribe la política de compensación del servicio

        Returns:
            {
                'success': bool,
                'order_id': int (si se creó el pedido),
                'error': str (si falló),
                'failed_step': str | None,
                'steps': [{'step', 'ok', ...}],
                'skipped': [dict de la línea omitida],
                'rollback': {'run', 'failed', 'complete'} (si se compensó)
            }
        """
        compensate = self.compensate if compensate is None else compensate
        steps: List[Dict[str, Any]] = []
        skipped: List[Dict[str, Any]] = []
        undo_log: List[Undo] = []
        result: Dict[str, Any] = {
            'success': False,
            'failed_step': None,
            'steps': steps,
            'skipped': skipped,
        }

        try:
            lines = self._normalize(cart_lines)
            total = self.validate(lines)
        except CheckoutError as e:
            logger.warning("[CHECKOUT] Carrito rechazado: %s", e)
            result['error'] = str(e)
            return result

        logger.info("[CHECKOUT] Iniciando compra: usuario=%s, %d líneas, total=%s",
                    usuario_id, len(lines), format_decimal(total))

        current = STEP_CREATE_ORDER
        try:
            # 1. Pedido
            order = Order(
                id=None,
                usuario_id=usuario_id,
                estado=INITIAL_ORDER_STATUS,
                direccion_envio=direccion_envio,
                total=total,
                metodo_pago_id=metodo_pago_id,
            )
            created = self.order_repo.create(order.to_payload())
            order_id = to_int(created.get('id')) if isinstance(created, dict) else None
            if order_id is None:
                raise CheckoutError('El servidor no retornó el ID del pedido')
            result['order_id'] = order_id
            steps.append({'step': STEP_CREATE_ORDER, 'ok': True, 'id': order_id})
            undo_log.append((f'pedido {order_id}', lambda: self.order_repo.delete(order_id)))
            logger.info("[CHECKOUT] Pedido creado: %s", order_id)

            # 2. Detalles
            current = STEP_CREATE_LINE
            for line in lines:
                if line.product_id is None:
                    logger.warning("[CHECKOUT] Línea sin producto, se omite: %s", line.id)
                    skipped.append(line.to_dict())
                    steps.append({'step': STEP_SKIP_LINE, 'ok': True, 'cart_line_id': line.id})
                    continue
                detail = OrderLine.from_cart_line(order_id, line)
                saved = self.detail_repo.create(detail.to_payload()) or {}
                detail_id = to_int(saved.get('id'))
                steps.append({'step': STEP_CREATE_LINE, 'ok': True,
                              'id': detail_id, 'producto_id': detail.producto_id})
                if detail_id is not None:
                    undo_log.append((f'detalle {detail_id}',
                                     lambda did=detail_id: self.detail_repo.delete(did)))
                logger.info("[CHECKOUT] Detalle creado para producto %s", detail.producto_id)

            # 3. Carrito
            current = STEP_CLEAR_CART
            self.cart_repo.clear(usuario_id)
            steps.append({'step': STEP_CLEAR_CART, 'ok': True})
            logger.info("[CHECKOUT] Carrito vaciado")

        except Exception as e:
            logger.error("[CHECKOUT] Falló el paso %s: %s", current, e)
            steps.append({'step': current, 'ok': False})
            result['failed_step'] = current
            result['error'] = error_message(e, CHECKOUT_ERROR)
            if compensate and undo_log:
                result['rollback'] = self._run_compensation(undo_log)
            return result

        result['success'] = True
        return result

    @staticmethod
    def _run_compensation(undo_log: List[Undo]) -> Dict[str, Any]:
        """Ejecuta las acciones de deshacer en orden inverso. Cuenta fallos, no los lanza."""
        run = 0
        failed = 0
        for description, action in reversed(undo_log):
            try:
                action()
                run += 1
                logger.info("[CHECKOUT] Compensado: %s", description)
            except Exception as e:
                failed += 1
                logger.error("[CHECKOUT] No se pudo compensar %s: %s", description, e)
        return {'run': run, 'failed': failed, 'complete': failed == 0}
