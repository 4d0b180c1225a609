# ==============================================================================
# SERVICIO DE REPORTES PDF
# ==============================================================================
# Genera los reportes descargables con reportlab:
#   - Dashboard   → resumen ejecutivo, pedidos recientes, stock bajo
#   - Pedidos     → tabla de pedidos + resumen financiero
#   - Inventario  → tabla de productos + resumen de inventario
#
# Todas las páginas llevan el pie "Página i de n".
# Nombre de archivo: HydroSyS_<Tipo>_<AAAA-MM-DD>.pdf
# ==============================================================================

import logging
from datetime import date, datetime
from decimal import Decimal
from io import BytesIO
from typing import Any, List, Optional, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from hydrosys.models import Order, Product, SalesRecord
from hydrosys.performance_logger import profile_function
from hydrosys.services.order_service import newest_first
from hydrosys.services.stats_service import local_date


logger = logging.getLogger(__name__)

PRIMARY = colors.HexColor('#667EEA')
WARNING = colors.HexColor('#ED8936')

REPORT_TYPES = {
    'dashboard': 'Dashboard',
    'pedidos': 'Pedidos',
    'inventario': 'Inventario',
}

DASHBOARD_RECENT_ORDERS = 10


class UnknownReportError(ValueError):
    """Tipo de reporte no soportado."""


def report_filename(tipo: str, today: date = None) -> str:
    """
    Nombre del archivo PDF.

    Raises:
        UnknownReportError: Si el tipo no existe
    """
    if tipo not in REPORT_TYPES:
        raise UnknownReportError(f'Tipo de reporte desconocido: {tipo}')
    today = today or date.today()
    return f"HydroSyS_{REPORT_TYPES[tipo]}_{today.isoformat()}.pdf"


def format_currency(value: Any) -> str:
    """Monto al estilo es-CO: $2.500 / $19,99"""
    amount = Decimal(str(value or 0))
    if amount == amount.to_integral_value():
        text = f"{int(amount):,}"
    else:
        text = f"{amount:,.2f}"
    return '$' + text.replace(',', '_').replace('.', ',').replace('_', '.')


def format_datetime(value: Optional[datetime]) -> str:
    if value is None:
        return 'N/A'
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime('%d/%m/%Y %H:%M')


class NumberedCanvas(canvas.Canvas):
    """Canvas que conoce el total de páginas para el pie "Página i de n"."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(page_count)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def _draw_footer(self, page_count):
        width, _ = self._pagesize
        self.setFont('Helvetica', 8)
        self.setFillColor(colors.grey)
        self.drawCentredString(width / 2, 10 * mm, f"Página {self._pageNumber} de {page_count}")


class ReportService:
    """
    Construcción de reportes PDF en memoria.

    Los métodos build_* reciben los datos ya cargados y retornan bytes;
    generate() carga los datos desde los servicios y retorna
    (nombre_archivo, bytes).
    """

    def __init__(self, order_service=None, product_service=None, stats_service=None):
        self.order_service = order_service
        self.product_service = product_service
        self.stats_service = stats_service
        self.styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            'HydroTitle',
            parent=self.styles['Heading1'],
            fontSize=18,
            textColor=PRIMARY,
        )
        self.meta_style = ParagraphStyle(
            'HydroMeta',
            parent=self.styles['Normal'],
            fontSize=9,
            textColor=colors.grey,
        )

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def _header(self, title: str, *lines: str) -> List[Any]:
        story = [Paragraph(title, self.title_style)]
        generated = datetime.now().strftime('%d/%m/%Y %H:%M')
        story.append(Paragraph(f"Fecha de generación: {generated}", self.meta_style))
        for line in lines:
            story.append(Paragraph(line, self.meta_style))
        story.append(Spacer(1, 6 * mm))
        return story

    @staticmethod
    def _table(rows: List[List[str]], header_color=PRIMARY, striped: bool = True, font_size: int = 9) -> Table:
        table = Table(rows, repeatRows=1, hAlign='LEFT')
        style = [
            ('BACKGROUND', (0, 0), (-1, 0), header_color),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), font_size),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ]
        if striped:
            style.append(('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#F9FAFB')]))
        table.setStyle(TableStyle(style))
        return table

    def _section(self, title: str) -> Paragraph:
        return Paragraph(title, self.styles['Heading2'])

    @staticmethod
    def _render(story: List[Any], title: str) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            topMargin=15 * mm,
            bottomMargin=20 * mm,
            leftMargin=14 * mm,
            rightMargin=14 * mm,
            title=title,
            author='HydroSyS',
        )
        doc.build(story, canvasmaker=NumberedCanvas)
        return buffer.getvalue()

    @staticmethod
    def _order_row(order: Order, with_address: bool = False) -> List[str]:
        row = [
            f"#{order.id}",
            order.cliente or 'N/A',
            format_datetime(order.fecha),
            order.estado or 'N/A',
        ]
        if with_address:
            row.append((order.direccion_envio or 'N/A')[:30])
        row.append(format_currency(order.total))
        return row

    # =========================================================================
    # REPORTES
    # =========================================================================

    @profile_function(name='Generar reporte PDF')
    def build_dashboard(self, orders: List[Order], products: List[Product], today: date = None) -> bytes:
        today = today or date.today()
        orders = newest_first(orders)
        total_ventas = sum((o.total for o in orders), Decimal('0'))
        stock_bajo = [p for p in products if p.is_low_stock]
        pedidos_hoy = [o for o in orders if local_date(o.fecha) == today]

        story = self._header('HydroSyS - Reporte del Dashboard')
        story.append(self._section('Resumen Ejecutivo'))
        story.append(self._table([
            ['Métrica', 'Valor'],
            ['Total de Ventas', format_currency(total_ventas)],
            ['Total de Pedidos', str(len(orders))],
            ['Pedidos Hoy', str(len(pedidos_hoy))],
            ['Productos en Inventario', str(len(products))],
            ['Productos con Stock Bajo', str(len(stock_bajo))],
        ], striped=False))

        story.append(Spacer(1, 6 * mm))
        story.append(self._section('Pedidos Recientes'))
        rows = [['ID', 'Cliente', 'Fecha', 'Estado', 'Total']]
        rows.extend(self._order_row(o) for o in orders[:DASHBOARD_RECENT_ORDERS])
        story.append(self._table(rows))

        if stock_bajo:
            story.append(PageBreak())
            story.append(self._section('Productos con Stock Bajo'))
            rows = [['ID', 'Producto', 'Categoría', 'Stock', 'Precio']]
            rows.extend(
                [f"#{p.id}", p.nombre, p.categoria or 'N/A', str(p.stock), format_currency(p.precio)]
                for p in stock_bajo
            )
            story.append(self._table(rows, header_color=WARNING))

        return self._render(story, 'HydroSyS - Dashboard')

    @profile_function(name='Generar reporte PDF')
    def build_orders(self, orders: List[Order]) -> bytes:
        total_ventas = sum((o.total for o in orders), Decimal('0'))
        promedio = (total_ventas / len(orders)) if orders else Decimal('0')

        story = self._header('HydroSyS - Reporte de Pedidos', f"Total de pedidos: {len(orders)}")
        rows = [['ID', 'Cliente', 'Fecha', 'Estado', 'Dirección', 'Total']]
        rows.extend(self._order_row(o, with_address=True) for o in orders)
        story.append(self._table(rows, font_size=8))

        story.append(Spacer(1, 6 * mm))
        story.append(self._section('Resumen Financiero'))
        story.append(self._table([
            ['Concepto', 'Valor'],
            ['Total de Pedidos', str(len(orders))],
            ['Total de Ventas', format_currency(total_ventas)],
            ['Promedio por Pedido', format_currency(promedio.quantize(Decimal('1')))],
        ], striped=False))

        return self._render(story, 'HydroSyS - Pedidos')

    @profile_function(name='Generar reporte PDF')
    def build_inventory(self, products: List[Product]) -> bytes:
        valor_total = sum((p.stock_value for p in products), Decimal('0'))

        story = self._header('HydroSyS - Reporte de Inventario', f"Total de productos: {len(products)}")
        rows = [['ID', 'Producto', 'Categoría', 'Stock', 'Precio Unit.', 'Valor Total']]
        rows.extend(
            [f"#{p.id}", p.nombre, p.categoria or 'N/A', str(p.stock),
             format_currency(p.precio), format_currency(p.stock_value)]
            for p in products
        )
        story.append(self._table(rows))

        story.append(Spacer(1, 6 * mm))
        story.append(self._section('Resumen de Inventario'))
        story.append(self._table([
            ['Concepto', 'Valor'],
            ['Total de Productos', str(len(products))],
            ['Productos con Stock Bajo (<10)', str(sum(1 for p in products if p.is_low_stock))],
            ['Productos Agotados', str(sum(1 for p in products if p.is_out_of_stock))],
            ['Valor Total del Inventario', format_currency(valor_total)],
        ], striped=False))

        return self._render(story, 'HydroSyS - Inventario')

    # =========================================================================
    # GENERACIÓN DESDE LOS SERVICIOS
    # =========================================================================

    def generate(self, tipo: str, source: str = 'backend') -> Tuple[str, bytes]:
        """
        Carga los datos y genera el reporte.

        Args:
            tipo: 'dashboard', 'pedidos' o 'inventario'
            source: 'backend' o 'analitica' (solo para pedidos: exporta
                    las filas de la fuente analítica como pedidos)

        Returns:
            (nombre_archivo, contenido_pdf)

        Raises:
            UnknownReportError: Tipo o fuente desconocidos
        """
        filename = report_filename(tipo)

        if tipo == 'dashboard':
            content = self.build_dashboard(
                self.order_service.list_all(),
                self.product_service.list_products(),
            )
        elif tipo == 'pedidos':
            if source == 'analitica':
                records: List[SalesRecord] = self.stats_service.get_records()
                orders = [r.to_order() for r in records]
            elif source == 'backend':
                orders = self.order_service.list_all()
            else:
                raise UnknownReportError(f'Fuente de datos desconocida: {source}')
            content = self.build_orders(orders)
        else:
            content = self.build_inventory(self.product_service.list_products())

        logger.info("[REPORTES] %s generado (%d bytes)", filename, len(content))
        return filename, content
