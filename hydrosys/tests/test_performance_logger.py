import logging

import pytest

from hydrosys import performance_logger as perf


@pytest.fixture
def profiling(tmp_path):
    perf.configure_logging(str(tmp_path), enabled=True)
    perf.reset_stats()
    yield tmp_path
    perf.reset_stats()
    perf.configure_logging(str(tmp_path), enabled=False)


def test_profile_function_collects_stats(profiling):
    @perf.profile_function(name='Sumar')
    def sumar(a, b):
        return a + b

    assert sumar(1, 2) == 3
    assert sumar(2, 2) == 4

    stats = perf.get_function_stats()['Sumar']
    assert stats['calls'] == 2
    assert stats['max_time'] >= stats['avg_time'] >= 0


def test_profile_function_counts_failures(profiling):
    @perf.profile_function
    def falla():
        raise RuntimeError('x')

    with pytest.raises(RuntimeError):
        falla()
    assert perf.get_function_stats()['falla']['calls'] == 1


def test_disabled_profiling_records_nothing(tmp_path):
    perf.configure_logging(str(tmp_path), enabled=False)
    perf.reset_stats()

    @perf.profile_function
    def nada():
        return None

    nada()
    assert perf.get_function_stats() == {}


def test_route_names_fall_back_to_rule():
    assert perf._get_route_name('GET', '/api/pedidos/5', '/api/pedidos/<int:pedido_id>') == 'Ver detalle de pedido'
    assert perf._get_route_name('GET', '/otra') == 'GET /otra'


def test_slow_route_written_to_log(profiling):
    perf.log_slow_route('POST', '/api/checkout', '/api/checkout', 950, 'ana@hydrosys.co', 'CRITICAL')
    for handler in logging.getLogger(perf.SLOW_ROUTES_LOGGER).handlers:
        handler.flush()
    text = (profiling / 'slow_routes.log').read_text(encoding='utf-8')
    assert 'Confirmar compra' in text
    assert 'MUY LENTA' in text
