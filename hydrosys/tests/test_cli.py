import pytest
import requests

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, CLIENT_EMAIL, CLIENT_PASSWORD


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def login(runner, email, password):
    result = runner.invoke(args=['login', email, '--password', password])
    assert result.exit_code == 0, result.output
    return result


def test_login_whoami_logout(runner, container):
    result = login(runner, CLIENT_EMAIL, CLIENT_PASSWORD)
    assert 'Bienvenido, Carlos Pérez' in result.output
    assert container.session_file.load()[0] == 'tok-cliente'

    result = runner.invoke(args=['whoami'])
    assert CLIENT_EMAIL in result.output

    runner.invoke(args=['logout'])
    assert container.session_file.load() == (None, None)
    assert runner.invoke(args=['whoami']).exit_code != 0


def test_bad_credentials(runner):
    result = runner.invoke(args=['login', CLIENT_EMAIL, '--password', 'mala'])
    assert result.exit_code != 0
    assert 'Credenciales inválidas' in result.output


def test_add_and_checkout(runner, backend):
    login(runner, CLIENT_EMAIL, CLIENT_PASSWORD)

    result = runner.invoke(args=['add', '1', '--cantidad', '2'])
    assert result.exit_code == 0, result.output
    assert '2 productos agregados al carrito' in result.output

    result = runner.invoke(args=['cart'])
    assert 'Total: $2000' in result.output

    result = runner.invoke(args=['checkout', '--direccion', 'Calle 10'])
    assert result.exit_code == 0, result.output
    assert 'creado' in result.output
    assert backend.cart == []


def test_catalog_backend_error(runner, backend):
    backend.fail_on['productos.get_all'] = requests.ConnectionError('sin conexión')
    result = runner.invoke(args=['catalog'])
    assert result.exit_code != 0
    assert 'sin conexión' in result.output


def test_report_requires_admin(runner, tmp_path):
    login(runner, CLIENT_EMAIL, CLIENT_PASSWORD)
    result = runner.invoke(args=['report', 'inventario', '-o', str(tmp_path)])
    assert result.exit_code != 0
    assert 'Permiso denegado' in result.output

    login(runner, ADMIN_EMAIL, ADMIN_PASSWORD)
    result = runner.invoke(args=['report', 'inventario', '-o', str(tmp_path)])
    assert result.exit_code == 0, result.output
    files = list(tmp_path.glob('HydroSyS_Inventario_*.pdf'))
    assert len(files) == 1
    assert files[0].read_bytes().startswith(b'%PDF')
