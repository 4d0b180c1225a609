import pytest
import requests

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, CLIENT_EMAIL, CLIENT_PASSWORD, MemorySessionStorage
from hydrosys.models import Role
from hydrosys.repositories import FileSessionRepository
from hydrosys.services import AuthResponseError, SessionStore


@pytest.fixture
def storage():
    return MemorySessionStorage()


@pytest.fixture
def store(repos, storage):
    s = SessionStore(repos['auth_repo'], storage)
    s.restore()
    return s


def test_restore_without_storage_is_unauthenticated(store):
    assert store.identity is None
    assert store.token is None
    assert not store.is_authenticated
    assert store.loading is False


def test_restore_requires_both_entries(repos):
    storage = MemorySessionStorage()
    storage.data = {'auth_token': 'tok', 'user_data': None}
    s = SessionStore(repos['auth_repo'], storage)
    s.restore()
    assert not s.is_authenticated


def test_login_normalizes_and_persists_pair(store, storage):
    identity = store.login(ADMIN_EMAIL, ADMIN_PASSWORD)

    assert identity.email == ADMIN_EMAIL
    assert identity.role is Role.ADMINISTRATOR
    assert identity.role_code == 0
    assert store.is_admin
    assert store.token == 'tok-admin'
    assert storage.data['auth_token'] == 'tok-admin'
    assert storage.data['user_data']['rolId'] == 0
    assert store.error is None


def test_login_failure_sets_error_and_reraises(store, storage):
    store.login(CLIENT_EMAIL, CLIENT_PASSWORD)

    with pytest.raises(requests.HTTPError):
        store.login(CLIENT_EMAIL, 'incorrecta')

    assert store.error == 'Credenciales inválidas'
    assert store.loading is False
    assert not store.is_authenticated
    assert storage.data == {}


def test_login_failure_without_backend_message_uses_fallback(repos, storage):
    class DownAuth:
        def login(self, email, password):
            raise requests.ConnectionError('Connection refused')

    s = SessionStore(DownAuth(), storage)
    s.restore()
    with pytest.raises(requests.ConnectionError):
        s.login('a@b.co', 'x')
    assert s.error == 'Error al iniciar sesión'


def test_login_response_without_token_is_rejected(storage):
    class NoTokenAuth:
        def login(self, email, password):
            return {'userId': 1, 'email': email}

    s = SessionStore(NoTokenAuth(), storage)
    s.restore()
    with pytest.raises(AuthResponseError):
        s.login('a@b.co', 'x')
    assert not s.is_authenticated
    assert s.error == 'Error al iniciar sesión'


def test_register_uses_submitted_fields(store, storage):
    identity = store.register({'nombre': 'Luis', 'apellido': 'Gómez', 'correo': 'luis@hydrosys.co',
                               'password': 'x', 'rol': 'cliente'})
    assert identity.email == 'luis@hydrosys.co'
    assert identity.display_name == 'Luis Gómez'
    assert identity.role is Role.CUSTOMER
    assert store.token == 'tok-nuevo'
    assert storage.data['user_data']['email'] == 'luis@hydrosys.co'


def test_logout_clears_pair_and_restore_is_unauthenticated(repos, store, storage):
    store.login(CLIENT_EMAIL, CLIENT_PASSWORD)
    store.logout()

    assert storage.data == {}
    assert not store.is_authenticated

    fresh = SessionStore(repos['auth_repo'], storage)
    fresh.restore()
    assert fresh.identity is None


def test_subscribe_and_unsubscribe(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)

    store.login(CLIENT_EMAIL, CLIENT_PASSWORD)
    store.logout()
    unsubscribe()
    store.login(CLIENT_EMAIL, CLIENT_PASSWORD)

    assert [i.email if i else None for i in seen] == [CLIENT_EMAIL, None]


def test_sync_observes_other_tab(repos, storage):
    tab_a = SessionStore(repos['auth_repo'], storage)
    tab_b = SessionStore(repos['auth_repo'], storage)
    tab_a.restore()
    tab_b.restore()
    seen = []
    tab_b.subscribe(seen.append)

    tab_a.login(CLIENT_EMAIL, CLIENT_PASSWORD)
    assert tab_b.sync() is True
    assert tab_b.identity.email == CLIENT_EMAIL
    assert tab_b.token == 'tok-cliente'

    # sin cambios nuevos no hay notificación
    assert tab_b.sync() is False

    tab_a.logout()
    assert tab_b.sync() is True
    assert tab_b.identity is None
    assert [i.email if i else None for i in seen] == [CLIENT_EMAIL, None]


def test_close_drops_listeners(store):
    seen = []
    store.subscribe(seen.append)
    store.close()
    store.login(CLIENT_EMAIL, CLIENT_PASSWORD)
    assert seen == []


def test_file_storage_shared_between_processes(repos, tmp_path):
    path = str(tmp_path / 'sesion' / 'session.json')
    first = SessionStore(repos['auth_repo'], FileSessionRepository(path))
    second = SessionStore(repos['auth_repo'], FileSessionRepository(path))
    first.restore()
    second.restore()

    first.login(ADMIN_EMAIL, ADMIN_PASSWORD)
    assert second.sync() is True
    assert second.is_admin

    first.logout()
    assert second.sync() is True
    assert not second.is_authenticated
