# ==============================================================================
# SERVICIO DE SESIÓN
# ==============================================================================
# Mantiene como máximo UNA identidad autenticada y su token Bearer.
#
# Ciclo de vida explícito (nada de estado global implícito):
#   1. restore()      → adopta (token, identidad) del almacenamiento
#   2. subscribe(fn)  → notifica cambios; retorna la función para desuscribirse
#   3. sync()         → detecta cambios hechos por otra pestaña/proceso
#   4. close()        → suelta los suscriptores
#
# Invariante: token e identidad se escriben y se borran SIEMPRE juntos.
# ==============================================================================

import logging
from typing import Any, Callable, Dict, List, Optional

from hydrosys.models import Identity
from hydrosys.repositories.base import error_message
from hydrosys.repositories.interfaces import IAuthRepository, ISessionStorage


logger = logging.getLogger(__name__)

LOGIN_ERROR = 'Error al iniciar sesión'
REGISTER_ERROR = 'Error al registrarse'

Listener = Callable[[Optional[Identity]], None]


class AuthResponseError(ValueError):
    """El backend respondió sin token o sin usuario."""


class SessionStore:
    """
    Sesión del usuario actual.

    Uso:
        store = SessionStore(auth_repo, CookieSessionStorage(session))
        store.restore()
        store.login('ana@hydrosys.co', 'secreto')
        store.identity.is_admin
    """

    def __init__(self, auth_repo: IAuthRepository, storage: ISessionStorage):
        self.auth_repo = auth_repo
        self.storage = storage
        self._identity: Optional[Identity] = None
        self._token: Optional[str] = None
        self._listeners: List[Listener] = []
        self._stamp: Any = None
        self.loading = True
        self.error: Optional[str] = None

    # =========================================================================
    # ESTADO
    # =========================================================================

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None and bool(self._token)

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self._identity.is_admin

    def _set(self, token: Optional[str], identity: Optional[Identity], notify: bool = True) -> None:
        changed = identity != self._identity
        self._token = token if identity is not None else None
        self._identity = identity
        if changed and notify:
            for listener in list(self._listeners):
                listener(identity)

    def _read_storage(self):
        token, user = self.storage.load()
        if not token or user is None:
            return None, None
        return token, Identity.from_dict(user)

    # =========================================================================
    # CICLO DE VIDA
    # =========================================================================

    def restore(self) -> Optional[Identity]:
        """Adopta la sesión persistida si existen token e identidad."""
        token, identity = self._read_storage()
        self._set(token, identity, notify=False)
        self._stamp = self.storage.stamp()
        self.loading = False
        return identity

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Registra un listener que recibe la nueva identidad (o None).

        Returns:
            Función que desuscribe al listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sync(self) -> bool:
        """
        Relee el almacenamiento si cambió desde la última lectura.

        Returns:
            True si la identidad en memoria cambió
        """
        stamp = self.storage.stamp()
        if stamp == self._stamp:
            return False
        self._stamp = stamp
        token, identity = self._read_storage()
        if identity == self._identity and token == self._token:
            return False
        logger.info("[AUTH] Sesión modificada externamente: %s",
                    identity.email if identity else 'cerrada')
        self._set(token, identity)
        return True

    def close(self) -> None:
        self._listeners.clear()

    # =========================================================================
    # OPERACIONES
    # =========================================================================

    def _authenticate(self, call: Callable[[], Dict[str, Any]], fallback: str,
                      submitted: Dict[str, Any] = None) -> Identity:
        self.loading = True
        self.error = None
        try:
            data = call()
            if not isinstance(data, dict) or not data.get('token'):
                raise AuthResponseError('Respuesta de autenticación sin token')
            identity = Identity.from_auth_response(data, submitted)
            if identity.id is None:
                raise AuthResponseError('Respuesta de autenticación sin usuario')
            token = data['token']
            self.storage.save(token, identity.to_dict())
            self._stamp = self.storage.stamp()
            self._set(token, identity)
            logger.info("[AUTH] Sesión iniciada: %s (%s)", identity.email, identity.role.value)
            return identity
        except Exception as e:
            self.error = error_message(e, fallback, include_transport=False)
            logger.warning("[AUTH] %s: %s", fallback, e)
            self._clear()
            raise
        finally:
            self.loading = False

    def login(self, email: str, password: str) -> Identity:
        """
        Inicia sesión.

        Raises:
            requests.RequestException: Error del backend (self.error queda con el mensaje)
            AuthResponseError: Respuesta incompleta
        """
        return self._authenticate(lambda: self.auth_repo.login(email, password), LOGIN_ERROR)

    def register(self, data: Dict[str, Any]) -> Identity:
        """
        Registra un usuario y deja la sesión iniciada.
        Los campos que el backend no devuelve se toman de los datos enviados.
        """
        return self._authenticate(lambda: self.auth_repo.register(data), REGISTER_ERROR, submitted=data)

    def _clear(self) -> None:
        self.storage.clear()
        self._stamp = self.storage.stamp()
        self._set(None, None)

    def logout(self) -> None:
        """Cierra la sesión sin llamar al backend."""
        if self._identity is not None:
            logger.info("[AUTH] Sesión cerrada: %s", self._identity.email)
        self._clear()
