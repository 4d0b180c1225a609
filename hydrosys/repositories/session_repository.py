# ==============================================================================
# ALMACENAMIENTO DE SESIÓN
# ==============================================================================
# Dos entradas durables, escritas y borradas SIEMPRE como par:
#   - auth_token: token Bearer opaco
#   - user_data:  identidad serializada en JSON
#
# Implementaciones:
#   - CookieSessionStorage  → cookie firmada de Flask (una por navegador,
#                             compartida por todas sus pestañas)
#   - FileSessionRepository → archivo JSON (CLI, varios procesos)
# ==============================================================================

import json
from typing import Any, Dict, MutableMapping, Optional, Tuple

from hydrosys.repositories.base import JSONFileRepository


AUTH_TOKEN_KEY = 'auth_token'
USER_DATA_KEY = 'user_data'

StoredSession = Tuple[Optional[str], Optional[Dict[str, Any]]]


def _decode_user(raw: Any) -> Optional[Dict[str, Any]]:
    if not raw:
        return None
    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


class FileSessionRepository(JSONFileRepository):
    """
    Sesión persistida en un archivo JSON.

    Formato:
    {
        "auth_token": "eyJ...",
        "user_data": "{\"id\": 7, \"email\": ...}"
    }
    """

    def _empty_data(self) -> Dict[str, Any]:
        return {}

    def load(self) -> StoredSession:
        """Retorna (token, identidad) o (None, None) si falta alguno."""
        data = self._read_raw()
        if not isinstance(data, dict):
            return None, None
        token = data.get(AUTH_TOKEN_KEY)
        user = _decode_user(data.get(USER_DATA_KEY))
        if not token or user is None:
            return None, None
        return token, user

    def save(self, token: str, user: Dict[str, Any]) -> None:
        self._write_raw({
            AUTH_TOKEN_KEY: token,
            USER_DATA_KEY: json.dumps(user, ensure_ascii=False),
        })

    def clear(self) -> None:
        self._remove()


class CookieSessionStorage:
    """
    Sesión persistida en la cookie firmada de Flask.

    Args:
        session: flask.session (o cualquier mapping mutable en tests)
    """

    def __init__(self, session: MutableMapping[str, Any]):
        self.session = session

    def load(self) -> StoredSession:
        token = self.session.get(AUTH_TOKEN_KEY)
        user = _decode_user(self.session.get(USER_DATA_KEY))
        if not token or user is None:
            return None, None
        return token, user

    def save(self, token: str, user: Dict[str, Any]) -> None:
        self.session[AUTH_TOKEN_KEY] = token
        self.session[USER_DATA_KEY] = json.dumps(user, ensure_ascii=False)
        if hasattr(self.session, 'permanent'):
            self.session.permanent = True
        if hasattr(self.session, 'modified'):
            self.session.modified = True

    def clear(self) -> None:
        self.session.pop(AUTH_TOKEN_KEY, None)
        self.session.pop(USER_DATA_KEY, None)
        if hasattr(self.session, 'modified'):
            self.session.modified = True

    def stamp(self) -> Optional[str]:
        return self.session.get(USER_DATA_KEY)
