# ==============================================================================
# REPOSITORIO DE AUTENTICACIÓN
# ==============================================================================
# POST /api/auth/login y POST /api/auth/register.
# Respuesta plana: {token, userId|id, email|correo, nombre, apellido, rol}
# ==============================================================================

from typing import Any, Dict

from hydrosys.repositories.base import ApiRepository


class AuthRepository(ApiRepository):
    """Endpoints de autenticación del backend."""

    def login(self, email: str, password: str) -> Dict[str, Any]:
        return self._post('/api/auth/login', {'email': email, 'password': password})

    def register(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Registra un usuario.

        Args:
            data: {nombre, apellido, correo, password, telefono?, rol}
        """
        return self._post('/api/auth/register', data)
