# ==============================================================================
# REPOSITORIO BASE - Acceso al backend REST y a archivos JSON locales
# ==============================================================================
# ApiRepository: una llamada HTTP por verbo de dominio. Adjunta el token
# Bearer si hay sesión. NO reintenta ni traduce errores: las excepciones de
# requests llegan intactas al llamador.
#
# JSONFileRepository: persistencia local en un archivo JSON con escritura
# atómica (usado por el almacenamiento de sesión de la CLI).
# ==============================================================================

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

import requests

from hydrosys.performance_logger import profile_function


logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]

GENERIC_ERROR = 'Error de comunicación con el servidor'

# Permisos de los archivos JSON escritos: solo el dueño (guardan el token)
FILE_MODE = 0o600


def error_message(
    exc: BaseException,
    fallback: str = GENERIC_ERROR,
    include_transport: bool = True
) -> str:
    """
    Mensaje presentable de un error del backend.

    Orden: mensaje estructurado del backend ({"message": ...} o
    {"error": ...}), mensaje del error de transporte (si include_transport),
    mensaje genérico.
    """
    response = getattr(exc, 'response', None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get('message') or body.get('error')
            if message:
                return str(message)
    text = str(exc) if include_transport else ''
    return text if text else fallback


class ApiRepository:
    """
    Cliente base para el backend REST.

    Cada repositorio concreto mapea verbos del dominio a endpoints.
    Se puede inyectar una sesión HTTP falsa para testing.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider = None,
        http: requests.Session = None,
        timeout: float = None
    ):
        """
        Args:
            base_url: URL base del backend (sin / final)
            token_provider: Función que retorna el token Bearer actual
            http: Sesión HTTP (requests.Session por defecto)
            timeout: Timeout en segundos (None = el del transporte)
        """
        self.base_url = base_url.rstrip('/')
        self.token_provider = token_provider
        self.http = http or requests.Session()
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json'}
        token = self.token_provider() if self.token_provider else None
        if token:
            headers['Authorization'] = f'Bearer {token}'
        return headers

    @profile_function(name='Llamada al backend')
    def _request(self, method: str, path: str, json_body: Any = None, params: Dict[str, Any] = None) -> Any:
        """
        Ejecuta una llamada y retorna el JSON decodificado (None si no hay cuerpo).

        Raises:
            requests.HTTPError: respuesta no-2xx
            requests.RequestException: error de transporte
        """
        url = f'{self.base_url}{path}'
        logger.debug("[API] %s %s", method, url)
        response = self.http.request(
            method,
            url,
            json=json_body,
            params=params,
            headers=self._headers(),
            timeout=self.timeout,
        )
        if not response.ok:
            logger.warning("[API] %s %s -> HTTP %s", method, path, response.status_code)
        response.raise_for_status()
        if not response.content:
            return None
        return response.json()

    def _get(self, path: str, params: Dict[str, Any] = None) -> Any:
        return self._request('GET', path, params=params)

    def _post(self, path: str, body: Any) -> Any:
        return self._request('POST', path, json_body=body)

    def _put(self, path: str, body: Any) -> Any:
        return self._request('PUT', path, json_body=body)

    def _patch(self, path: str, body: Any) -> Any:
        return self._request('PATCH', path, json_body=body)

    def _delete(self, path: str) -> Any:
        return self._request('DELETE', path)


class JSONFileRepository(ABC):
    """
    Base para datos locales guardados en un archivo JSON.
    Escritura a archivo temporal + os.replace para atomicidad.
    """

    # Lock global para evitar escrituras concurrentes
    _file_lock = threading.RLock()

    def __init__(self, file_path: str):
        """
        Args:
            file_path: Ruta absoluta al archivo JSON
        """
        self.file_path = file_path

    @abstractmethod
    def _empty_data(self) -> Any:
        """Estructura vacía de este repositorio."""
        pass

    def _read_raw(self) -> Any:
        """
        Lee el archivo. Si no existe o está corrupto, retorna datos vacíos.
        """
        with self._file_lock:
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except (json.JSONDecodeError, FileNotFoundError):
                return self._empty_data()

    def _write_raw(self, data: Any) -> None:
        """
        Escribe el archivo completo de forma atómica.

        Raises:
            OSError: Si hay error de escritura
        """
        with self._file_lock:
            directory = os.path.dirname(self.file_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            temp_path = self.file_path + '.tmp'
            try:
                fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, FILE_MODE)
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    # un .tmp previo conserva sus permisos al abrirlo
                    os.chmod(temp_path, FILE_MODE)
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    def _remove(self) -> None:
        with self._file_lock:
            if os.path.exists(self.file_path):
                os.remove(self.file_path)

    def stamp(self) -> Optional[tuple]:
        """
        Marca de modificación del archivo (None si no existe).
        Cada escritura reemplaza el archivo, así que el inodo también cambia.
        """
        try:
            st = os.stat(self.file_path)
        except FileNotFoundError:
            return None
        return (st.st_mtime_ns, st.st_size, st.st_ino)
