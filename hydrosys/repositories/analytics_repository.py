# ==============================================================================
# REPOSITORIO ANALÍTICO
# ==============================================================================
# Fuente de solo lectura, independiente del backend principal. La clave de
# acceso viaja en la query string; NO se envía el token de sesión.
# Retorna filas aplanadas:
#   {id_producto, nombre_producto, id_cliente, nombre_cliente,
#    precio_unitario, cantidad, fecha, estado}
# ==============================================================================

from typing import Any, Dict, List

import requests

from hydrosys.repositories.base import ApiRepository


class AnalyticsRepository(ApiRepository):
    """Consulta la vista de detalles de pedidos de la fuente analítica."""

    def __init__(
        self,
        url: str,
        api_key: str,
        http: requests.Session = None,
        timeout: float = None
    ):
        super().__init__(url, token_provider=None, http=http, timeout=timeout)
        self.api_key = api_key

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    def get_records(self) -> List[Dict[str, Any]]:
        params = {'select': '*'}
        if self.api_key:
            params['apikey'] = self.api_key
        return self._request('GET', '', params=params) or []
