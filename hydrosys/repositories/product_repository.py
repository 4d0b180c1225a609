# ==============================================================================
# REPOSITORIO DE PRODUCTOS
# ==============================================================================
# CRUD de /api/productos. Es el único recurso con actualización (PUT).
# ==============================================================================

from typing import Any, Dict, List

from hydrosys.repositories.base import ApiRepository


class ProductRepository(ApiRepository):
    """Acceso al catálogo de productos."""

    def get_all(self) -> List[Dict[str, Any]]:
        return self._get('/api/productos') or []

    def get_by_id(self, producto_id: int) -> Dict[str, Any]:
        return self._get(f'/api/productos/{producto_id}')

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._post('/api/productos', data)

    def update(self, producto_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._put(f'/api/productos/{producto_id}', data)

    def delete(self, producto_id: int) -> None:
        self._delete(f'/api/productos/{producto_id}')
