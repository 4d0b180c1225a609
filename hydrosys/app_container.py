# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (se reemplazan los clientes REST por fakes en memoria)
#   - Cambiar de backend sin tocar servicios
#
# TOKEN DE SESIÓN:
# Los clientes REST no conocen la sesión; reciben un token_provider que
# consulta el SessionStore del contexto actual (g.session_store, que cada
# request web arma desde su cookie y cada comando de CLI desde el archivo
# de sesión).
# ==============================================================================

from typing import Any, Optional

from flask import g, has_app_context

from hydrosys.config import Config

# ═══════════════════════════════════════════════════════════════════════════════
# REPOSITORIOS - Clientes del backend REST
# ═══════════════════════════════════════════════════════════════════════════════
from hydrosys.repositories import (
    AuthRepository,
    ProductRepository,
    CartRepository,
    OrderRepository,
    OrderDetailRepository,
    AnalyticsRepository,
    FileSessionRepository,
)

# ═══════════════════════════════════════════════════════════════════════════════
# SERVICIOS - Capa de lógica de negocio
# ═══════════════════════════════════════════════════════════════════════════════
from hydrosys.services import (
    SessionStore,
    CheckoutService,
    CartService,
    OrderService,
    ProductService,
    StatsService,
    ReportService,
)


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y servicio.

    Uso:
        container = AppContainer(Config())
        checkout = container.checkout_service
        cart = container.cart_service
    """

    _instance: Optional['AppContainer'] = None

    _COMPONENTS = (
        'auth_repo', 'product_repo', 'cart_repo', 'order_repo', 'detail_repo',
        'analytics_repo', 'session_file', 'cli_session_store',
        'checkout_service', 'cart_service', 'order_service', 'product_service',
        'stats_service', 'report_service',
    )

    def __new__(cls, config: Config = None):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config: Config = None):
        """
        Inicializa el contenedor.

        Args:
            config: Configuración (por defecto, la de las variables de entorno)
        """
        if self._initialized:
            return

        self.config = config or Config()
        self.reset()
        self._initialized = True

    # =========================================================================
    # SESIÓN
    # =========================================================================

    def current_token(self) -> Optional[str]:
        """Token Bearer de la sesión activa (None si no hay)."""
        store = g.get('session_store') if has_app_context() else None
        if store is None:
            store = self._cli_session_store
        return store.token if store is not None else None

    def session_store_for(self, storage) -> SessionStore:
        """Nuevo SessionStore sobre el almacenamiento dado (uno por request)."""
        return SessionStore(self.auth_repo, storage)

    @property
    def session_file(self) -> FileSessionRepository:
        if self._session_file is None:
            self._session_file = FileSessionRepository(self.config.SESSION_FILE)
        return self._session_file

    @property
    def cli_session_store(self) -> SessionStore:
        """Sesión durable de la CLI (archivo JSON), ya restaurada."""
        if self._cli_session_store is None:
            store = self.session_store_for(self.session_file)
            store.restore()
            self._cli_session_store = store
        return self._cli_session_store

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    def _api(self, cls):
        return cls(
            self.config.API_URL,
            token_provider=self.current_token,
            timeout=self.config.API_TIMEOUT,
        )

    @property
    def auth_repo(self) -> AuthRepository:
        """Cliente de autenticación (singleton)."""
        if self._auth_repo is None:
            self._auth_repo = self._api(AuthRepository)
        return self._auth_repo

    @property
    def product_repo(self) -> ProductRepository:
        """Cliente de productos (singleton)."""
        if self._product_repo is None:
            self._product_repo = self._api(ProductRepository)
        return self._product_repo

    @property
    def cart_repo(self) -> CartRepository:
        """Cliente de carrito (singleton)."""
        if self._cart_repo is None:
            self._cart_repo = self._api(CartRepository)
        return self._cart_repo

    @property
    def order_repo(self) -> OrderRepository:
        """Cliente de pedidos (singleton)."""
        if self._order_repo is None:
            self._order_repo = self._api(OrderRepository)
        return self._order_repo

    @property
    def detail_repo(self) -> OrderDetailRepository:
        """Cliente de detalles de pedido (singleton)."""
        if self._detail_repo is None:
            self._detail_repo = self._api(OrderDetailRepository)
        return self._detail_repo

    @property
    def analytics_repo(self) -> AnalyticsRepository:
        """Cliente de la fuente analítica (singleton). Sin token de sesión."""
        if self._analytics_repo is None:
            self._analytics_repo = AnalyticsRepository(
                self.config.ANALYTICS_URL,
                self.config.ANALYTICS_API_KEY,
                timeout=self.config.API_TIMEOUT,
            )
        return self._analytics_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def checkout_service(self) -> CheckoutService:
        """Servicio de checkout (singleton)."""
        if self._checkout_service is None:
            self._checkout_service = CheckoutService(
                self.order_repo,
                self.detail_repo,
                self.cart_repo,
                compensate=self.config.CHECKOUT_COMPENSATE,
            )
        return self._checkout_service

    @property
    def cart_service(self) -> CartService:
        """Servicio de carrito (singleton)."""
        if self._cart_service is None:
            self._cart_service = CartService(self.cart_repo, self.product_repo)
        return self._cart_service

    @property
    def order_service(self) -> OrderService:
        """Servicio de pedidos (singleton)."""
        if self._order_service is None:
            self._order_service = OrderService(self.order_repo, self.detail_repo)
        return self._order_service

    @property
    def product_service(self) -> ProductService:
        """Servicio de productos (singleton)."""
        if self._product_service is None:
            self._product_service = ProductService(self.product_repo)
        return self._product_service

    @property
    def stats_service(self) -> StatsService:
        """Servicio de estadísticas (singleton)."""
        if self._stats_service is None:
            self._stats_service = StatsService(
                self.order_service,
                self.product_service,
                self.analytics_repo,
            )
        return self._stats_service

    @property
    def report_service(self) -> ReportService:
        """Servicio de reportes PDF (singleton)."""
        if self._report_service is None:
            self._report_service = ReportService(
                self.order_service,
                self.product_service,
                self.stats_service,
            )
        return self._report_service

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def override(self, **instances: Any) -> None:
        """
        Reemplaza componentes (útil para testing).

        Uso:
            container.override(cart_repo=FakeCartRepository())
        """
        for name, instance in instances.items():
            if name not in self._COMPONENTS:
                raise KeyError(f'Componente desconocido: {name}')
            setattr(self, f'_{name}', instance)

    def reset(self) -> None:
        """
        Reinicia todas las instancias.
        Útil para testing o para recargar configuración.
        """
        for name in self._COMPONENTS:
            setattr(self, f'_{name}', None)

    @classmethod
    def get_instance(cls, config: Config = None) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            config: Configuración (solo se usa en primera llamada)
        """
        if cls._instance is None:
            return cls(config)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


# Función helper para obtener el contenedor global
def get_container(config: Config = None) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Args:
        config: Configuración de la aplicación

    Returns:
        Instancia del contenedor
    """
    return AppContainer.get_instance(config)
