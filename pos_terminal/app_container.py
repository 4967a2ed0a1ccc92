# ==============================================================================
# CONTENEDOR DE DEPENDENCIAS - Inyección de servicios
# ==============================================================================
# Este módulo proporciona una forma centralizada de obtener instancias
# de repositorios y servicios. Facilita:
#   - Inyección de dependencias
#   - Testing (se pueden pasar repositorios falsos)
#   - Cambiar el transporte sin tocar los servicios
#
# Los repositorios HTTP toman el token bearer de SessionService, así que
# la recarga del catálogo en segundo plano funciona fuera de un request.
# ==============================================================================

from typing import Optional

from pos_terminal.config import Settings
from pos_terminal.repositories import (
    AuthRepository,
    CatalogRepository,
    IAuthRepository,
    ICatalogRepository,
    ISalesRepository,
    SalesRepository,
)
from pos_terminal.services import (
    CartStore,
    CheckoutCoordinator,
    PricingEngine,
    ProductCatalogView,
    SessionService,
)
from pos_terminal.services.checkout_coordinator import RefreshRunner


class AppContainer:
    """
    Contenedor de dependencias de la aplicación.

    Implementa el patrón Singleton para asegurar una única instancia
    de cada repositorio y servicio (un solo carrito por terminal).

    Uso:
        container = AppContainer(settings=Settings.from_env())
        cart = container.cart_store
        coordinator = container.checkout_coordinator
    """

    _instance: Optional['AppContainer'] = None

    def __new__(cls, *args, **kwargs):
        """Singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(
        self,
        settings: Settings = None,
        catalog_repo: ICatalogRepository = None,
        sales_repo: ISalesRepository = None,
        auth_repo: IAuthRepository = None,
        refresh_runner: RefreshRunner = None
    ):
        """
        Inicializa el contenedor.

        Args:
            settings: Configuración (por defecto desde variables de entorno)
            catalog_repo: Repositorio de catálogo (por defecto HTTP)
            sales_repo: Repositorio de ventas (por defecto HTTP)
            auth_repo: Repositorio de identidad (por defecto HTTP)
            refresh_runner: Ejecutor de la recarga post-venta (por defecto hilo)
        """
        if self._initialized:
            return

        self.settings = settings or Settings.from_env()
        self._refresh_runner = refresh_runner

        # Repositorios (lazy loading, o inyectados)
        self._catalog_repo: Optional[ICatalogRepository] = catalog_repo
        self._sales_repo: Optional[ISalesRepository] = sales_repo
        self._auth_repo: Optional[IAuthRepository] = auth_repo

        # Servicios (lazy loading)
        self._session_service: Optional[SessionService] = None
        self._catalog_view: Optional[ProductCatalogView] = None
        self._cart_store: Optional[CartStore] = None
        self._pricing_engine: Optional[PricingEngine] = None
        self._checkout_coordinator: Optional[CheckoutCoordinator] = None

        self._initialized = True

    # =========================================================================
    # REPOSITORIOS
    # =========================================================================

    def _http_kwargs(self) -> dict:
        return {
            'base_url': self.settings.api_base_url,
            'token_provider': lambda: self.session_service.token(),
            'timeout': self.settings.http_timeout,
        }

    @property
    def catalog_repo(self) -> ICatalogRepository:
        """Repositorio de catálogo (singleton)."""
        if self._catalog_repo is None:
            self._catalog_repo = CatalogRepository(**self._http_kwargs())
        return self._catalog_repo

    @property
    def sales_repo(self) -> ISalesRepository:
        """Repositorio de ventas (singleton)."""
        if self._sales_repo is None:
            self._sales_repo = SalesRepository(**self._http_kwargs())
        return self._sales_repo

    @property
    def auth_repo(self) -> IAuthRepository:
        """Repositorio de identidad (singleton)."""
        if self._auth_repo is None:
            self._auth_repo = AuthRepository(**self._http_kwargs())
        return self._auth_repo

    # =========================================================================
    # SERVICIOS
    # =========================================================================

    @property
    def session_service(self) -> SessionService:
        """Servicio de sesión (singleton)."""
        if self._session_service is None:
            self._session_service = SessionService(self.auth_repo)
        return self._session_service

    @property
    def catalog_view(self) -> ProductCatalogView:
        """Vista de catálogo (singleton)."""
        if self._catalog_view is None:
            self._catalog_view = ProductCatalogView(self.catalog_repo)
        return self._catalog_view

    @property
    def cart_store(self) -> CartStore:
        """Carrito del terminal (singleton), ya vinculado al motor de precios."""
        if self._cart_store is None:
            self._cart_store = CartStore()
            self._pricing_engine = PricingEngine(self._cart_store)
        return self._cart_store

    @property
    def pricing_engine(self) -> PricingEngine:
        """Motor de precios vinculado al carrito (singleton)."""
        if self._pricing_engine is None:
            cart = self.cart_store
            if self._pricing_engine is None:
                self._pricing_engine = PricingEngine(cart)
        return self._pricing_engine

    @property
    def checkout_coordinator(self) -> CheckoutCoordinator:
        """Coordinador de cobro (singleton)."""
        if self._checkout_coordinator is None:
            self._checkout_coordinator = CheckoutCoordinator(
                self.cart_store,
                self.sales_repo,
                self.catalog_view,
                session_service=self.session_service,
                refresh_runner=self._refresh_runner,
            )
        return self._checkout_coordinator

    # =========================================================================
    # UTILIDADES
    # =========================================================================

    def reset(self) -> None:
        """
        Reinicia todas las instancias de servicios.
        Útil para testing.
        """
        if self._pricing_engine is not None:
            self._pricing_engine.close()
        self._session_service = None
        self._catalog_view = None
        self._cart_store = None
        self._pricing_engine = None
        self._checkout_coordinator = None

    @classmethod
    def get_instance(cls, **kwargs) -> 'AppContainer':
        """
        Obtiene la instancia singleton del contenedor.

        Args:
            **kwargs: Argumentos del constructor (solo se usan en la primera llamada)
        """
        if cls._instance is None:
            return cls(**kwargs)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Elimina la instancia singleton (útil para tests)."""
        if cls._instance is not None:
            cls._instance.reset()
            cls._instance = None


# Función helper para obtener el contenedor global
def get_container(**kwargs) -> AppContainer:
    """
    Obtiene el contenedor de dependencias global.

    Uso:
        from pos_terminal.app_container import get_container
        container = get_container()
        container.cart_store.add(product)
    """
    return AppContainer.get_instance(**kwargs)
