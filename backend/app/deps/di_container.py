"""
Dependency injection container using dependency-injector.

Health objects live for the whole process. Contact controllers are built per
request: the endpoint passes the request's session when calling the factory.
"""

from dependency_injector import containers, providers

from app.controllers.contact_controller import ContactController
from app.controllers.health_controller import HealthController
from app.core.config import settings
from app.services.health_service import HealthService


class Container(containers.DeclarativeContainer):
    """Dependency injection container."""

    config = providers.Configuration()

    health_service = providers.Singleton(HealthService)

    health_controller = providers.Factory(
        HealthController,
        health_service=health_service,
    )

    # Call as contact_controller(session=db)
    contact_controller = providers.Factory(
        ContactController,
        default_household_name=config.default_household_name,
    )


def build_container() -> Container:
    """Create a container configured from the application settings."""
    container = Container()
    container.config.from_dict({
        "database_url": settings.DATABASE_URL,
        "default_household_name": settings.DEFAULT_HOUSEHOLD_NAME,
    })
    return container


_container: Container = None


def get_container() -> Container:
    """Get the process-wide container, building it on first use."""
    global _container
    if _container is None:
        _container = build_container()
    return _container


def set_container(container: Container) -> None:
    """Install the container built during application startup."""
    global _container
    _container = container
