"""
Dependency injection container for HomeCare Pro API.

This module provides a lightweight dependency injection container
for managing application dependencies and their lifecycle.
"""

from typing import Any, Callable, Dict, Optional

from .config import get_settings
from .exceptions import ConfigurationError
from .utils.patient_id_cache import PatientIdCache


class Container:
    """Lightweight dependency injection container."""

    def __init__(self) -> None:
        self._factories: Dict[str, Callable[[], Any]] = {}
        self._singletons: Dict[str, Any] = {}

    def register_singleton(self, name: str, instance: Any) -> None:
        """Register a singleton instance."""
        self._singletons[name] = instance

    def register_factory(self, name: str, factory: Callable[[], Any]) -> None:
        """Register a factory function."""
        self._factories[name] = factory

    def get(self, name: str) -> Any:
        """Get a service by name."""
        if name in self._singletons:
            return self._singletons[name]

        if name in self._factories:
            instance = self._factories[name]()
            # Cache as singleton if it's a factory
            self._singletons[name] = instance
            return instance

        raise ConfigurationError(f"Service '{name}' not found")

    def get_or_none(self, name: str) -> Optional[Any]:
        """Get a service by name, return None if not found."""
        try:
            return self.get(name)
        except ConfigurationError:
            return None


# Global container instance
_container = Container()


def get_container() -> Container:
    """Get the global container instance."""
    return _container


def register_singleton(name: str, instance: Any) -> None:
    """Register a singleton instance in the global container."""
    _container.register_singleton(name, instance)


def register_factory(name: str, factory: Callable[[], Any]) -> None:
    """Register a factory function in the global container."""
    _container.register_factory(name, factory)


def get_service(name: str) -> Any:
    """Get a service from the global container."""
    return _container.get(name)


def get_service_or_none(name: str) -> Optional[Any]:
    """Get a service from the global container or None if not found."""
    return _container.get_or_none(name)


class ServiceNames:
    """Service names used throughout the application."""

    # Database services
    MONGO_CLIENT = "mongo_client"
    DATABASE = "database"

    # Patient id resolution
    PATIENT_ID_CACHE = "patient_id_cache"


def _build_patient_id_cache() -> PatientIdCache:
    settings = get_settings().patient_ids
    return PatientIdCache(
        ttl_seconds=settings.cache_ttl_seconds,
        max_entries=settings.cache_max_entries,
    )


def initialize_core_services() -> None:
    """Initialize core services in the container."""
    register_factory(ServiceNames.PATIENT_ID_CACHE, _build_patient_id_cache)


# Auto-initialize core services
initialize_core_services()
