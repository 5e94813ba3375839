"""Dependency injection and provider lifecycle for Expressway applications."""

from .application import Application
from .config import Config
from .core import (
    ApplicationError,
    ApplicationLoadError,
    ArgumentResolver,
    CallError,
    CyclicDependencyError,
    DuplicateAliasError,
    DuplicateProviderError,
    DuplicateServiceError,
    ExpresswayError,
    Factory,
    InvalidCallTargetError,
    Invoker,
    Lifespan,
    MissingDependencyError,
    MissingServiceError,
    ProviderConstructionError,
    Service,
    ServiceRegistry,
    Value,
    injects,
)
from .events import EventEmitter
from .graph import ProviderGraph
from .providers import (
    CXT_ALL,
    CXT_CLI,
    CXT_TEST,
    CXT_WEB,
    DEFAULT_ORDER,
    ENV_ALL,
    ENV_DEV,
    ENV_LOCAL,
    ENV_PROD,
    Provider,
    ProviderState,
)

__all__ = [
    "CXT_ALL",
    "CXT_CLI",
    "CXT_TEST",
    "CXT_WEB",
    "DEFAULT_ORDER",
    "ENV_ALL",
    "ENV_DEV",
    "ENV_LOCAL",
    "ENV_PROD",
    "Application",
    "ApplicationError",
    "ApplicationLoadError",
    "ArgumentResolver",
    "CallError",
    "Config",
    "CyclicDependencyError",
    "DuplicateAliasError",
    "DuplicateProviderError",
    "DuplicateServiceError",
    "EventEmitter",
    "ExpresswayError",
    "Factory",
    "InvalidCallTargetError",
    "Invoker",
    "Lifespan",
    "MissingDependencyError",
    "MissingServiceError",
    "Provider",
    "ProviderConstructionError",
    "ProviderGraph",
    "ProviderState",
    "Service",
    "ServiceRegistry",
    "Value",
    "injects",
]
