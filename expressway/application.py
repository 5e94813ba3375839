"""The application drives the provider lifecycle and exposes the service registry."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, TypeVar

from .config import Config
from .core import (
    EMPTY,
    ApplicationError,
    ArgumentResolver,
    DuplicateAliasError,
    Invoker,
    ProviderConstructionError,
    ServiceRegistry,
)
from .events import EventEmitter
from .graph import ProviderGraph
from .providers import CXT_WEB, ENV_LOCAL, Provider, ProviderState
from .utils import flatten

logger = logging.getLogger(__name__)

TReturn = TypeVar("TReturn")


class Application:
    def __init__(
        self,
        config: Mapping[str, Any] | None = None,
        providers: Iterable[type[Provider] | Iterable] = (),
        *,
        context: str = CXT_WEB,
        environment: str | None = None,
    ):
        self.config = config if isinstance(config, Config) else Config(config)
        self.environment: str = environment or self.config("environment", ENV_LOCAL)
        self.context = context
        self.events = EventEmitter()

        self._services = ServiceRegistry()
        self._invoker = Invoker(ArgumentResolver(self._services))
        self._provider_classes: list[type[Provider]] = list(flatten(providers or self.config("providers", ())))
        self._graph = ProviderGraph()
        self._order: list[Provider] = []
        self._pending: list[asyncio.Future] = []
        self._aliases: dict[str, str] = {}
        self._constructed = False
        self._bootstrapping = False
        self._booted = False

        self.register("app", self, "The Application instance")
        self.register("config", self.config, "Helper function for accessing the config")
        self.register("event", self.events, "The application event emitter")

    @property
    def booted(self) -> bool:
        return self._booted

    @property
    def providers(self) -> ProviderGraph:
        return self._graph

    @property
    def order(self) -> list[Provider]:
        return list(self._order)

    @property
    def services(self) -> ServiceRegistry:
        return self._services

    def _create_providers(self):
        graph = ProviderGraph()

        for provider_cls in self._provider_classes:
            try:
                provider = self._invoker.call(provider_cls)
            except Exception as ex:
                raise ProviderConstructionError(provider_cls, ex) from ex

            if not isinstance(provider, Provider):
                raise ProviderConstructionError(provider_cls, TypeError("not a Provider subclass"))
            if "state" not in vars(provider):
                raise ProviderConstructionError(provider_cls, TypeError("__init__ must call super().__init__(app)"))

            graph.add(provider)

        self._graph = graph
        self._constructed = True

    def bootstrap(self) -> Application:
        if self._booted:
            return self
        if self._bootstrapping:
            raise ApplicationError("Application is already bootstrapping")

        self._bootstrapping = True
        try:
            if not self._constructed:
                self._create_providers()

            for provider in self._graph.load_order(self.environment, self.context):
                self._load(provider)

            self.events.emit("providers.registered", self)

            for provider in self._order:
                self._boot(provider)
        finally:
            self._bootstrapping = False

        self._booted = True
        logger.debug("application booted with %d provider(s)", len(self._order))
        self.events.emit("application.booted", self)

        return self

    async def bootstrap_async(self) -> Application:
        """
        Bootstrap inside a running event loop. Hooks that return awaitables are
        scheduled as tasks and not waited on, use ``settle`` to wait for them.
        """
        return self.bootstrap()

    async def settle(self):
        pending, self._pending = self._pending, []
        if pending:
            await asyncio.gather(*pending)

    def _load(self, provider: Provider) -> bool:
        if provider.loaded or not provider.is_loadable(self.environment, self.context):
            return False

        self._check_hook(provider, "register")
        provider.attach_events(self)
        self.events.emit("provider.loading", provider)
        logger.debug("registering provider %s", provider.name)

        result = self.call(provider, "register")
        provider.mark(ProviderState.registered)
        self._order.append(provider)
        self._track(provider, result)

        self.events.emit("provider.loaded", provider)

        return True

    def _boot(self, provider: Provider) -> bool:
        if not provider.loaded or provider.booted:
            return False

        self._check_hook(provider, "boot")
        logger.debug("booting provider %s", provider.name)

        result = self.call(provider, "boot")
        provider.mark(ProviderState.booted)
        self._track(provider, result)

        self.events.emit("provider.booted", provider)

        return True

    @staticmethod
    def _in_event_loop() -> bool:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return False
        return True

    @staticmethod
    def _async_hook_error(provider: Provider) -> ApplicationError:
        return ApplicationError(
            f"Provider {provider.name} returned an awaitable outside of a running event loop,"
            " use `await app.bootstrap_async()`"
        )

    def _check_hook(self, provider: Provider, hook: str):
        if inspect.iscoroutinefunction(getattr(provider, hook)) and not self._in_event_loop():
            raise self._async_hook_error(provider)

    def _track(self, provider: Provider, result: Any):
        if not inspect.isawaitable(result):
            return

        if not self._in_event_loop():
            if inspect.iscoroutine(result):
                result.close()
            raise self._async_hook_error(provider)

        future = asyncio.ensure_future(result)
        future.add_done_callback(self._log_failure(provider))
        self._pending.append(future)

    @staticmethod
    def _log_failure(provider: Provider):
        def callback(future: asyncio.Future):
            if not future.cancelled() and future.exception() is not None:
                logger.error("async hook of provider %s failed", provider.name, exc_info=future.exception())

        return callback

    def loaded(self, provider_name: str) -> bool:
        provider = self._graph.get(provider_name)
        return provider is not None and provider.loaded

    def register(self, name: str | Any, value: Any = EMPTY, description: str | None = None) -> Application:
        """
        Register a service. With a single argument the object's ``__name__`` is
        used as the service name::

            app.register(send_mail)  # registered as "send_mail"
        """
        if value is EMPTY:
            name, value, description = self._infer_service(name)
        self._services.register(name, value, description)
        return self

    @staticmethod
    def _infer_service(obj: Any) -> tuple[str, Any, str]:
        name = getattr(obj, "__name__", None)
        if not isinstance(name, str) or not name.isidentifier():
            raise ValueError(f"Service must be registered with a name or be a named function or class, got {obj!r}")
        return name, obj, getattr(obj, "description", None) or f"{name} instance"

    def alias(self, key: str, value: str | None = None) -> str | None | Application:
        """
        Get the alias stored under ``key`` or, when ``value`` is given, store it.
        Aliases cannot be overwritten.
        """
        if value is None:
            return self._aliases.get(key)
        if not isinstance(value, str):
            raise TypeError(f"Alias value must be a string, got {value!r}")
        if key in self._aliases:
            raise DuplicateAliasError(key)

        self._aliases[key] = value
        return self

    @property
    def aliases(self) -> dict[str, str]:
        return dict(self._aliases)

    def singleton(self, name: str, cls: type, description: str | None = None) -> Application:
        return self.register(name, self.call(cls), description)

    def has(self, name: str) -> bool:
        return self._services.has(name)

    def get(self, *names: str) -> Any:
        objects = [self._invoker.resolver.resolve_service(name) for name in names]
        return objects[0] if len(objects) == 1 else objects

    def call(
        self,
        target: Callable[..., TReturn] | Any,
        method: str | None = None,
        overrides: Sequence[Any] = (),
        **named: Any,
    ) -> TReturn | Any:
        return self._invoker.call(target, method, overrides, **named)

    def call_fn(self, fn: Callable[..., TReturn], method: str | None = None) -> Callable[..., TReturn]:
        """
        Wrap ``fn`` so that the arguments it is called with fill its leading
        parameters and the remaining ones are injected. Useful for event listeners::

            app.events.on("user.created", app.call_fn(send_welcome_mail))
        """

        def wrapper(*args: Any):
            return self.call(fn, method, args)

        return wrapper

    def override(self, name: str, value: Any):
        return self._services.override(name, value)

    def __repr__(self):
        return f"Application(environment={self.environment!r}, context={self.context!r}, booted={self._booted})"
