"""Provider base class and the environment/context constants used to gate providers."""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence
from enum import IntEnum
from typing import TYPE_CHECKING, Any

from .provider_filters import is_loadable_in

if TYPE_CHECKING:
    from .application import Application

logger = logging.getLogger(__name__)

ENV_LOCAL = "local"
ENV_DEV = "dev"
ENV_PROD = "prod"
ENV_ALL = frozenset({ENV_LOCAL, ENV_DEV, ENV_PROD})

CXT_WEB = "web"
CXT_CLI = "cli"
CXT_TEST = "test"
CXT_ALL = frozenset({CXT_WEB, CXT_CLI, CXT_TEST})

DEFAULT_ORDER = 50


class ProviderState(IntEnum):
    constructed = 0
    registered = 1
    booted = 2


def _as_names(value: str | Collection[str]) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(value)


class Provider:
    """
    A unit of optional application functionality.

    Subclasses configure themselves with class attributes and override the
    ``register`` and ``boot`` hooks. Hook parameters are injected by name from
    the application's services::

        class DatabaseProvider(Provider):
            order = 10
            requires = ["LoggerProvider"]
            environments = {ENV_DEV, ENV_PROD}

            def register(self, app, config, log):
                app.register("db", Factory(connect), "Database connection")

            def boot(self, event):
                event.emit("database.ready")

    ``register`` runs once the provider's dependencies have registered, ``boot``
    runs after every loadable provider has registered.
    """

    order: int = DEFAULT_ORDER
    requires: Sequence[str] = ()
    environments: Collection[str] = ENV_ALL
    contexts: Collection[str] = CXT_ALL
    events: Mapping[str, str] = {}
    active: bool = True
    description: str | None = None

    def __init__(self, app: Application):
        self.app = app
        self.state = ProviderState.constructed
        self.requires = _as_names(self.requires)
        self.environments = frozenset(_as_names(self.environments))
        self.contexts = frozenset(_as_names(self.contexts))
        self.events = dict(self.events)

    @property
    def name(self) -> str:
        return type(self).__name__

    @property
    def loaded(self) -> bool:
        return self.state >= ProviderState.registered

    @property
    def booted(self) -> bool:
        return self.state == ProviderState.booted

    def mark(self, state: ProviderState):
        if state <= self.state:
            raise ValueError(f"Provider {self.name} cannot move from {self.state.name} to {state.name}")
        self.state = state

    def is_loadable(self, environment: str, context: str) -> bool:
        return is_loadable_in(environment, context)(self)

    def attach_events(self, app: Application) -> bool:
        if not self.events:
            return False

        for event_name, method in self.events.items():
            app.events.once(event_name, self._event_handler(app, method))
            logger.debug("provider %s listening for %s with %s", self.name, event_name, method)

        return True

    def _event_handler(self, app: Application, method: str):
        def handler(*_: Any):
            return app.call(self, method)

        return handler

    def register(self) -> Any:
        return None

    def boot(self) -> Any:
        return None

    def __repr__(self):
        return f"{self.name}(order={self.order}, state={self.state.name})"

    def __str__(self):
        return self.name
