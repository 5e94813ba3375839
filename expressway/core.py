"""Service registry and injection core."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, TypeVar

from expressway.utils import singleton

logger = logging.getLogger(__name__)

TReturn = TypeVar("TReturn")


@singleton
class _empty:  # noqa: N801
    def __bool__(self):
        return False


EMPTY = _empty()


def describe_target(target: Any) -> str:
    if inspect.isclass(target):
        return target.__name__
    if inspect.isroutine(target):
        return getattr(target, "__qualname__", target.__name__)
    return type(target).__name__


class ExpresswayError(Exception):
    pass


class DuplicateServiceError(ExpresswayError):
    def __init__(self, name: str):
        self.name = name

    def __str__(self):
        return f'"{self.name}" service has already been defined'


class ResolutionContext:
    __slots__ = ("method", "parameter", "target")

    def __init__(self, target: Any, method: str | None, parameter: str):
        self.target = target
        self.method = method
        self.parameter = parameter

    @property
    def called(self) -> str:
        name = describe_target(self.target)
        return f"{name}.{self.method}()" if self.method else f"{name}()"


class MissingServiceError(ExpresswayError):
    def __init__(self, name: str):
        self.name = name
        self.chain: list[ResolutionContext] = []

    def append(self, context: ResolutionContext):
        self.chain.append(context)

    @staticmethod
    def print_context(context: ResolutionContext):
        content = f"called: {context.called}\nparameter: {context.parameter}"
        content_lines = content.split("\n")
        width = max(len(line) for line in content_lines)
        top_border = "┌" + "─" * (width + 2) + "┐"
        bottom_border = "└" + "─" * (width + 2) + "┘"
        padded_content = "\n".join("│ " + line.ljust(width) + " │" for line in content_lines)
        return f"{top_border}\n{padded_content}\n{bottom_border}"

    @property
    def message(self):
        if not self.chain:
            return f"Service does not exist: {self.name}"
        return f"Service does not exist: {self.name} (required by {self.chain[0].called})"

    @property
    def resolution_chain(self):
        chain = ""
        arrow = "↑\n↑\n↑\n"

        for index, item in enumerate(self.chain):
            printed_item = MissingServiceError.print_context(item)
            if index == 0:
                chain += f"{printed_item}\n"
            else:
                chain += f"{arrow}{printed_item}\n"

        return chain

    def __str__(self):
        if not self.chain:
            return self.message
        return f"\n{self.message}\n\nResolution chain:\n{self.resolution_chain}"


class CyclicDependencyError(ExpresswayError):
    def __init__(self, chain: Sequence[str]):
        self.chain = list(chain)

    def __str__(self):
        return "Cyclic dependency detected: " + " -> ".join(self.chain)


class InvalidCallTargetError(ExpresswayError):
    def __init__(self, message: str, target: Any = None, method: str | None = None):
        super().__init__(message)
        self.target = target
        self.method = method


class CallError(ExpresswayError):
    """
    Raised when an exception escapes the body of an injected target.

    The original exception is kept on ``error`` (and as ``__cause__``). Nested
    calls produce nested ``CallError`` layers; iterate the error to walk them and
    use ``root_cause`` to get the exception that started it all.
    """

    def __init__(self, error: BaseException, context: Any, method: str | None = None):
        super().__init__(str(error))
        self.error = error
        self.context = context
        self.method = method

    @property
    def called(self) -> str:
        name = describe_target(self.context)
        return f"at: {name}.{self.method}()" if self.method else f"at: {name}()"

    @property
    def root_cause(self) -> BaseException:
        thrown = self.error
        while isinstance(thrown, CallError):
            thrown = thrown.error
        return thrown

    def __iter__(self) -> Iterator[CallError]:
        thrown: BaseException = self
        while isinstance(thrown, CallError):
            yield thrown
            thrown = thrown.error

    def __str__(self):
        return "\n".join([str(self.root_cause), *(layer.called for layer in self)])


class ApplicationError(ExpresswayError):
    pass


class ProviderConstructionError(ApplicationError):
    def __init__(self, provider_cls: Any, error: BaseException):
        self.provider_cls = provider_cls
        self.error = error

    def __str__(self):
        return f"Error loading provider {describe_target(self.provider_cls)}: {self.error}"


class DuplicateProviderError(ApplicationError):
    def __init__(self, name: str):
        self.name = name

    def __str__(self):
        return f"Provider {self.name} has already been added"


class DuplicateAliasError(ApplicationError):
    def __init__(self, key: str):
        self.key = key

    def __str__(self):
        return f'"{self.key}" alias already exists'


class ApplicationLoadError(ApplicationError):
    def __init__(self, message: str, provider: Any, dependency: Any = None):
        self.message = message
        self.provider = provider
        self.dependency = dependency

    def __str__(self):
        lines = [self.message, f"Provider: {self.provider}"]
        if self.dependency is not None:
            lines.append(f"Dependency: {self.dependency}")
        return "\n".join(lines)


class MissingDependencyError(ApplicationLoadError):
    MISSING = "missing"
    INACTIVE = "not active"
    NOT_LOADABLE = "not loadable in this environment or context"

    def __init__(self, provider: Any, dependency: str, reason: str = MISSING):
        super().__init__(f"Provider dependency is {reason}", provider, dependency)
        self.reason = reason


class Lifespan(IntEnum):
    transient = 0
    singleton = 1


@dataclass
class Value:
    value: Any


@dataclass
class Factory:
    fn: Callable
    lifespan: Lifespan = Lifespan.singleton


Service = Value | Factory


@dataclass
class ServiceEntry:
    name: str
    service: Service
    description: str | None = None
    instance: Any = EMPTY


class ServiceRegistry:
    def __init__(self):
        self._entries: dict[str, ServiceEntry] = {}

    def register(self, name: str, value: Any, description: str | None = None) -> ServiceRegistry:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Service name must be a non-empty string, got {name!r}")
        if name in self._entries:
            raise DuplicateServiceError(name)

        service = value if isinstance(value, (Value, Factory)) else Value(value)
        self._entries[name] = ServiceEntry(name=name, service=service, description=description)
        logger.debug("registered service %s", name)
        return self

    def has(self, name: str) -> bool:
        return name in self._entries

    def entry(self, name: str) -> ServiceEntry:
        try:
            return self._entries[name]
        except KeyError:
            raise MissingServiceError(name) from None

    def get(self, name: str) -> Service:
        return self.entry(name).service

    def describe(self) -> dict[str, str | None]:
        return {name: entry.description for name, entry in self._entries.items()}

    @contextmanager
    def override(self, name: str, value: Any):
        """
        Temporarily replace a service, restoring the previous entry on exit.
        Intended for tests only.
        """
        previous = self._entries.get(name)
        service = value if isinstance(value, (Value, Factory)) else Value(value)
        description = previous.description if previous else None
        self._entries[name] = ServiceEntry(name=name, service=service, description=description)
        logger.debug("overriding service %s", name)
        try:
            yield service
        finally:
            if previous is None:
                del self._entries[name]
            else:
                self._entries[name] = previous

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self):
        return len(self._entries)


def injects(*names: str):
    """
    Declare the service names for a callable explicitly instead of reading them
    from its signature.

    >>> @injects("db", "config")
    ... def make_repository(connection, settings): ...
    """

    def decorator(obj):
        obj.__inject__ = tuple(names)
        return obj

    return decorator


class ArgInfo:
    __slots__ = ("default_value", "keyword_only", "name")

    def __init__(self, name: str, default_value: Any, keyword_only: bool = False):
        self.name = name
        self.default_value = EMPTY if default_value is inspect.Parameter.empty else default_value
        self.keyword_only = keyword_only


def _get_arg_info(subject: Callable) -> list[ArgInfo]:
    manifest = getattr(subject, "__inject__", None)
    if manifest is not None:
        return [ArgInfo(name=name, default_value=inspect.Parameter.empty) for name in manifest]

    try:
        signature = inspect.signature(subject)
    except (TypeError, ValueError):
        return []

    args: list[ArgInfo] = []
    for name, param in signature.parameters.items():
        if param.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        args.append(
            ArgInfo(
                name=name,
                default_value=param.default,
                keyword_only=param.kind == inspect.Parameter.KEYWORD_ONLY,
            )
        )
    return args


class ArgumentResolver:
    def __init__(self, registry: ServiceRegistry):
        self.registry = registry
        self.invoker: Invoker | None = None
        self._resolving: list[str] = []

    def resolve(
        self,
        fn: Callable,
        overrides: Sequence[Any] = (),
        named: Mapping[str, Any] | None = None,
        context: Any = None,
        method: str | None = None,
    ) -> tuple[list[Any], dict[str, Any]]:
        named = named or {}
        args: list[Any] = []
        kwargs: dict[str, Any] = {}

        for index, arg_info in enumerate(_get_arg_info(fn)):
            if index < len(overrides):
                value = overrides[index]
            elif arg_info.name in named:
                value = named[arg_info.name]
            else:
                value = self._resolve_arg(arg_info, context if context is not None else fn, method)

            if arg_info.keyword_only:
                kwargs[arg_info.name] = value
            else:
                args.append(value)

        return args, kwargs

    def _resolve_arg(self, arg_info: ArgInfo, context: Any, method: str | None) -> Any:
        if not self.registry.has(arg_info.name) and arg_info.default_value is not EMPTY:
            return arg_info.default_value
        try:
            return self.resolve_service(arg_info.name)
        except MissingServiceError as ex:
            ex.append(ResolutionContext(context, method, arg_info.name))
            raise ex

    def resolve_service(self, name: str) -> Any:
        entry = self.registry.entry(name)
        service = entry.service

        if isinstance(service, Value):
            return service.value

        if service.lifespan == Lifespan.singleton and entry.instance is not EMPTY:
            return entry.instance

        if name in self._resolving:
            raise CyclicDependencyError([*self._resolving[self._resolving.index(name) :], name])

        self._resolving.append(name)
        try:
            value = self._invoke_factory(service.fn)
        finally:
            self._resolving.pop()

        if service.lifespan == Lifespan.singleton:
            entry.instance = value
        return value

    def _invoke_factory(self, fn: Callable) -> Any:
        if self.invoker is None:
            args, kwargs = self.resolve(fn)
            return fn(*args, **kwargs)
        return self.invoker.call(fn)


class Invoker:
    def __init__(self, resolver: ArgumentResolver):
        self.resolver = resolver
        resolver.invoker = self

    def _get_callable(self, target: Any, method: str | None) -> Callable:
        if target is None:
            raise InvalidCallTargetError("Missing call target", target, method)

        if method is None:
            if callable(target):
                return target
            raise InvalidCallTargetError(
                f"Call target must be a function, class or object with a method name: {describe_target(target)}",
                target,
                method,
            )

        if inspect.isclass(target) or inspect.isroutine(target) or not isinstance(method, str):
            raise InvalidCallTargetError(
                f"Call target must be an object when a method is given: {describe_target(target)}.{method}",
                target,
                method,
            )

        fn = getattr(target, method, None)
        if not callable(fn):
            raise InvalidCallTargetError(
                f"Call target has no method: {describe_target(target)}.{method}",
                target,
                method,
            )
        return fn

    def call(
        self,
        target: Callable[..., TReturn] | Any,
        method: str | None = None,
        overrides: Sequence[Any] = (),
        **named: Any,
    ) -> TReturn | Any:
        fn = self._get_callable(target, method)
        args, kwargs = self.resolver.resolve(fn, overrides, named, context=target, method=method)

        try:
            return fn(*args, **kwargs)
        except Exception as ex:
            raise CallError(ex, target, method) from ex
