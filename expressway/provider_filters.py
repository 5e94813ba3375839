from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from theutilitybelt.functional.predicate import predicate
from theutilitybelt.functional.utils import constant

if TYPE_CHECKING:
    from .providers import Provider

ProviderFilter = Callable[["Provider"], bool]

all_providers = constant(True)


def _is_active(p: Provider):
    return bool(p.active)


is_active = predicate(_is_active)
is_active.__doc__ = "Filter for providers that have not been switched off"


def in_environment(environment: str):
    """
    Filter providers that may run in the given environment
    """

    def _in_environment(p: Provider):
        return environment in p.environments

    return predicate(_in_environment)


def in_context(context: str):
    """
    Filter providers that may run in the given context (web, cli, test)
    """

    def _in_context(p: Provider):
        return context in p.contexts

    return predicate(_in_context)


def is_loadable_in(environment: str, context: str):
    """
    Filter for providers that are active and applicable to both the environment and the context.

    Parameters:
        environment (str): The deployment environment, for example ``"prod"``.
        context (str): The run context, one of ``"web"``, ``"cli"`` or ``"test"``.

    Returns:
        Callable[[Provider], bool]: A filter that returns True when the provider can be loaded.
    """
    return is_active & in_environment(environment) & in_context(context)


def named(name: str):
    """
    Filter providers with the given name
    """

    def _named(p: Provider):
        return p.name == name

    return predicate(_named)


def requires_provider(name: str):
    """
    Filter providers that directly declare the named provider as a dependency
    """

    def _requires_provider(p: Provider):
        return name in p.requires

    return predicate(_requires_provider)


def _is_loaded(p: Provider):
    return p.loaded


def _is_booted(p: Provider):
    return p.booted


is_loaded = predicate(_is_loaded)
is_booted = predicate(_is_booted)
