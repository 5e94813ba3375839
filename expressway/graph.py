"""Provider index and load order resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from theutilitybelt.collections.queue import Queue

from .core import CyclicDependencyError, DuplicateProviderError, MissingDependencyError
from .provider_filters import ProviderFilter, all_providers, is_loadable_in, requires_provider
from .providers import Provider

logger = logging.getLogger(__name__)


class ProviderGraph:
    def __init__(self, providers: Iterable[Provider] = ()):
        self._providers: dict[str, Provider] = {}
        for provider in providers:
            self.add(provider)

    def add(self, provider: Provider) -> ProviderGraph:
        if provider.name in self._providers:
            raise DuplicateProviderError(provider.name)
        self._providers[provider.name] = provider
        return self

    def get(self, name: str) -> Provider | None:
        return self._providers.get(name)

    def __getitem__(self, name: str) -> Provider:
        return self._providers[name]

    def __contains__(self, name: object) -> bool:
        return name in self._providers

    def __iter__(self) -> Iterator[Provider]:
        return iter(list(self._providers.values()))

    def __len__(self):
        return len(self._providers)

    @property
    def names(self) -> list[str]:
        return list(self._providers)

    def find(self, filter: ProviderFilter = all_providers) -> list[Provider]:
        return [p for p in self._providers.values() if filter(p)]

    def loadable(self, environment: str, context: str) -> list[Provider]:
        """
        Loadable providers sorted by their order. Ties keep discovery order.
        """
        return sorted(self.find(is_loadable_in(environment, context)), key=lambda p: p.order)

    def load_order(self, environment: str, context: str) -> list[Provider]:
        """
        Compute the order in which providers register (and later boot).

        Providers are visited by ascending ``order``; each one pulls its declared
        dependencies in first, depth first. A dependency that is missing from the
        graph, or present but not loadable, raises ``MissingDependencyError``. A
        provider reached again while its own dependencies are still loading raises
        ``CyclicDependencyError``.
        """
        loadable = is_loadable_in(environment, context)
        order: list[Provider] = []
        visited: set[str] = set()
        visiting: list[str] = []

        def visit(provider: Provider):
            if provider.name in visited:
                return

            if provider.name in visiting:
                raise CyclicDependencyError([*visiting[visiting.index(provider.name) :], provider.name])

            visiting.append(provider.name)

            for dependency_name in provider.requires:
                dependency = self._providers.get(dependency_name)

                if dependency is None:
                    raise MissingDependencyError(provider, dependency_name, MissingDependencyError.MISSING)
                if not dependency.active:
                    raise MissingDependencyError(provider, dependency_name, MissingDependencyError.INACTIVE)
                if not loadable(dependency):
                    raise MissingDependencyError(provider, dependency_name, MissingDependencyError.NOT_LOADABLE)

                visit(dependency)

            visiting.pop()
            visited.add(provider.name)
            order.append(provider)

        for provider in self.loadable(environment, context):
            visit(provider)

        skipped = [p.name for p in self._providers.values() if p.name not in visited]
        if skipped:
            logger.debug("providers not loadable in %s/%s: %s", environment, context, ", ".join(skipped))

        return order

    def dependencies_of(self, name: str, transitive: bool = False) -> list[str]:
        """
        Names of the providers the named provider requires. With ``transitive`` the
        whole dependency closure is returned, nearest first.
        """
        provider = self._providers[name]
        if not transitive:
            return list(provider.requires)

        found: list[str] = []
        queue = Queue()
        queue.put(provider)

        while not queue.is_empty():
            current = queue.get()
            for dependency_name in current.requires:
                if dependency_name in found or dependency_name == name:
                    continue
                found.append(dependency_name)
                if dependency := self._providers.get(dependency_name):
                    queue.put(dependency)

        return found

    def dependents_of(self, name: str) -> list[str]:
        return [p.name for p in self.find(requires_provider(name))]
