from collections.abc import Iterable, Iterator
from typing import Any


def singleton(cls):
    """
    A singleton decorator. Every instantiation of the decorated class returns
    the same instance. Use the __INSTANCE__ attribute to reset it in unit tests.
    """

    cls.__INSTANCE__ = None

    def singleton_new(singleton_cls):
        if cls.__INSTANCE__ is None:
            cls.__INSTANCE__ = super(cls, cls).__new__(cls)
        return cls.__INSTANCE__

    cls.__new__ = singleton_new

    return cls


def flatten(items: Iterable[Any]) -> Iterator[Any]:
    """
    Yield the items of arbitrarily nested lists and tuples in order.

    >>> list(flatten([A, [B, (C,)], D]))
    [A, B, C, D]
    """
    for item in items:
        if isinstance(item, (list, tuple)):
            yield from flatten(item)
        else:
            yield item
