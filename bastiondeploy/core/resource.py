"""
Resource lifecycle contract.

A resource is anything with create/update/delete handlers over a typed,
persisted state. The handlers are atomic from the caller's perspective: they
either return the new state or raise.
"""

from typing import Any, Protocol, TypeVar

S = TypeVar("S")


class Resource(Protocol[S]):
    """create -> update* -> delete over state ``S``."""

    async def create(self, *args: Any, **kwargs: Any) -> S:
        ...

    async def update(self, state: S, *args: Any, **kwargs: Any) -> S:
        ...

    async def delete(self, state: S) -> None:
        ...
