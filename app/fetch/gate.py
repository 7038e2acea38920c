"""Counting admission gate for bounding concurrent network work.

``acquire()`` suspends the calling task until a slot is free and hands back a
permit; the permit must be passed to ``release()`` exactly once. Prefer
``async with gate.slot():`` which releases on every exit path, including
cancellation.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class Permit:
    """Opaque token proving ownership of one gate slot."""

    __slots__ = ("gate",)

    def __init__(self, gate: "RateGate"):
        self.gate = gate

    def __repr__(self) -> str:
        return f"<Permit gate={self.gate.name!r}>"


class RateGate:
    def __init__(self, limit: int, name: str = "gate"):
        if limit <= 0:
            raise ValueError(f"Gate limit must be positive, got: {limit}")
        self.name = name
        self._limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self._outstanding: set = set()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def in_flight(self) -> int:
        return len(self._outstanding)

    @property
    def available(self) -> int:
        return self._limit - len(self._outstanding)

    async def acquire(self) -> Permit:
        """Wait for a free slot. Never times out."""
        await self._semaphore.acquire()
        permit = Permit(self)
        self._outstanding.add(permit)
        return permit

    def release(self, permit: Permit) -> None:
        if permit not in self._outstanding:
            raise ValueError(f"{permit!r} is not held on gate {self.name!r}")
        self._outstanding.remove(permit)
        self._semaphore.release()

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[Permit]:
        permit = await self.acquire()
        try:
            yield permit
        finally:
            self.release(permit)

    def __repr__(self) -> str:
        return f"<RateGate {self.name!r} {self.in_flight}/{self._limit}>"
