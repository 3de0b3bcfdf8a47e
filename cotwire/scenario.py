"""Conformance scenarios and their outcomes.

A scenario drives one or more mock clients against a TAK server's firehose
listener and checks one observable wire-protocol contract. It only needs
the listener's address, so the same scenario runs against an in-process
server and a remote one alike.
"""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from typing import ClassVar


class OutcomeKind(enum.Enum):
    """How a scenario run ended."""

    PASS = enum.auto()
    FAIL = enum.auto()
    SKIPPED = enum.auto()


@dataclass(frozen=True)
class Outcome:
    """Result of running a :class:`Scenario`.

    ``reason`` is operator-readable: for a failure it names the divergence,
    for a skip the environmental cause (Docker missing, port in use, ...).
    """

    kind: OutcomeKind
    reason: str = ""

    @classmethod
    def passed(cls) -> Outcome:
        """All assertions held."""
        return cls(OutcomeKind.PASS)

    @classmethod
    def failed(cls, reason: str) -> Outcome:
        """An assertion failed."""
        return cls(OutcomeKind.FAIL, reason)

    @classmethod
    def skipped(cls, reason: str) -> Outcome:
        """The scenario could not run for an environmental reason."""
        return cls(OutcomeKind.SKIPPED, reason)

    def __str__(self) -> str:
        if self.kind is OutcomeKind.PASS:
            return self.kind.name
        return f"{self.kind.name}: {self.reason}"


class Scenario(abc.ABC):
    """One conformance contract.

    Subclasses set ``name`` (short, goes into reports) and ``description``
    (one line saying what is asserted) and implement :meth:`run`.
    """

    name: ClassVar[str]
    description: ClassVar[str]

    @abc.abstractmethod
    async def run(self, host: str, port: int) -> Outcome:
        """Run the scenario against the firehose listener at ``host:port``."""