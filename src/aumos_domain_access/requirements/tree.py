"""Requirement trees: memoized predicates over a connection.

A :class:`Requirement` answers "is this command or option usable on this
connection". Leaves ask the remote oracle; composites combine children
with short-circuiting.

Nodes are immutable once built. Every node's memoized answer is stored
in the :class:`~aumos_domain_access.requirements.connection.ConnectionContext`
it was evaluated against, keyed by :attr:`Requirement.node_id`, and is
valid for the connection's current epoch only.
"""
from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Sequence

from aumos_domain_access.access.address import Address
from aumos_domain_access.requirements.connection import ConnectionContext, ControllerMode

_NODE_IDS = itertools.count(1)


@dataclass
class EvaluationState:
    """Per-connection memo of one node's answer."""

    computed: bool = False
    value: bool = False
    epoch: int = -1


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------


class Requirement(ABC):
    """Abstract base for every requirement node.

    Subclasses implement :meth:`_evaluate`; :meth:`is_satisfied` wraps it
    with per-connection memoization. Subclasses with richer evaluation
    state override :meth:`_new_state` to return a subclass of
    :class:`EvaluationState`.
    """

    def __init__(self) -> None:
        self.node_id: int = next(_NODE_IDS)

    @property
    def children(self) -> Sequence[Requirement]:
        return ()

    def is_satisfied(self, ctx: ConnectionContext) -> bool:
        """Return whether this requirement holds on ``ctx``.

        The first call per epoch evaluates; later calls return the memo
        without any remote query.
        """
        state = self._state(ctx)
        if state.computed and state.epoch == ctx.epoch:
            return state.value
        epoch = ctx.epoch
        value = self._evaluate(ctx)
        # A disconnect during evaluation invalidates the answer.
        if ctx.epoch == epoch:
            state.computed = True
            state.value = value
            state.epoch = epoch
        return value

    def on_disconnected(self, ctx: ConnectionContext) -> None:
        """Drop this node's (and its descendants') state on ``ctx``."""
        ctx.discard_state(self.node_id)
        for child in self.children:
            child.on_disconnected(ctx)

    def walk(self) -> Iterator[Requirement]:
        """Yield this node and all of its descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    # ------------------------------------------------------------------
    # Subclass hooks
    # ------------------------------------------------------------------

    def _new_state(self) -> EvaluationState:
        return EvaluationState()

    def _state(self, ctx: ConnectionContext) -> EvaluationState:
        return ctx.state_for(self.node_id, self._new_state)

    @abstractmethod
    def _evaluate(self, ctx: ConnectionContext) -> bool:
        """Compute the answer; called at most once per node per epoch."""


# ---------------------------------------------------------------------------
# Leaves
# ---------------------------------------------------------------------------


class Always(Requirement):
    """Requirement that always holds."""

    def _evaluate(self, ctx: ConnectionContext) -> bool:
        return True

    def __repr__(self) -> str:
        return "Always()"


ALWAYS = Always()


class SingleOperation(Requirement):
    """Holds when ``operation`` is executable at ``address``."""

    def __init__(self, operation: str, address: Address = Address.ROOT) -> None:
        super().__init__()
        self.operation = operation
        self.address = address

    def _evaluate(self, ctx: ConnectionContext) -> bool:
        return ctx.query_executable(Address.ROOT, self.address, self.operation)

    def __repr__(self) -> str:
        return f"SingleOperation({self.address}:{self.operation})"


# ---------------------------------------------------------------------------
# Composites
# ---------------------------------------------------------------------------


class ControllerModeGate(Requirement):
    """Holds when the connection is in ``mode`` and ``inner`` holds.

    ``inner`` is never evaluated in any other mode.
    """

    def __init__(self, mode: ControllerMode, inner: Requirement) -> None:
        super().__init__()
        self.mode = mode
        self.inner = inner

    @property
    def children(self) -> Sequence[Requirement]:
        return (self.inner,)

    def _evaluate(self, ctx: ConnectionContext) -> bool:
        if ctx.current_mode() is not self.mode:
            return False
        return self.inner.is_satisfied(ctx)

    def __repr__(self) -> str:
        return f"ControllerModeGate({self.mode.value}, {self.inner!r})"


class AllOf(Requirement):
    """Holds when every child holds; stops at the first that does not.

    An empty ``AllOf`` holds.
    """

    def __init__(self, children: Sequence[Requirement]) -> None:
        super().__init__()
        self._children = tuple(children)

    @property
    def children(self) -> Sequence[Requirement]:
        return self._children

    def _evaluate(self, ctx: ConnectionContext) -> bool:
        return all(child.is_satisfied(ctx) for child in self._children)

    def __repr__(self) -> str:
        return f"AllOf({', '.join(repr(c) for c in self._children)})"


class AnyOf(Requirement):
    """Holds when some child holds; stops at the first that does.

    An empty ``AnyOf`` does not hold.
    """

    def __init__(self, children: Sequence[Requirement]) -> None:
        super().__init__()
        self._children = tuple(children)

    @property
    def children(self) -> Sequence[Requirement]:
        return self._children

    def _evaluate(self, ctx: ConnectionContext) -> bool:
        return any(child.is_satisfied(ctx) for child in self._children)

    def __repr__(self) -> str:
        return f"AnyOf({', '.join(repr(c) for c in self._children)})"
