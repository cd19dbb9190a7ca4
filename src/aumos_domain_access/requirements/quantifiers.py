"""Quantifiers over dynamically enumerated resource instances.

:class:`PerNodeQuantifier` holds when an operation is executable on at
least one instance of a node type (for example some server group).
:class:`TwoLevelQuantifier` does the same over a two-level hierarchy,
some server on some host.

Both stop at the first instance that answers true, and remember exactly
how far they got. A later request for the full list of allowed instances
resumes the scan where it stopped, so no instance is ever queried twice
within one connection epoch.

Example
-------
::

    groups = PerNodeQuantifier("server-group", "deploy")
    if groups.is_satisfied(ctx):
        offer_deploy(groups.get_allowed(ctx))
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from aumos_domain_access.access.address import Address
from aumos_domain_access.requirements.connection import ConnectionContext
from aumos_domain_access.requirements.tree import EvaluationState, Requirement

logger = logging.getLogger(__name__)


class TriState(Enum):
    """Outcome of checking one instance."""

    UNKNOWN = "unknown"
    TRUE = "true"
    FALSE = "false"


class ScanState(str, Enum):
    """How far a quantifier's enumeration has progressed."""

    NOT_ENUMERATED = "not-enumerated"
    PARTIALLY_SCANNED = "partially-scanned"
    FULLY_SCANNED = "fully-scanned"


# ---------------------------------------------------------------------------
# NodeScan
# ---------------------------------------------------------------------------


class NodeScan:
    """Resumable scan over a fixed list of instance names.

    Attributes
    ----------
    names:
        Instance names in enumeration order.
    checked:
        One :class:`TriState` per name; ``UNKNOWN`` until probed.
    cursor:
        Index of the next name to probe. Every name before it has been
        probed exactly once.
    """

    def __init__(self, names: list[str]) -> None:
        self.names: list[str] = list(names)
        self.checked: list[TriState] = [TriState.UNKNOWN] * len(self.names)
        self.cursor = 0

    @property
    def exhausted(self) -> bool:
        return self.cursor >= len(self.names)

    def advance_until_true(self, probe: Callable[[str], bool]) -> bool:
        """Probe from the cursor until some name answers true.

        Returns True if any name, probed now or earlier, answered true.
        """
        if TriState.TRUE in self.checked[: self.cursor]:
            return True
        while not self.exhausted:
            if self._probe_next(probe):
                return True
        return False

    def complete(self, probe: Callable[[str], bool]) -> None:
        """Probe every name not yet probed, resuming at the cursor."""
        while not self.exhausted:
            self._probe_next(probe)

    def allowed(self) -> list[str]:
        """Return the names that answered true, in enumeration order."""
        return [
            name for name, state in zip(self.names, self.checked) if state is TriState.TRUE
        ]

    def _probe_next(self, probe: Callable[[str], bool]) -> bool:
        index = self.cursor
        result = probe(self.names[index])
        self.checked[index] = TriState.TRUE if result else TriState.FALSE
        self.cursor = index + 1
        return result

    def __repr__(self) -> str:
        return f"NodeScan({self.cursor}/{len(self.names)}, allowed={self.allowed()})"


# ---------------------------------------------------------------------------
# PerNodeQuantifier
# ---------------------------------------------------------------------------


@dataclass
class _PerNodeState(EvaluationState):
    scan: NodeScan | None = None
    allowed_ready: bool = False
    allowed: list[str] = field(default_factory=list)


class PerNodeQuantifier(Requirement):
    """Holds when ``operation`` is executable under some ``node_type`` instance.

    Parameters
    ----------
    node_type:
        Type of the enumerated instances, e.g. ``"server-group"``.
    operation:
        Operation name to check.
    address:
        Address of the operation relative to each instance.
    parent:
        Address under which instances are enumerated.
    """

    def __init__(
        self,
        node_type: str,
        operation: str,
        address: Address = Address.ROOT,
        parent: Address = Address.ROOT,
    ) -> None:
        super().__init__()
        self.node_type = node_type
        self.operation = operation
        self.address = address
        self.parent = parent

    def get_allowed(self, ctx: ConnectionContext) -> list[str]:
        """Return every instance on which the operation is executable.

        Resumes the scan left by :meth:`is_satisfied`; repeated calls in
        the same epoch issue no remote queries.
        """
        state: _PerNodeState = self._state(ctx)  # type: ignore[assignment]
        if state.allowed_ready:
            return list(state.allowed)
        scan = self._ensure_scan(ctx, state)
        scan.complete(self._probe(ctx))
        state.allowed = scan.allowed()
        state.allowed_ready = True
        if not state.computed:
            state.computed = True
            state.value = bool(state.allowed)
            state.epoch = ctx.epoch
        return list(state.allowed)

    def scan_state(self, ctx: ConnectionContext) -> ScanState:
        state: _PerNodeState = self._state(ctx)  # type: ignore[assignment]
        if state.scan is None:
            return ScanState.NOT_ENUMERATED
        if state.scan.exhausted:
            return ScanState.FULLY_SCANNED
        return ScanState.PARTIALLY_SCANNED

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _new_state(self) -> EvaluationState:
        return _PerNodeState()

    def _evaluate(self, ctx: ConnectionContext) -> bool:
        state: _PerNodeState = self._state(ctx)  # type: ignore[assignment]
        scan = self._ensure_scan(ctx, state)
        return scan.advance_until_true(self._probe(ctx))

    def _ensure_scan(self, ctx: ConnectionContext, state: _PerNodeState) -> NodeScan:
        if state.scan is None:
            names = ctx.list_children(self.parent, self.node_type)
            logger.debug("Enumerated %d %s instance(s) for %r", len(names), self.node_type, self)
            state.scan = NodeScan(names)
        return state.scan

    def _probe(self, ctx: ConnectionContext) -> Callable[[str], bool]:
        def probe(name: str) -> bool:
            scope = self.parent.append(self.node_type, name)
            return ctx.query_executable(scope, self.address, self.operation)

        return probe

    def __repr__(self) -> str:
        return f"PerNodeQuantifier({self.node_type}=*{self.address}:{self.operation})"


# ---------------------------------------------------------------------------
# TwoLevelQuantifier
# ---------------------------------------------------------------------------


@dataclass
class _TwoLevelState(EvaluationState):
    outer: list[str] | None = None
    outer_cursor: int = 0
    inner_scans: dict[str, NodeScan] = field(default_factory=dict)
    deferred: list[str] = field(default_factory=list)
    allowed_outer_ready: bool = False
    allowed_outer: list[str] = field(default_factory=list)


class TwoLevelQuantifier(Requirement):
    """Holds when ``operation`` is executable on some inner instance of some outer one.

    By default the outer level is ``host`` and the inner level ``server``.
    On early exit the outer instances not yet visited are recorded as
    deferred; :meth:`get_allowed_outer` and :meth:`get_allowed_inner`
    complete their inner scans on demand.

    Parameters
    ----------
    operation:
        Operation name to check.
    address:
        Address of the operation relative to each inner instance.
    outer_type, inner_type:
        Node types of the two levels.
    """

    def __init__(
        self,
        operation: str,
        address: Address = Address.ROOT,
        outer_type: str = "host",
        inner_type: str = "server",
    ) -> None:
        super().__init__()
        self.operation = operation
        self.address = address
        self.outer_type = outer_type
        self.inner_type = inner_type

    def get_allowed_outer(self, ctx: ConnectionContext) -> list[str]:
        """Return the outer instances having at least one allowed inner instance."""
        state: _TwoLevelState = self._state(ctx)  # type: ignore[assignment]
        if state.allowed_outer_ready:
            return list(state.allowed_outer)
        outer = self._ensure_outer(ctx, state)
        state.allowed_outer = [
            name for name in outer if self._complete_inner(ctx, state, name)
        ]
        state.outer_cursor = len(outer)
        state.deferred = []
        state.allowed_outer_ready = True
        if not state.computed:
            state.computed = True
            state.value = bool(state.allowed_outer)
            state.epoch = ctx.epoch
        return list(state.allowed_outer)

    def get_allowed_inner(self, ctx: ConnectionContext, outer: str) -> list[str]:
        """Return the allowed inner instances of one outer instance.

        Only that outer instance's scan is completed. Unknown outer names
        yield an empty list.
        """
        state: _TwoLevelState = self._state(ctx)  # type: ignore[assignment]
        if outer not in self._ensure_outer(ctx, state):
            return []
        self._complete_inner(ctx, state, outer)
        return state.inner_scans[outer].allowed()

    def deferred_outer(self, ctx: ConnectionContext) -> list[str]:
        """Outer instances left unvisited by the last early exit."""
        state: _TwoLevelState = self._state(ctx)  # type: ignore[assignment]
        return [name for name in state.deferred if name not in state.inner_scans]

    def scan_state(self, ctx: ConnectionContext) -> ScanState:
        state: _TwoLevelState = self._state(ctx)  # type: ignore[assignment]
        if state.outer is None:
            return ScanState.NOT_ENUMERATED
        complete = all(
            name in state.inner_scans and state.inner_scans[name].exhausted
            for name in state.outer
        )
        return ScanState.FULLY_SCANNED if complete else ScanState.PARTIALLY_SCANNED

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _new_state(self) -> EvaluationState:
        return _TwoLevelState()

    def _evaluate(self, ctx: ConnectionContext) -> bool:
        state: _TwoLevelState = self._state(ctx)  # type: ignore[assignment]
        outer = self._ensure_outer(ctx, state)
        while state.outer_cursor < len(outer):
            name = outer[state.outer_cursor]
            state.outer_cursor += 1
            scan = self._ensure_inner(ctx, state, name)
            if scan.advance_until_true(self._probe(ctx, name)):
                state.deferred = outer[state.outer_cursor :]
                if state.deferred:
                    logger.debug(
                        "%r satisfied at %s=%s; deferring %s", self, self.outer_type, name, state.deferred
                    )
                return True
        state.deferred = []
        return False

    def _ensure_outer(self, ctx: ConnectionContext, state: _TwoLevelState) -> list[str]:
        if state.outer is None:
            state.outer = ctx.list_children(Address.ROOT, self.outer_type)
        return state.outer

    def _ensure_inner(self, ctx: ConnectionContext, state: _TwoLevelState, outer: str) -> NodeScan:
        scan = state.inner_scans.get(outer)
        if scan is None:
            parent = Address.of((self.outer_type, outer))
            scan = NodeScan(ctx.list_children(parent, self.inner_type))
            state.inner_scans[outer] = scan
        return scan

    def _complete_inner(self, ctx: ConnectionContext, state: _TwoLevelState, outer: str) -> bool:
        scan = self._ensure_inner(ctx, state, outer)
        scan.complete(self._probe(ctx, outer))
        return bool(scan.allowed())

    def _probe(self, ctx: ConnectionContext, outer: str) -> Callable[[str], bool]:
        def probe(inner: str) -> bool:
            scope = Address.of((self.outer_type, outer), (self.inner_type, inner))
            return ctx.query_executable(scope, self.address, self.operation)

        return probe

    def __repr__(self) -> str:
        return (
            f"TwoLevelQuantifier({self.outer_type}=*/{self.inner_type}=*"
            f"{self.address}:{self.operation})"
        )
