"""Connection context for client-side requirement evaluation.

A :class:`ConnectionContext` wraps the two remote collaborators a
requirement tree needs, an :class:`Oracle` that answers "may I execute
this operation here" and a :class:`NodeEnumerator` that lists child
resource names, together with the current controller mode.

It also owns all evaluation state of the requirement trees evaluated
against it. State lives in a side table keyed by node id, so one tree can
be shared by several connections without their memoized results mixing.
A disconnect advances the connection's epoch, notifies subscribers and
drops the whole table.

Remote failures never escape: :meth:`ConnectionContext.query_executable`
and :meth:`ConnectionContext.list_children` log the problem and answer
"denied" / "no children".
"""
from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Callable, Protocol, TypeVar, runtime_checkable

from aumos_domain_access.access.address import Address

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")


class ControllerMode(str, Enum):
    """Topology of the process the client is connected to."""

    STANDALONE = "standalone"
    DOMAIN = "domain"


class RemoteQueryError(Exception):
    """Raised by collaborators when a remote query cannot be answered.

    Attributes
    ----------
    address:
        The address the query was about, if known.
    """

    def __init__(self, message: str, address: Address | None = None) -> None:
        self.address = address
        super().__init__(message)


# ---------------------------------------------------------------------------
# Collaborator protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Oracle(Protocol):
    """Answers whether the connected identity may execute an operation.

    ``scope_prefix`` places the query under a domain location (for example
    ``/host=master/server=one``) and ``address`` is relative to it.
    """

    def is_executable(self, scope_prefix: Address, address: Address, operation: str) -> bool:
        ...


@runtime_checkable
class NodeEnumerator(Protocol):
    """Lists the names of the children of one type under a parent address."""

    def list_child_names(self, parent: Address, node_type: str) -> list[str]:
        ...


# ---------------------------------------------------------------------------
# ConnectionContext
# ---------------------------------------------------------------------------


class ConnectionContext:
    """One client connection to a management endpoint.

    Parameters
    ----------
    oracle:
        Remote executability check.
    enumerator:
        Remote child-name listing.
    mode:
        Current controller mode.
    connection_id:
        Identifier of this connection. A random UUID when omitted.
    """

    def __init__(
        self,
        oracle: Oracle,
        enumerator: NodeEnumerator,
        mode: ControllerMode = ControllerMode.STANDALONE,
        connection_id: str | None = None,
    ) -> None:
        self._oracle = oracle
        self._enumerator = enumerator
        self._mode = mode
        self._connection_id: str = connection_id or str(uuid.uuid4())
        self._epoch = 0
        self._listeners: list[Callable[[], None]] = []
        self._states: dict[int, object] = {}
        self._round_trips = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def current_mode(self) -> ControllerMode:
        return self._mode

    def subscribe(self, listener: Callable[[], None]) -> None:
        """Call ``listener`` every time the connection is lost."""
        self._listeners.append(listener)

    def disconnected(self, new_mode: ControllerMode | None = None) -> None:
        """Mark the connection as lost and reset all evaluation state.

        Parameters
        ----------
        new_mode:
            Controller mode to assume for the next connection, if known.
        """
        self._epoch += 1
        logger.debug(
            "Connection %s disconnected; epoch now %d", self._connection_id, self._epoch
        )
        for listener in list(self._listeners):
            listener()
        self._states.clear()
        if new_mode is not None:
            self._mode = new_mode

    # ------------------------------------------------------------------
    # Evaluation state side table
    # ------------------------------------------------------------------

    def state_for(self, node_id: int, factory: Callable[[], StateT]) -> StateT:
        """Return this connection's state for a node, creating it on first use."""
        state = self._states.get(node_id)
        if state is None:
            state = factory()
            self._states[node_id] = state
        return state  # type: ignore[return-value]

    def discard_state(self, node_id: int) -> None:
        self._states.pop(node_id, None)

    # ------------------------------------------------------------------
    # Remote queries (fail closed)
    # ------------------------------------------------------------------

    def query_executable(self, scope_prefix: Address, address: Address, operation: str) -> bool:
        """Ask the oracle; any failure or malformed answer counts as denied."""
        self._round_trips += 1
        try:
            answer = self._oracle.is_executable(scope_prefix, address, operation)
        except Exception as exc:
            logger.warning(
                "Executability check for %s%s:%s failed; treating as denied: %s",
                scope_prefix if not scope_prefix.is_root else "",
                address,
                operation,
                exc,
            )
            return False
        if not isinstance(answer, bool):
            logger.warning(
                "Malformed executability answer %r for %s:%s; treating as denied",
                answer,
                address,
                operation,
            )
            return False
        return answer

    def list_children(self, parent: Address, node_type: str) -> list[str]:
        """List child names; any failure or malformed answer yields no children."""
        self._round_trips += 1
        try:
            names = self._enumerator.list_child_names(parent, node_type)
        except Exception as exc:
            logger.warning(
                "Listing %s children of %s failed; treating as none: %s",
                node_type,
                parent,
                exc,
            )
            return []
        if not isinstance(names, (list, tuple)) or not all(isinstance(n, str) for n in names):
            logger.warning(
                "Malformed child listing %r for %s under %s; treating as none",
                names,
                node_type,
                parent,
            )
            return []
        return list(names)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def connection_id(self) -> str:
        return self._connection_id

    @property
    def epoch(self) -> int:
        """Generation of evaluation state; advanced by every disconnect."""
        return self._epoch

    @property
    def round_trips(self) -> int:
        """Total number of remote queries issued through this context."""
        return self._round_trips

    @property
    def listener_count(self) -> int:
        """Number of disconnect listeners currently subscribed."""
        return len(self._listeners)
