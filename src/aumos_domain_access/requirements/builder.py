"""Fluent construction of requirement trees.

A session starts with :meth:`RequirementBuilder.create`, which picks the
root shape exactly once: :meth:`~RequirementBuilder.all`,
:meth:`~RequirementBuilder.any`, :meth:`~RequirementBuilder.standalone`
or :meth:`~RequirementBuilder.domain`. Each returns a
:class:`CompositeBuilder` on which leaves are added and further
composites nested; :meth:`CompositeBuilder.parent` closes a nested
composite and returns to the enclosing one.

Example
-------
::

    reload = (
        RequirementBuilder.create(ctx)
        .any()
        .operation("reload")
        .host_operation("reload")
        .build()
    )
"""
from __future__ import annotations

import logging
from enum import Enum
from functools import partial

from aumos_domain_access.access.address import Address
from aumos_domain_access.requirements.connection import ConnectionContext, ControllerMode
from aumos_domain_access.requirements.quantifiers import PerNodeQuantifier, TwoLevelQuantifier
from aumos_domain_access.requirements.tree import (
    AllOf,
    AnyOf,
    ControllerModeGate,
    Requirement,
    SingleOperation,
)

logger = logging.getLogger(__name__)


class BuilderStateError(RuntimeError):
    """Raised when a builder is used out of order."""


class _Shape(str, Enum):
    ALL = "all"
    ANY = "any"


# ---------------------------------------------------------------------------
# Session root
# ---------------------------------------------------------------------------


class RequirementBuilder:
    """One building session bound to a connection.

    Use :meth:`create`; the constructor is not part of the public API.
    """

    def __init__(self, ctx: ConnectionContext) -> None:
        self._ctx = ctx
        self._root: CompositeBuilder | None = None
        self._built: Requirement | None = None

    @classmethod
    def create(cls, ctx: ConnectionContext) -> RequirementBuilder:
        return cls(ctx)

    def all(self) -> CompositeBuilder:
        """Start a tree whose root holds when every child holds."""
        return self._start(_Shape.ALL, None)

    def any(self) -> CompositeBuilder:
        """Start a tree whose root holds when some child holds."""
        return self._start(_Shape.ANY, None)

    def standalone(self) -> CompositeBuilder:
        """Start a tree that only holds on a standalone server."""
        return self._start(_Shape.ALL, ControllerMode.STANDALONE)

    def domain(self) -> CompositeBuilder:
        """Start a tree that only holds on a domain controller."""
        return self._start(_Shape.ALL, ControllerMode.DOMAIN)

    @property
    def is_built(self) -> bool:
        return self._built is not None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _start(self, shape: _Shape, mode: ControllerMode | None) -> CompositeBuilder:
        self._check_not_built()
        if self._root is not None:
            raise BuilderStateError(
                "The root of this requirement tree has already been chosen."
            )
        self._root = CompositeBuilder(self, None, shape, mode)
        return self._root

    def _check_not_built(self) -> None:
        if self._built is not None:
            raise BuilderStateError("This requirement tree has already been built.")

    def _finish(self, root: Requirement) -> Requirement:
        # The root resets its whole subtree.
        self._ctx.subscribe(partial(root.on_disconnected, self._ctx))
        self._built = root
        logger.debug("Built requirement %r", root)
        return root


# ---------------------------------------------------------------------------
# Composite builder
# ---------------------------------------------------------------------------


class CompositeBuilder:
    """Collects the children of one composite node."""

    def __init__(
        self,
        session: RequirementBuilder,
        parent: CompositeBuilder | None,
        shape: _Shape,
        mode: ControllerMode | None,
    ) -> None:
        self._session = session
        self._parent = parent
        self._shape = shape
        self._mode = mode
        self._children: list[Requirement] = []
        self._open_child: CompositeBuilder | None = None
        self._closed = False

    # ------------------------------------------------------------------
    # Nesting
    # ------------------------------------------------------------------

    def all(self) -> CompositeBuilder:
        return self._nest(_Shape.ALL, None)

    def any(self) -> CompositeBuilder:
        return self._nest(_Shape.ANY, None)

    def standalone(self) -> CompositeBuilder:
        return self._nest(_Shape.ALL, ControllerMode.STANDALONE)

    def domain(self) -> CompositeBuilder:
        return self._nest(_Shape.ALL, ControllerMode.DOMAIN)

    def parent(self) -> CompositeBuilder:
        """Close this composite and return the enclosing one.

        Raises
        ------
        BuilderStateError
            On the root composite, while a nested composite is still open,
            or after the tree has been built.
        """
        self._check_open()
        if self._parent is None:
            raise BuilderStateError("The root of a requirement tree has no parent.")
        self._parent._children.append(self._node())
        self._parent._open_child = None
        self._closed = True
        return self._parent

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def operation(self, name: str, address: Address = Address.ROOT) -> CompositeBuilder:
        """Require ``name`` to be executable at ``address``."""
        return self._add(SingleOperation(name, address))

    def requirement(self, node: Requirement) -> CompositeBuilder:
        """Add an already built requirement as a child."""
        if node is None:
            raise ValueError("requirement() needs a Requirement, got None.")
        return self._add(node)

    def per_node_operation(
        self, node_type: str, name: str, address: Address = Address.ROOT
    ) -> CompositeBuilder:
        """Require ``name`` to be executable under some ``node_type`` instance."""
        return self._add(PerNodeQuantifier(node_type, name, address))

    def host_operation(self, name: str, address: Address = Address.ROOT) -> CompositeBuilder:
        return self.per_node_operation("host", name, address)

    def server_group_operation(
        self, name: str, address: Address = Address.ROOT
    ) -> CompositeBuilder:
        """Require ``name`` on some server group; only in domain mode."""
        return self._add(
            ControllerModeGate(
                ControllerMode.DOMAIN, PerNodeQuantifier("server-group", name, address)
            )
        )

    def host_server_operation(
        self, name: str, address: Address = Address.ROOT
    ) -> CompositeBuilder:
        """Require ``name`` on some server of some host; only in domain mode."""
        return self._add(
            ControllerModeGate(ControllerMode.DOMAIN, TwoLevelQuantifier(name, address))
        )

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    def build(self) -> Requirement:
        """Close every open composite in the tree and return the root node.

        Open composites nested below this one are closed too, deepest first.
        """
        self._session._check_not_built()
        if self._closed:
            raise BuilderStateError("This composite has already been closed.")
        builder = self
        while builder._open_child is not None:
            builder = builder._open_child
        while builder._parent is not None:
            builder = builder.parent()
        builder._closed = True
        return self._session._finish(builder._node())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _nest(self, shape: _Shape, mode: ControllerMode | None) -> CompositeBuilder:
        self._check_open()
        self._open_child = CompositeBuilder(self._session, self, shape, mode)
        return self._open_child

    def _add(self, node: Requirement) -> CompositeBuilder:
        self._check_open()
        self._children.append(node)
        return self

    def _node(self) -> Requirement:
        composite: Requirement = (
            AllOf(self._children) if self._shape is _Shape.ALL else AnyOf(self._children)
        )
        if self._mode is not None:
            return ControllerModeGate(self._mode, composite)
        return composite

    def _check_open(self) -> None:
        self._session._check_not_built()
        if self._closed:
            raise BuilderStateError("This composite has already been closed.")
        if self._open_child is not None:
            raise BuilderStateError(
                "A nested composite is still open; call parent() on it first."
            )
