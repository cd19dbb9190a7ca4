"""Management actions and the effects they have on a resource.

Every management operation is classified into a set of :class:`ActionEffect`
values before authorization. The effect set is derived from the operation's
metadata flags and is never chosen by the caller:

=====================  ==========  ===========================================
runtime-only           read-only   effects
=====================  ==========  ===========================================
yes                    no          ADDRESS, READ_RUNTIME, WRITE_RUNTIME
yes                    yes         ADDRESS, READ_RUNTIME
no                     yes         ADDRESS, READ_CONFIG, READ_RUNTIME
no                     no          all five effects
=====================  ==========  ===========================================

An :class:`Action` with no operation metadata carries no effects. Such
actions are only used to probe address visibility.

Example
-------
::

    entry = OperationEntry("read-resource", read_only=True)
    action = Action.for_operation(Address.of(("subsystem", "logging")), entry)
    assert action.effects == frozenset(
        {ActionEffect.ADDRESS, ActionEffect.READ_CONFIG, ActionEffect.READ_RUNTIME}
    )
    read_only = action.limit_action(ActionEffect.READ_CONFIG)
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

from aumos_domain_access.access.address import Address

# ---------------------------------------------------------------------------
# ActionEffect
# ---------------------------------------------------------------------------


class ActionEffect(str, Enum):
    """The kinds of impact an action can have on a management resource."""

    ADDRESS = "address"
    READ_CONFIG = "read-config"
    READ_RUNTIME = "read-runtime"
    WRITE_CONFIG = "write-config"
    WRITE_RUNTIME = "write-runtime"

    @property
    def is_read(self) -> bool:
        return self in (ActionEffect.READ_CONFIG, ActionEffect.READ_RUNTIME)

    @property
    def is_write(self) -> bool:
        return self in (ActionEffect.WRITE_CONFIG, ActionEffect.WRITE_RUNTIME)


ALL_EFFECTS: frozenset[ActionEffect] = frozenset(ActionEffect)

READ_WRITE_EFFECTS: tuple[ActionEffect, ...] = (
    ActionEffect.READ_CONFIG,
    ActionEffect.READ_RUNTIME,
    ActionEffect.WRITE_CONFIG,
    ActionEffect.WRITE_RUNTIME,
)

# Authorization walks effects in this order so ADDRESS is always decided first.
EFFECT_ORDER: tuple[ActionEffect, ...] = (ActionEffect.ADDRESS,) + READ_WRITE_EFFECTS


# ---------------------------------------------------------------------------
# OperationEntry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OperationEntry:
    """Registration metadata describing a management operation.

    Attributes
    ----------
    name:
        Operation name (e.g. ``"read-resource"``, ``"reload"``).
    read_only:
        The operation never modifies the model or the runtime.
    runtime_only:
        The operation only touches runtime state, never persistent
        configuration.
    access_constraints:
        Constraint definitions attached to the operation itself, applied in
        addition to the target resource's constraints.
    """

    name: str
    read_only: bool = False
    runtime_only: bool = False
    access_constraints: tuple[object, ...] = ()


def classify_effects(entry: OperationEntry | None) -> frozenset[ActionEffect]:
    """Return the effect set implied by an operation's metadata flags.

    Parameters
    ----------
    entry:
        Operation metadata, or ``None`` for an unknown operation.

    Returns
    -------
    frozenset[ActionEffect]
        Empty when ``entry`` is ``None``.
    """
    if entry is None:
        return frozenset()
    if entry.runtime_only:
        if entry.read_only:
            return frozenset({ActionEffect.ADDRESS, ActionEffect.READ_RUNTIME})
        return frozenset(
            {ActionEffect.ADDRESS, ActionEffect.READ_RUNTIME, ActionEffect.WRITE_RUNTIME}
        )
    if entry.read_only:
        return frozenset(
            {ActionEffect.ADDRESS, ActionEffect.READ_CONFIG, ActionEffect.READ_RUNTIME}
        )
    return ALL_EFFECTS


def ordered(effects: frozenset[ActionEffect]) -> list[ActionEffect]:
    """Return ``effects`` in authorization order (ADDRESS first)."""
    return [effect for effect in EFFECT_ORDER if effect in effects]


# ---------------------------------------------------------------------------
# Action
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Action:
    """A classified management operation, ready for authorization.

    Build instances with :meth:`for_operation` or :meth:`unknown`; the
    effect set is always derived from ``operation_entry``.

    Attributes
    ----------
    operation_name:
        Name of the requested operation.
    address:
        Address of the resource the operation targets.
    operation_entry:
        The operation's metadata, or ``None`` for an unknown operation.
    effects:
        Derived effect set.
    """

    operation_name: str
    address: Address
    operation_entry: OperationEntry | None = None
    effects: frozenset[ActionEffect] = field(default=frozenset())

    @classmethod
    def for_operation(cls, address: Address, entry: OperationEntry) -> Action:
        """Classify ``entry`` applied at ``address``."""
        return cls(
            operation_name=entry.name,
            address=address,
            operation_entry=entry,
            effects=classify_effects(entry),
        )

    @classmethod
    def unknown(cls, address: Address, operation_name: str = "") -> Action:
        """Return an action with no metadata and therefore no effects."""
        return cls(operation_name=operation_name, address=address)

    def limit_action(self, effect: ActionEffect) -> Action:
        """Return a copy of this action restricted to a single ``effect``.

        The narrowed action always carries exactly ``{effect}``, even when
        the effect is not part of the original set; this lets callers probe
        ADDRESS on an action whose metadata is unknown.
        """
        return replace(self, effects=frozenset({effect}))

    def has_effect(self, effect: ActionEffect) -> bool:
        return effect in self.effects

    @property
    def ordered_effects(self) -> list[ActionEffect]:
        return ordered(self.effects)

    @property
    def operation_constraints(self) -> tuple[object, ...]:
        if self.operation_entry is None:
            return ()
        return self.operation_entry.access_constraints
