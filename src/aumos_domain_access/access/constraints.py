"""Access constraint definitions, their registry, and combination.

A constraint definition classifies a resource, attribute or operation so
that the decision point treats it differently from the role's base
permissions. Two kinds are supported:

- :class:`SensitivityClassification`: marks addressing, reading and/or
  writing as sensitive; only roles cleared for sensitive data may proceed.
- :class:`ApplicationTypeClassification`: marks a resource as an
  application (e.g. a deployment) so that Deployers may write it.

Definitions are identified by their key ``(type, core, owner, name)``
rather than by object identity. Subsystems register the definitions they
use with the process-wide :class:`AccessConstraintRegistry`, which hands
back one canonical instance per key.

When several constraints bear on one effect, :func:`resolve_constraints`
combines their verdicts under a :class:`CombinationPolicy`.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Iterable

from aumos_domain_access.access.action import ActionEffect
from aumos_domain_access.access.result import (
    KIND_AMBIGUOUS,
    KIND_CONSTRAINT,
    PERMITTED,
    AuthorizationResult,
)

if TYPE_CHECKING:
    from aumos_domain_access.access.roles import StandardRole
    from aumos_domain_access.access.target import Target

logger = logging.getLogger(__name__)

CORE_OWNER = "core"

ConstraintKey = tuple[str, bool, str, str]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class CombinationPolicy(str, Enum):
    """How verdicts of several constraints on one effect are combined."""

    PERMISSIVE = "permissive"
    REJECTING = "rejecting"


class ConstraintVerdict(str, Enum):
    """A single constraint's opinion on one effect."""

    PERMIT = "permit"
    DENY = "deny"
    NOT_APPLICABLE = "not-applicable"


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class AccessConstraintDefinition(ABC):
    """Abstract base for access constraint definitions.

    Equality and hashing use :attr:`key`, so two independently constructed
    definitions for the same constraint compare equal.

    Attributes
    ----------
    name:
        Constraint name, unique within its type and owner.
    owner:
        ``"core"`` for constraints defined by the management kernel, or the
        name of the subsystem that defines it.
    description:
        Human-readable description.
    """

    type_tag: ClassVar[str] = ""

    name: str
    owner: str = CORE_OWNER
    description: str = ""

    @property
    def core(self) -> bool:
        return self.owner == CORE_OWNER

    @property
    def key(self) -> ConstraintKey:
        """Identity key ``(type, core, owner, name)``."""
        return (self.type_tag, self.core, self.owner, self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AccessConstraintDefinition):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    @abstractmethod
    def applies_to(self, effect: ActionEffect) -> bool:
        """Return True if this constraint bears on ``effect``."""

    @abstractmethod
    def permits(self, roles: frozenset[StandardRole], effect: ActionEffect) -> bool:
        """Return True if any of ``roles`` may perform ``effect`` under this constraint."""

    def verdict(
        self,
        roles: frozenset[StandardRole],
        effect: ActionEffect,
        target: Target | None = None,
    ) -> ConstraintVerdict:
        """Return this constraint's verdict for ``effect``.

        Parameters
        ----------
        roles:
            The caller's roles.
        effect:
            The single effect under evaluation.
        target:
            The authorization target. Unused by the built-in constraints
            but available to subclasses.
        """
        if not self.applies_to(effect):
            return ConstraintVerdict.NOT_APPLICABLE
        if self.permits(roles, effect):
            return ConstraintVerdict.PERMIT
        return ConstraintVerdict.DENY


# ---------------------------------------------------------------------------
# SensitivityClassification
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class SensitivityClassification(AccessConstraintDefinition):
    """Marks access to a class of resources or attributes as sensitive.

    Attributes
    ----------
    requires_addressable:
        Even seeing that the resource exists is sensitive.
    requires_read:
        Reading is sensitive.
    requires_write:
        Writing is sensitive.

    Examples
    --------
    ::

        credential = SensitivityClassification(
            "credential", requires_read=True, requires_write=True
        )
        assert credential.applies_to(ActionEffect.READ_CONFIG)
        assert not credential.applies_to(ActionEffect.ADDRESS)
    """

    type_tag: ClassVar[str] = "sensitive"

    requires_addressable: bool = False
    requires_read: bool = True
    requires_write: bool = True

    def applies_to(self, effect: ActionEffect) -> bool:
        if effect is ActionEffect.ADDRESS:
            return self.requires_addressable
        if effect.is_read:
            return self.requires_read
        return self.requires_write

    def permits(self, roles: frozenset[StandardRole], effect: ActionEffect) -> bool:
        return any(role.permits_sensitive(effect) for role in roles)


# ---------------------------------------------------------------------------
# ApplicationTypeClassification
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class ApplicationTypeClassification(AccessConstraintDefinition):
    """Marks a resource type as application content.

    Only write effects are affected; reads follow the base permissions.

    Attributes
    ----------
    application:
        Whether resources of this type are currently treated as
        applications. A classification with ``application=False`` never
        applies.
    """

    type_tag: ClassVar[str] = "application"

    application: bool = True

    def applies_to(self, effect: ActionEffect) -> bool:
        return self.application and effect.is_write

    def permits(self, roles: frozenset[StandardRole], effect: ActionEffect) -> bool:
        return any(role.permits_application_write(effect) for role in roles)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class AccessConstraintRegistry:
    """Append-only registry of canonical constraint definitions.

    Registering a definition whose key is already known returns the
    existing instance, so later comparisons can rely on identity.
    Registration is thread-safe; lookups take no lock.

    Examples
    --------
    ::

        registry = AccessConstraintRegistry()
        first = registry.register(SensitivityClassification("credential"))
        again = registry.register(SensitivityClassification("credential"))
        assert again is first
    """

    def __init__(self) -> None:
        self._definitions: dict[ConstraintKey, AccessConstraintDefinition] = {}
        self._lock = threading.Lock()

    def register(self, definition: AccessConstraintDefinition) -> AccessConstraintDefinition:
        """Register ``definition`` and return the canonical instance for its key."""
        existing = self._definitions.get(definition.key)
        if existing is not None:
            return existing
        with self._lock:
            canonical = self._definitions.setdefault(definition.key, definition)
        if canonical is definition:
            logger.debug("Registered access constraint %s", definition.key)
        return canonical

    def register_all(
        self, definitions: Iterable[AccessConstraintDefinition]
    ) -> list[AccessConstraintDefinition]:
        """Register several definitions, returning their canonical instances in order."""
        return [self.register(d) for d in definitions]

    def get(self, key: ConstraintKey) -> AccessConstraintDefinition | None:
        return self._definitions.get(key)

    def find(self, name: str) -> list[AccessConstraintDefinition]:
        """Return every registered definition called ``name``, in registration order."""
        return [d for d in self.definitions() if d.name == name]

    def definitions(self) -> list[AccessConstraintDefinition]:
        return list(self._definitions.values())

    def __contains__(self, definition: object) -> bool:
        if not isinstance(definition, AccessConstraintDefinition):
            return False
        return definition.key in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


_DEFAULT_REGISTRY = AccessConstraintRegistry()


def default_registry() -> AccessConstraintRegistry:
    """Return the process-wide constraint registry."""
    return _DEFAULT_REGISTRY


# ---------------------------------------------------------------------------
# Combination
# ---------------------------------------------------------------------------


def resolve_constraints(
    constraints: Iterable[AccessConstraintDefinition],
    effect: ActionEffect,
    roles: frozenset[StandardRole],
    target: Target | None,
    policy: CombinationPolicy,
    fallback: AuthorizationResult = PERMITTED,
) -> AuthorizationResult:
    """Combine constraint verdicts for one effect.

    Parameters
    ----------
    constraints:
        Constraints attached to the target (duplicates by key are ignored).
    effect:
        The effect under evaluation.
    roles:
        The caller's roles.
    target:
        The authorization target, passed through to each verdict.
    policy:
        ``PERMISSIVE``: the first PERMIT wins and later constraints are not
        consulted; otherwise any DENY denies. ``REJECTING``: more than one
        applicable constraint is an ambiguity and denies outright.
    fallback:
        Result used when no constraint bears on ``effect``.

    Returns
    -------
    AuthorizationResult
    """
    unique = list(dict.fromkeys(constraints))

    if policy is CombinationPolicy.REJECTING:
        applicable = [c for c in unique if c.applies_to(effect)]
        if len(applicable) > 1:
            logger.warning(
                "Ambiguous access constraints for effect %s: %s",
                effect.value,
                [c.name for c in applicable],
            )
            return AuthorizationResult.deny(effect, kind=KIND_AMBIGUOUS)
        if not applicable:
            return fallback
        only = applicable[0]
        if only.verdict(roles, effect, target) is ConstraintVerdict.PERMIT:
            return PERMITTED
        return AuthorizationResult.deny(effect, kind=KIND_CONSTRAINT, constraint=only.name)

    denied_by: AccessConstraintDefinition | None = None
    for constraint in unique:
        verdict = constraint.verdict(roles, effect, target)
        if verdict is ConstraintVerdict.PERMIT:
            return PERMITTED
        if verdict is ConstraintVerdict.DENY and denied_by is None:
            denied_by = constraint
    if denied_by is not None:
        return AuthorizationResult.deny(effect, kind=KIND_CONSTRAINT, constraint=denied_by.name)
    return fallback
