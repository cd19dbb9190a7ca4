"""Authorization results and the failures raised from them.

An :class:`AuthorizationResult` is the immutable outcome of one decision:
``PERMIT`` or ``DENY`` plus an optional structured :class:`Explanation`.
Explanations name the effect and the constraint that decided the outcome
and never contain resource data, so they are safe to return to callers.

Two failure types are derived from a denial:

- :class:`UnauthorizedError`: the caller may see the resource but may not
  perform the operation.
- :class:`ResourceNotFoundError`: the caller may not even address the
  resource. It is deliberately indistinguishable from a lookup of a
  resource that does not exist.

Example
-------
>>> result = AuthorizationResult.deny(ActionEffect.WRITE_CONFIG, kind="role")
>>> result.is_permitted
False
>>> PERMITTED.is_permitted
True
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from aumos_domain_access.access.action import ActionEffect

if TYPE_CHECKING:
    from aumos_domain_access.access.action import Action
    from aumos_domain_access.access.address import Address


class Decision(str, Enum):
    """Outcome of an authorization decision."""

    PERMIT = "permit"
    DENY = "deny"


# Explanation kinds
KIND_ROLE = "role"
KIND_CONSTRAINT = "constraint"
KIND_SCOPE = "scope"
KIND_NO_ROLES = "no-roles"
KIND_AMBIGUOUS = "ambiguous-constraints"


@dataclass(frozen=True)
class Explanation:
    """Structured reason attached to a denial.

    Attributes
    ----------
    kind:
        What decided the outcome: ``"role"``, ``"constraint"``, ``"scope"``,
        ``"no-roles"`` or ``"ambiguous-constraints"``.
    effect:
        The effect that was denied, if the denial is effect-specific.
    constraint:
        Name of the constraint that decided, if any.
    """

    kind: str
    effect: ActionEffect | None = None
    constraint: str | None = None

    @property
    def is_internal_error(self) -> bool:
        """True when the denial stems from a configuration problem."""
        return self.kind == KIND_AMBIGUOUS

    def __str__(self) -> str:
        parts = [self.kind]
        if self.effect is not None:
            parts.append(f"effect={self.effect.value}")
        if self.constraint is not None:
            parts.append(f"constraint={self.constraint}")
        return " ".join(parts)


@dataclass(frozen=True)
class AuthorizationResult:
    """Immutable result of an authorization decision."""

    decision: Decision
    explanation: Explanation | None = None

    @classmethod
    def deny(
        cls,
        effect: ActionEffect | None = None,
        kind: str = KIND_ROLE,
        constraint: str | None = None,
    ) -> AuthorizationResult:
        """Build a DENY result with a structured explanation."""
        return cls(Decision.DENY, Explanation(kind=kind, effect=effect, constraint=constraint))

    @property
    def is_permitted(self) -> bool:
        return self.decision is Decision.PERMIT

    @property
    def is_denied(self) -> bool:
        return self.decision is Decision.DENY

    def __bool__(self) -> bool:
        """Return True if the decision is PERMIT."""
        return self.is_permitted

    def fail_if_denied(self, action: Action) -> None:
        """Raise when this result is a denial; see :func:`fail_if_denied`."""
        fail_if_denied(self, action)


PERMITTED: AuthorizationResult = AuthorizationResult(Decision.PERMIT)


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class UnauthorizedError(PermissionError):
    """Raised when a caller may not perform an operation on a visible resource.

    Attributes
    ----------
    operation_name:
        The operation that was denied.
    address:
        The targeted resource address.
    explanation:
        Structured explanation from the denial, if any.
    """

    def __init__(
        self,
        operation_name: str,
        address: Address,
        explanation: Explanation | None = None,
    ) -> None:
        self.operation_name = operation_name
        self.address = address
        self.explanation = explanation
        detail = f" ({explanation})" if explanation is not None else ""
        super().__init__(
            f"Operation '{operation_name}' at '{address}' is not authorized{detail}"
        )


class ResourceNotFoundError(LookupError):
    """Raised when a resource does not exist or may not be addressed.

    The two situations produce the same message and attributes.

    Attributes
    ----------
    address:
        The address that could not be resolved.
    """

    def __init__(self, address: Address) -> None:
        self.address = address
        super().__init__(f"Management resource '{address}' not found")


def fail_if_denied(result: AuthorizationResult, action: Action) -> None:
    """Raise if ``result`` is a denial.

    A PERMIT result is a no-op.

    Raises
    ------
    ResourceNotFoundError
        When the ADDRESS effect was denied, exactly as
        :func:`raise_for_address` would.
    UnauthorizedError
        For any other denial, carrying the action's operation name,
        address and the explanation.
    """
    if not result.is_denied:
        return
    if result.explanation is not None and result.explanation.effect is ActionEffect.ADDRESS:
        raise_for_address(result, action)
    raise UnauthorizedError(action.operation_name, action.address, result.explanation)


def raise_for_address(result: AuthorizationResult, action: Action) -> None:
    """Raise :class:`ResourceNotFoundError` if an ADDRESS check was denied."""
    if result.is_denied:
        raise ResourceNotFoundError(action.address)
