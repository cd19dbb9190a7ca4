"""Server-side authorization decision point.

The :class:`Authorizer` protocol is the single entry point the management
kernel uses to decide whether a caller may perform an action on a target.
:class:`RoleBasedAuthorizer` implements it on top of the standard roles and
the constraint definitions attached to each target.

Decision procedure for one action
---------------------------------
1. A caller with no roles is denied.
2. During boot every action is permitted.
3. Effects are evaluated in order (ADDRESS first). For each effect:

   a. host / server-group scoping of the caller is checked against the
      target's domain effects;
   b. the role's base permission becomes the fallback;
   c. the target's constraints are combined under the configured
      :class:`CombinationPolicy`.

   The first denied effect decides the result.
4. If no effect is denied the result is :data:`PERMITTED`.

Callers that receive a denial on ADDRESS must report the resource as not
found (see :func:`raise_for_address` and :class:`ResourceAuthorization`).

Example
-------
::

    authorizer = RoleBasedAuthorizer()
    caller = Caller.of("alice", StandardRole.MONITOR)
    action = Action.for_operation(address, OperationEntry("write-attribute"))
    result = authorizer.authorize(caller, Environment(), action, TargetResource(address))
    assert result.is_denied
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Protocol, runtime_checkable

from aumos_domain_access.access.action import Action, ActionEffect, READ_WRITE_EFFECTS
from aumos_domain_access.access.address import REDACTED, Address
from aumos_domain_access.access.constraints import (
    AccessConstraintDefinition,
    AccessConstraintRegistry,
    CombinationPolicy,
    SensitivityClassification,
    default_registry,
    resolve_constraints,
)
from aumos_domain_access.access.result import (
    KIND_NO_ROLES,
    KIND_ROLE,
    KIND_SCOPE,
    PERMITTED,
    AuthorizationResult,
    ResourceNotFoundError,
    UnauthorizedError,
)
from aumos_domain_access.access.roles import StandardRole
from aumos_domain_access.access.target import (
    HostEffect,
    JmxTarget,
    ServerGroupEffect,
    Target,
    TargetAttribute,
    TargetResource,
)

logger = logging.getLogger(__name__)

# Applied to JMX calls that bypass the management facade.
NON_FACADE_MBEAN = SensitivityClassification(
    "non-facade-mbean",
    description="Direct access to MBeans outside the management facade",
    requires_addressable=True,
    requires_read=True,
    requires_write=True,
)


# ---------------------------------------------------------------------------
# Identity and environment
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Caller:
    """The identity an action is authorized for.

    Attributes
    ----------
    name:
        Principal name.
    roles:
        Roles the principal is mapped to.
    hosts:
        Host names the caller's roles are scoped to, or ``None`` when not
        host-scoped.
    server_groups:
        Server-group names the caller's roles are scoped to, or ``None``.
    """

    name: str
    roles: frozenset[StandardRole] = field(default_factory=frozenset)
    hosts: frozenset[str] | None = None
    server_groups: frozenset[str] | None = None

    @classmethod
    def of(cls, name: str, *roles: StandardRole) -> Caller:
        return cls(name=name, roles=frozenset(roles))

    @property
    def is_scoped(self) -> bool:
        return self.hosts is not None or self.server_groups is not None


@dataclass(frozen=True)
class Environment:
    """Snapshot of the process the decision is made in.

    Attributes
    ----------
    process_type:
        ``"standalone"``, ``"domain-controller"``, ``"host-controller"`` or
        ``"server"``.
    booting:
        The process is executing its boot operations.
    """

    process_type: str = "standalone"
    booting: bool = False

    @property
    def is_domain(self) -> bool:
        return self.process_type in ("domain-controller", "host-controller")


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class Authorizer(Protocol):
    """Decides whether a caller may perform an action on a target.

    Implementations must be deterministic for a fixed
    (caller, environment, action, target) tuple.
    """

    def authorize(
        self,
        caller: Caller,
        environment: Environment,
        action: Action,
        target: Target,
    ) -> AuthorizationResult:
        ...


# ---------------------------------------------------------------------------
# RoleBasedAuthorizer
# ---------------------------------------------------------------------------


class RoleBasedAuthorizer:
    """Authorizer backed by standard roles and target constraints.

    Parameters
    ----------
    policy:
        How several constraints on one effect are combined.
    registry:
        Registry used to canonicalise constraint definitions. Defaults to
        the process-wide registry.
    """

    def __init__(
        self,
        policy: CombinationPolicy = CombinationPolicy.PERMISSIVE,
        registry: AccessConstraintRegistry | None = None,
    ) -> None:
        self._policy = policy
        self._registry = registry or default_registry()
        self._non_facade = self._registry.register(NON_FACADE_MBEAN)

    @property
    def policy(self) -> CombinationPolicy:
        return self._policy

    def authorize(
        self,
        caller: Caller,
        environment: Environment,
        action: Action,
        target: Target,
    ) -> AuthorizationResult:
        """Decide whether ``caller`` may perform ``action`` on ``target``."""
        if not caller.roles:
            logger.debug("Authorization DENY: caller=%s has no roles", caller.name)
            return AuthorizationResult.deny(kind=KIND_NO_ROLES)
        if environment.booting:
            return PERMITTED

        constraints = self._constraints_for(action, target)
        for effect in action.ordered_effects:
            result = self._authorize_effect(caller, effect, constraints, target)
            if result.is_denied:
                logger.debug(
                    "Authorization DENY: caller=%s op=%s address=%s effect=%s (%s)",
                    caller.name,
                    action.operation_name,
                    action.address,
                    effect.value,
                    result.explanation,
                )
                return result
        logger.debug(
            "Authorization PERMIT: caller=%s op=%s address=%s",
            caller.name,
            action.operation_name,
            action.address,
        )
        return PERMITTED

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _constraints_for(
        self, action: Action, target: Target
    ) -> list[AccessConstraintDefinition]:
        constraints = list(target.all_constraints)
        constraints.extend(
            c for c in action.operation_constraints if isinstance(c, AccessConstraintDefinition)
        )
        if isinstance(target, JmxTarget) and target.non_facade_sensitive:
            constraints.append(self._non_facade)
        return constraints

    def _authorize_effect(
        self,
        caller: Caller,
        effect: ActionEffect,
        constraints: list[AccessConstraintDefinition],
        target: Target,
    ) -> AuthorizationResult:
        scope_result = _check_scope(caller, effect, target)
        if scope_result.is_denied:
            return scope_result

        if any(role.permits(effect) for role in caller.roles):
            base = PERMITTED
        else:
            base = AuthorizationResult.deny(effect, kind=KIND_ROLE)

        return resolve_constraints(
            constraints, effect, caller.roles, target, self._policy, fallback=base
        )


def _check_scope(caller: Caller, effect: ActionEffect, target: Target) -> AuthorizationResult:
    """Apply host / server-group scoping of ``caller`` to one effect.

    A target entirely outside the caller's scope is denied for every
    effect, so it is not even addressable. A target that is global or only
    partly inside the scope may be read but not written.
    """
    checks: list[tuple[frozenset[str] | None, frozenset[str] | None]] = []
    if caller.hosts is not None:
        host_effect: HostEffect | None = target.host_effect
        if host_effect is not None:
            checks.append((caller.hosts, host_effect.affected_hosts))
    if caller.server_groups is not None:
        group_effect: ServerGroupEffect | None = target.server_group_effect
        if group_effect is not None:
            checks.append((caller.server_groups, group_effect.affected_groups))

    for scope, affected in checks:
        if affected is None:
            if effect.is_write:
                return AuthorizationResult.deny(effect, kind=KIND_SCOPE)
            continue
        if affected and not (affected & scope):
            return AuthorizationResult.deny(effect, kind=KIND_SCOPE)
        if effect.is_write and not affected <= scope:
            return AuthorizationResult.deny(effect, kind=KIND_SCOPE)
    return PERMITTED


# ---------------------------------------------------------------------------
# Incremental address authorization
# ---------------------------------------------------------------------------


def authorize_address_incrementally(
    authorizer: Authorizer,
    caller: Caller,
    environment: Environment,
    address: Address,
    target_factory: Callable[[Address], Target] | None = None,
    placeholder: str = REDACTED,
) -> Address:
    """Return ``address`` with every element past the first hidden prefix redacted.

    The address is walked from the root one element at a time and the
    ADDRESS effect is checked for each prefix. At the first prefix the
    caller may not address, the value of that element and of every later
    element is replaced with ``placeholder``.

    Parameters
    ----------
    target_factory:
        Builds the target for each prefix. Defaults to a constraint-free
        :class:`TargetResource`.
    """
    make_target = target_factory or TargetResource
    for index, prefix in enumerate(address.prefixes()):
        probe = Action.unknown(prefix).limit_action(ActionEffect.ADDRESS)
        result = authorizer.authorize(caller, environment, probe, make_target(prefix))
        if result.is_denied:
            return address.redact_from(index, placeholder)
    return address


# ---------------------------------------------------------------------------
# ResourceAuthorization
# ---------------------------------------------------------------------------


class ResourceAuthorization:
    """Per-effect authorization results for one caller and one resource.

    Results are computed on first use and reused afterwards, so rendering
    access metadata for a resource (address, four read/write effects and
    every attribute) costs one decision per effect.

    Parameters
    ----------
    authorizer:
        The decision point.
    caller, environment:
        Identity and environment snapshot the results are valid for.
    action:
        The standard action for the resource; narrowed per effect.
    target:
        The resource.
    """

    def __init__(
        self,
        authorizer: Authorizer,
        caller: Caller,
        environment: Environment,
        action: Action,
        target: TargetResource,
    ) -> None:
        self._authorizer = authorizer
        self._caller = caller
        self._environment = environment
        self._action = action
        self._target = target
        self._resource_results: dict[ActionEffect, AuthorizationResult] = {}
        self._attribute_results: dict[tuple[str, ActionEffect], AuthorizationResult] = {}
        self._operation_results: dict[Action, AuthorizationResult] = {}

    @property
    def target(self) -> TargetResource:
        return self._target

    def result_for(self, effect: ActionEffect) -> AuthorizationResult:
        """Return the (cached) result for a single effect on the resource."""
        result = self._resource_results.get(effect)
        if result is None:
            result = self._authorizer.authorize(
                self._caller, self._environment, self._action.limit_action(effect), self._target
            )
            self._resource_results[effect] = result
        return result

    def check_address(self) -> None:
        """Raise :class:`ResourceNotFoundError` if the resource is not addressable."""
        if self.result_for(ActionEffect.ADDRESS).is_denied:
            raise ResourceNotFoundError(self._target.address)

    def resource_results(self) -> dict[ActionEffect, AuthorizationResult]:
        """Return results for ADDRESS and, if addressable, every read/write effect."""
        results = {ActionEffect.ADDRESS: self.result_for(ActionEffect.ADDRESS)}
        if results[ActionEffect.ADDRESS].is_permitted:
            for effect in READ_WRITE_EFFECTS:
                results[effect] = self.result_for(effect)
        return results

    def attribute_result(
        self,
        attribute_name: str,
        effect: ActionEffect,
        constraints: tuple[AccessConstraintDefinition, ...] = (),
    ) -> AuthorizationResult:
        """Return the (cached) result for ``effect`` on one attribute.

        ADDRESS does not apply to attributes and is always permitted.
        """
        if effect is ActionEffect.ADDRESS:
            return PERMITTED
        key = (attribute_name, effect)
        result = self._attribute_results.get(key)
        if result is None:
            attribute = TargetAttribute(self._target, attribute_name, constraints)
            result = self._authorizer.authorize(
                self._caller, self._environment, self._action.limit_action(effect), attribute
            )
            self._attribute_results[key] = result
        return result

    def authorize_operation(self, action: Action) -> AuthorizationResult:
        """Authorize a specific operation on the resource.

        The ADDRESS effect is checked first; a denial there is returned
        as-is so the caller can substitute a not-found failure.
        """
        address_result = self.result_for(ActionEffect.ADDRESS)
        if address_result.is_denied:
            return address_result
        result = self._operation_results.get(action)
        if result is None:
            result = self._authorizer.authorize(
                self._caller, self._environment, action, self._target
            )
            self._operation_results[action] = result
        return result

    def require_read(self) -> None:
        """Raise unless the caller may read the resource's configuration.

        Raises
        ------
        ResourceNotFoundError
            The denial is caused by the resource not being addressable.
        UnauthorizedError
            The resource is visible but its configuration may not be read.
        """
        read = self.result_for(ActionEffect.READ_CONFIG)
        if read.is_permitted:
            return
        self.check_address()
        raise UnauthorizedError(
            self._action.operation_name, self._target.address, read.explanation
        )
