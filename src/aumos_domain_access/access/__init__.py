"""Server-side access control for management operations.

Classifies management actions into effects, attaches constraint
definitions to targets, and decides permit/deny through an
:class:`Authorizer`.

Example
-------
::

    from aumos_domain_access.access import (
        Action, Address, Caller, Environment, OperationEntry,
        RoleBasedAuthorizer, StandardRole, TargetResource,
    )

    address = Address.of(("subsystem", "datasources"))
    action = Action.for_operation(address, OperationEntry("write-attribute"))
    result = RoleBasedAuthorizer().authorize(
        Caller.of("alice", StandardRole.MAINTAINER),
        Environment(),
        action,
        TargetResource(address),
    )
    assert result.is_permitted
"""
from __future__ import annotations

from aumos_domain_access.access.action import (
    ALL_EFFECTS,
    Action,
    ActionEffect,
    OperationEntry,
    classify_effects,
)
from aumos_domain_access.access.address import REDACTED, Address
from aumos_domain_access.access.authorizer import (
    Authorizer,
    Caller,
    Environment,
    ResourceAuthorization,
    RoleBasedAuthorizer,
    authorize_address_incrementally,
)
from aumos_domain_access.access.config import (
    AccessConfigError,
    AccessConfigLoader,
    AccessControlConfig,
)
from aumos_domain_access.access.constraints import (
    AccessConstraintDefinition,
    AccessConstraintRegistry,
    ApplicationTypeClassification,
    CombinationPolicy,
    ConstraintVerdict,
    SensitivityClassification,
    default_registry,
    resolve_constraints,
)
from aumos_domain_access.access.result import (
    PERMITTED,
    AuthorizationResult,
    Decision,
    Explanation,
    ResourceNotFoundError,
    UnauthorizedError,
    fail_if_denied,
    raise_for_address,
)
from aumos_domain_access.access.roles import StandardRole
from aumos_domain_access.access.target import (
    HostEffect,
    JmxTarget,
    ServerGroupEffect,
    TargetAttribute,
    TargetResource,
)

__all__ = [
    # Actions
    "ALL_EFFECTS",
    "Action",
    "ActionEffect",
    "Address",
    "OperationEntry",
    "REDACTED",
    "classify_effects",
    # Results
    "AuthorizationResult",
    "Decision",
    "Explanation",
    "PERMITTED",
    "ResourceNotFoundError",
    "UnauthorizedError",
    "fail_if_denied",
    "raise_for_address",
    # Targets
    "HostEffect",
    "JmxTarget",
    "ServerGroupEffect",
    "TargetAttribute",
    "TargetResource",
    # Constraints
    "AccessConstraintDefinition",
    "AccessConstraintRegistry",
    "ApplicationTypeClassification",
    "CombinationPolicy",
    "ConstraintVerdict",
    "SensitivityClassification",
    "default_registry",
    "resolve_constraints",
    # Decision point
    "Authorizer",
    "Caller",
    "Environment",
    "ResourceAuthorization",
    "RoleBasedAuthorizer",
    "StandardRole",
    "authorize_address_incrementally",
    # Configuration
    "AccessConfigError",
    "AccessConfigLoader",
    "AccessControlConfig",
]
