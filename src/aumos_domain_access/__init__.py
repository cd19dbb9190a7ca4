"""aumos-domain-access: access-control decisions for clustered application-server management.

Two halves:

- :mod:`aumos_domain_access.access` decides, on the server, whether a
  caller may perform an action on a management resource.
- :mod:`aumos_domain_access.requirements` decides, on the client, whether
  a command or option should be offered, with remote checks memoized per
  connection.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import aumos_domain_access as access
>>> access.__version__
'0.1.0'
>>> entry = access.OperationEntry("read-resource", read_only=True)
>>> sorted(e.value for e in access.classify_effects(entry))
['address', 'read-config', 'read-runtime']
"""
from __future__ import annotations

__version__: str = "0.1.0"

# ---------------------------------------------------------------------------
# Server-side decisions
# ---------------------------------------------------------------------------
from aumos_domain_access.access import (
    ALL_EFFECTS,
    PERMITTED,
    REDACTED,
    AccessConfigError,
    AccessConfigLoader,
    AccessConstraintDefinition,
    AccessConstraintRegistry,
    AccessControlConfig,
    Action,
    ActionEffect,
    Address,
    ApplicationTypeClassification,
    AuthorizationResult,
    Authorizer,
    Caller,
    CombinationPolicy,
    ConstraintVerdict,
    Decision,
    Environment,
    Explanation,
    HostEffect,
    JmxTarget,
    OperationEntry,
    ResourceAuthorization,
    ResourceNotFoundError,
    RoleBasedAuthorizer,
    SensitivityClassification,
    ServerGroupEffect,
    StandardRole,
    TargetAttribute,
    TargetResource,
    UnauthorizedError,
    authorize_address_incrementally,
    classify_effects,
    default_registry,
    fail_if_denied,
    raise_for_address,
    resolve_constraints,
)

# ---------------------------------------------------------------------------
# Client-side requirements
# ---------------------------------------------------------------------------
from aumos_domain_access.requirements import (
    ALWAYS,
    AllOf,
    Always,
    AnyOf,
    BuilderStateError,
    CommandAccessCatalog,
    ConnectionContext,
    ControllerMode,
    ControllerModeGate,
    NodeEnumerator,
    Oracle,
    PerNodeQuantifier,
    RemoteQueryError,
    Requirement,
    RequirementBuilder,
    ScanState,
    SingleOperation,
    TwoLevelQuantifier,
    deploy_requirements,
    reload_requirement,
)

__all__ = [
    "__version__",
    # Access
    "ALL_EFFECTS",
    "AccessConfigError",
    "AccessConfigLoader",
    "AccessConstraintDefinition",
    "AccessConstraintRegistry",
    "AccessControlConfig",
    "Action",
    "ActionEffect",
    "Address",
    "ApplicationTypeClassification",
    "AuthorizationResult",
    "Authorizer",
    "Caller",
    "CombinationPolicy",
    "ConstraintVerdict",
    "Decision",
    "Environment",
    "Explanation",
    "HostEffect",
    "JmxTarget",
    "OperationEntry",
    "PERMITTED",
    "REDACTED",
    "ResourceAuthorization",
    "ResourceNotFoundError",
    "RoleBasedAuthorizer",
    "SensitivityClassification",
    "ServerGroupEffect",
    "StandardRole",
    "TargetAttribute",
    "TargetResource",
    "UnauthorizedError",
    "authorize_address_incrementally",
    "classify_effects",
    "default_registry",
    "fail_if_denied",
    "raise_for_address",
    "resolve_constraints",
    # Requirements
    "ALWAYS",
    "AllOf",
    "Always",
    "AnyOf",
    "BuilderStateError",
    "CommandAccessCatalog",
    "ConnectionContext",
    "ControllerMode",
    "ControllerModeGate",
    "NodeEnumerator",
    "Oracle",
    "PerNodeQuantifier",
    "RemoteQueryError",
    "Requirement",
    "RequirementBuilder",
    "ScanState",
    "SingleOperation",
    "TwoLevelQuantifier",
    "deploy_requirements",
    "reload_requirement",
]
