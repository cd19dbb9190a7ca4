"""Client-side evaluation of command and option access requirements.

Requirement trees are built once per connection with
:class:`RequirementBuilder` and evaluated lazily against a
:class:`ConnectionContext`; remote queries are memoized until the
connection is lost.
"""
from __future__ import annotations

from aumos_domain_access.requirements.builder import (
    BuilderStateError,
    CompositeBuilder,
    RequirementBuilder,
)
from aumos_domain_access.requirements.catalog import (
    CommandAccessCatalog,
    DeploymentRequirements,
    UnknownCommandError,
    deploy_requirements,
    register_builtin_commands,
    reload_requirement,
)
from aumos_domain_access.requirements.connection import (
    ConnectionContext,
    ControllerMode,
    NodeEnumerator,
    Oracle,
    RemoteQueryError,
)
from aumos_domain_access.requirements.quantifiers import (
    NodeScan,
    PerNodeQuantifier,
    ScanState,
    TriState,
    TwoLevelQuantifier,
)
from aumos_domain_access.requirements.tree import (
    ALWAYS,
    AllOf,
    Always,
    AnyOf,
    ControllerModeGate,
    Requirement,
    SingleOperation,
)

__all__ = [
    # Connection
    "ConnectionContext",
    "ControllerMode",
    "NodeEnumerator",
    "Oracle",
    "RemoteQueryError",
    # Tree
    "ALWAYS",
    "AllOf",
    "Always",
    "AnyOf",
    "ControllerModeGate",
    "Requirement",
    "SingleOperation",
    # Quantifiers
    "NodeScan",
    "PerNodeQuantifier",
    "ScanState",
    "TriState",
    "TwoLevelQuantifier",
    # Builder
    "BuilderStateError",
    "CompositeBuilder",
    "RequirementBuilder",
    # Catalog
    "CommandAccessCatalog",
    "DeploymentRequirements",
    "UnknownCommandError",
    "deploy_requirements",
    "register_builtin_commands",
    "reload_requirement",
]
