"""Access-control configuration with Pydantic v2 validation.

The set of sensitivity classifications, application types and role
mappings is configuration data. This module loads it from YAML into a
typed :class:`AccessControlConfig`, registers the configured constraints
and builds the matching authorizer.

Schema
------
::

    version: "1"
    combination_policy: permissive
    redaction_placeholder: "<redacted>"
    sensitivity_classifications:
      - name: credential
        requires_read: true
        requires_write: true
      - name: security-realm
        owner: elytron
        requires_addressable: true
    application_types:
      - name: deployment
    role_mappings:
      alice: [Monitor]
      bob: [Administrator]
    host_scopes:
      carol: [master]

Example
-------
>>> loader = AccessConfigLoader()
>>> config = loader.load_string("role_mappings: {alice: [Monitor]}")
>>> config.caller("alice").roles
frozenset({<StandardRole.MONITOR: 'Monitor'>})
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from aumos_domain_access.access.address import REDACTED
from aumos_domain_access.access.authorizer import Caller, RoleBasedAuthorizer
from aumos_domain_access.access.constraints import (
    CORE_OWNER,
    AccessConstraintDefinition,
    AccessConstraintRegistry,
    ApplicationTypeClassification,
    CombinationPolicy,
    SensitivityClassification,
    default_registry,
)
from aumos_domain_access.access.roles import StandardRole

logger = logging.getLogger(__name__)

_SUPPORTED_VERSIONS: frozenset[str] = frozenset(["1", "1.0"])


class AccessConfigError(ValueError):
    """Raised when an access-control config is malformed or invalid.

    Attributes
    ----------
    config_path:
        The path to the config file that caused the error, if known.
    """

    def __init__(self, message: str, config_path: str | None = None) -> None:
        self.config_path = config_path
        prefix = f"[{config_path}] " if config_path else ""
        super().__init__(f"{prefix}{message}")


class SensitivityClassificationConfig(BaseModel):
    """One configured sensitivity classification."""

    model_config = {"extra": "forbid"}

    name: str = Field(min_length=1)
    owner: str = Field(default=CORE_OWNER)
    description: str = Field(default="")
    requires_addressable: bool = Field(default=False)
    requires_read: bool = Field(default=True)
    requires_write: bool = Field(default=True)

    def to_definition(self) -> SensitivityClassification:
        return SensitivityClassification(
            name=self.name,
            owner=self.owner,
            description=self.description,
            requires_addressable=self.requires_addressable,
            requires_read=self.requires_read,
            requires_write=self.requires_write,
        )


class ApplicationTypeConfig(BaseModel):
    """One configured application-type classification."""

    model_config = {"extra": "forbid"}

    name: str = Field(min_length=1)
    owner: str = Field(default=CORE_OWNER)
    description: str = Field(default="")
    application: bool = Field(default=True)

    def to_definition(self) -> ApplicationTypeClassification:
        return ApplicationTypeClassification(
            name=self.name,
            owner=self.owner,
            description=self.description,
            application=self.application,
        )


class AccessControlConfig(BaseModel):
    """Top-level access-control configuration.

    All sections are optional and fall back to defaults: a permissive
    combination policy, no classifications and no role mappings.
    """

    model_config = {"extra": "allow"}

    version: str = Field(default="1")
    combination_policy: Literal["permissive", "rejecting"] = Field(default="permissive")
    redaction_placeholder: str = Field(default=REDACTED, min_length=1)
    sensitivity_classifications: list[SensitivityClassificationConfig] = Field(
        default_factory=list
    )
    application_types: list[ApplicationTypeConfig] = Field(default_factory=list)
    role_mappings: dict[str, list[str]] = Field(default_factory=dict)
    host_scopes: dict[str, list[str]] = Field(default_factory=dict)
    server_group_scopes: dict[str, list[str]] = Field(default_factory=dict)

    @field_validator("version")
    @classmethod
    def validate_version(cls, value: str) -> str:
        if value not in _SUPPORTED_VERSIONS:
            raise ValueError(
                f"Unsupported config version {value!r}. Supported: {sorted(_SUPPORTED_VERSIONS)}."
            )
        return value

    @field_validator("role_mappings")
    @classmethod
    def validate_roles(cls, mappings: dict[str, list[str]]) -> dict[str, list[str]]:
        for identity, roles in mappings.items():
            for role in roles:
                try:
                    StandardRole.parse(role)
                except ValueError as exc:
                    raise ValueError(f"Role mapping for {identity!r}: {exc}") from exc
        return mappings

    @model_validator(mode="after")
    def validate_unique_constraint_names(self) -> AccessControlConfig:
        """Reject a constraint name used more than once across both sections."""
        seen: set[str] = set()
        for entry in [*self.sensitivity_classifications, *self.application_types]:
            if entry.name in seen:
                raise ValueError(f"Duplicate access constraint name {entry.name!r}.")
            seen.add(entry.name)
        return self

    # ------------------------------------------------------------------
    # Derived objects
    # ------------------------------------------------------------------

    @property
    def policy(self) -> CombinationPolicy:
        return CombinationPolicy(self.combination_policy)

    def definitions(self) -> list[AccessConstraintDefinition]:
        """Return every configured constraint definition, sensitivity first."""
        defs: list[AccessConstraintDefinition] = [
            c.to_definition() for c in self.sensitivity_classifications
        ]
        defs.extend(a.to_definition() for a in self.application_types)
        return defs

    def register_constraints(
        self, registry: AccessConstraintRegistry | None = None
    ) -> dict[str, AccessConstraintDefinition]:
        """Register every configured constraint and return them by name.

        Registration is idempotent; the canonical instances are returned.
        Names are unique across both sections.
        """
        target_registry = registry or default_registry()
        canonical = target_registry.register_all(self.definitions())
        return {definition.name: definition for definition in canonical}

    def build_authorizer(
        self, registry: AccessConstraintRegistry | None = None
    ) -> RoleBasedAuthorizer:
        return RoleBasedAuthorizer(policy=self.policy, registry=registry)

    def caller(self, identity: str) -> Caller:
        """Return the :class:`Caller` for a mapped identity.

        Unmapped identities get a caller with no roles.
        """
        roles = frozenset(StandardRole.parse(r) for r in self.role_mappings.get(identity, []))
        hosts = self.host_scopes.get(identity)
        groups = self.server_group_scopes.get(identity)
        return Caller(
            name=identity,
            roles=roles,
            hosts=frozenset(hosts) if hosts is not None else None,
            server_groups=frozenset(groups) if groups is not None else None,
        )


class AccessConfigLoader:
    """Loads and validates access-control YAML configuration.

    Example
    -------
    >>> loader = AccessConfigLoader()
    >>> config = loader.load(Path("access-control.yaml"))
    """

    def load(self, config_path: str | Path) -> AccessControlConfig:
        """Load and validate an access-control YAML file.

        Raises
        ------
        FileNotFoundError
            When the config file does not exist.
        AccessConfigError
            When the YAML cannot be parsed or fails validation.
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Access-control config not found: {config_path}")

        with config_path.open("r", encoding="utf-8") as fh:
            text = fh.read()
        return self.load_string(text, config_path=str(config_path))

    def load_string(
        self, yaml_content: str, config_path: str | None = None
    ) -> AccessControlConfig:
        """Load and validate a YAML string directly."""
        try:
            raw = yaml.safe_load(yaml_content) or {}
        except yaml.YAMLError as exc:
            raise AccessConfigError(f"Failed to parse YAML: {exc}", config_path) from exc
        return self.load_from_dict(raw, config_path=config_path)

    def load_from_dict(
        self, raw: object, config_path: str | None = None
    ) -> AccessControlConfig:
        """Validate an already-parsed configuration mapping."""
        if not isinstance(raw, dict):
            raise AccessConfigError(
                "Access-control config must be a YAML mapping (dict).", config_path
            )
        try:
            config = AccessControlConfig.model_validate(raw)
        except ValidationError as exc:
            raise AccessConfigError(str(exc), config_path) from exc

        logger.info(
            "Loaded access-control config from %s: %d classifications, %d role mappings (policy=%s)",
            config_path or "<dict>",
            len(config.sensitivity_classifications) + len(config.application_types),
            len(config.role_mappings),
            config.combination_policy,
        )
        return config

    def defaults(self) -> AccessControlConfig:
        """Return a default configuration with all defaults applied."""
        return AccessControlConfig()
