"""Standard management roles and their base permissions.

Base permissions decide an effect when no constraint on the target bears
on it. Constraints (sensitivity, application type) can then narrow or widen
what a role may do on a particular resource.

================  ========  =============  ============  =========
role              read      write-runtime  write-config  sensitive
================  ========  =============  ============  =========
Monitor           yes       no             no            no
Operator          yes       yes            no            no
Maintainer        yes       yes            yes           no
Deployer          yes       no             no            no
Administrator     yes       yes            yes           yes
Auditor           yes       no             no            read only
SuperUser         yes       yes            yes           yes
================  ========  =============  ============  =========

Deployers may additionally write resources classified as applications.
"""
from __future__ import annotations

from enum import Enum

from aumos_domain_access.access.action import ActionEffect


class StandardRole(str, Enum):
    """The built-in role set of the management RBAC model."""

    MONITOR = "Monitor"
    OPERATOR = "Operator"
    MAINTAINER = "Maintainer"
    DEPLOYER = "Deployer"
    ADMINISTRATOR = "Administrator"
    AUDITOR = "Auditor"
    SUPERUSER = "SuperUser"

    @classmethod
    def parse(cls, name: str) -> StandardRole:
        """Look up a role by name, ignoring case and separators.

        Raises
        ------
        ValueError
            If ``name`` is not a standard role.
        """
        normalised = name.replace("-", "").replace("_", "").lower()
        for role in cls:
            if role.value.lower() == normalised:
                return role
        raise ValueError(
            f"Unknown role {name!r}. Known roles: {[r.value for r in cls]}."
        )

    def permits(self, effect: ActionEffect) -> bool:
        """Return True if the role's base permissions allow ``effect``."""
        if effect is ActionEffect.WRITE_CONFIG:
            return self in _CONFIG_WRITERS
        if effect is ActionEffect.WRITE_RUNTIME:
            return self in _RUNTIME_WRITERS
        return True

    def permits_sensitive(self, effect: ActionEffect) -> bool:
        """Return True if the role may perform ``effect`` on sensitive data."""
        if self in (StandardRole.ADMINISTRATOR, StandardRole.SUPERUSER):
            return True
        if self is StandardRole.AUDITOR:
            return not effect.is_write
        return False

    def permits_application_write(self, effect: ActionEffect) -> bool:
        """Return True if the role may write a resource classified as an application."""
        return self is StandardRole.DEPLOYER or self.permits(effect)


_CONFIG_WRITERS: frozenset[StandardRole] = frozenset(
    {StandardRole.MAINTAINER, StandardRole.ADMINISTRATOR, StandardRole.SUPERUSER}
)
_RUNTIME_WRITERS: frozenset[StandardRole] = _CONFIG_WRITERS | {StandardRole.OPERATOR}
