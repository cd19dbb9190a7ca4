"""Authorization targets: resources, attributes and JMX calls.

A target describes *what* an action is applied to. Resource and attribute
targets carry the constraint definitions that apply to them, fixed at
construction. In a managed domain they also carry scoping information that
tells the decision point which hosts and server groups the action reaches:

- :class:`HostEffect`: global to every host, or a set of host names, and
  whether the address denotes one specific server.
- :class:`ServerGroupEffect`: global, or a set of server-group names,
  plus the unassigned / group-add / group-remove markers.

Targets never store effect sets; effects always come from the ``Action``.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from aumos_domain_access.access.address import Address
from aumos_domain_access.access.constraints import AccessConstraintDefinition


# ---------------------------------------------------------------------------
# Domain scoping
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HostEffect:
    """Which hosts an action on a resource affects.

    Attributes
    ----------
    affected_hosts:
        Names of affected hosts, or ``None`` when the effect is global.
    server_effect:
        The address denotes a specific server (or non-wildcard server
        config) on one of the hosts.
    """

    affected_hosts: frozenset[str] | None = None
    server_effect: bool = False

    @classmethod
    def global_(cls) -> HostEffect:
        return cls()

    @classmethod
    def for_host(cls, host: str, server_effect: bool = False) -> HostEffect:
        return cls(frozenset({host}), server_effect)

    @property
    def is_global(self) -> bool:
        return self.affected_hosts is None


@dataclass(frozen=True)
class ServerGroupEffect:
    """Which server groups an action on a resource affects.

    Attributes
    ----------
    affected_groups:
        Names of affected server groups, or ``None`` when global.
    unassigned:
        The resource could be mapped to server groups but currently is not.
    group_add:
        The action adds the server group itself.
    group_remove:
        The action removes the server group itself.
    """

    affected_groups: frozenset[str] | None = None
    unassigned: bool = False
    group_add: bool = False
    group_remove: bool = False

    @classmethod
    def global_(cls) -> ServerGroupEffect:
        """Domain-wide resource that cannot be mapped to server groups."""
        return cls()

    @classmethod
    def for_groups(cls, *groups: str) -> ServerGroupEffect:
        return cls(frozenset(groups))

    @classmethod
    def for_unassigned(cls) -> ServerGroupEffect:
        """Mappable resource that no server group currently references."""
        return cls(frozenset(), unassigned=True)

    @classmethod
    def for_server_group(
        cls, group: str, group_add: bool = False, group_remove: bool = False
    ) -> ServerGroupEffect:
        return cls(frozenset({group}), group_add=group_add, group_remove=group_remove)

    @property
    def is_global(self) -> bool:
        return self.affected_groups is None


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TargetResource:
    """A whole management resource.

    Attributes
    ----------
    address:
        Address of the resource.
    constraints:
        Constraint definitions registered for the resource type.
    host_effect:
        Host scoping in a managed domain, or ``None`` on a standalone server.
    server_group_effect:
        Server-group scoping in a managed domain, or ``None``.
    """

    address: Address
    constraints: tuple[AccessConstraintDefinition, ...] = ()
    host_effect: HostEffect | None = None
    server_group_effect: ServerGroupEffect | None = None

    def __post_init__(self) -> None:
        # Accept any iterable but always store an immutable tuple.
        object.__setattr__(self, "constraints", tuple(self.constraints))

    @property
    def all_constraints(self) -> tuple[AccessConstraintDefinition, ...]:
        return self.constraints


@dataclass(frozen=True)
class TargetAttribute:
    """One attribute of a management resource.

    The attribute's own constraints apply together with the resource's.
    """

    resource: TargetResource
    attribute_name: str
    constraints: tuple[AccessConstraintDefinition, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "constraints", tuple(self.constraints))

    @property
    def address(self) -> Address:
        return self.resource.address

    @property
    def host_effect(self) -> HostEffect | None:
        return self.resource.host_effect

    @property
    def server_group_effect(self) -> ServerGroupEffect | None:
        return self.resource.server_group_effect

    @property
    def all_constraints(self) -> tuple[AccessConstraintDefinition, ...]:
        return self.resource.constraints + self.constraints


@dataclass(frozen=True)
class JmxTarget:
    """A call on a JMX MBean exposed through the management layer.

    Attributes
    ----------
    method_name:
        The MBean server method (e.g. ``"getAttribute"``, ``"invoke"``).
    object_name:
        The target MBean's object name.
    non_facade_sensitive:
        The call reaches an MBean outside the management facade; such calls
        are treated as sensitive.
    """

    method_name: str
    object_name: str
    non_facade_sensitive: bool = False
    host_effect: HostEffect | None = None
    server_group_effect: ServerGroupEffect | None = None
    constraints: tuple[AccessConstraintDefinition, ...] = field(default=())

    @property
    def address(self) -> Address:
        return Address.of(("jmx", self.object_name))

    @property
    def all_constraints(self) -> tuple[AccessConstraintDefinition, ...]:
        return tuple(self.constraints)


Target = TargetResource | TargetAttribute | JmxTarget
