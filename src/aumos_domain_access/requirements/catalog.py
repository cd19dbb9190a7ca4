"""Commands and options gated by requirement trees.

A :class:`CommandAccessCatalog` maps client command names, and the
options of each command, to the :class:`Requirement` that decides whether
the command or option is offered on a connection. Commands without a
registered requirement are always offered.

The module also provides the requirement recipes used by the built-in
``reload`` and ``deploy`` commands.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from aumos_domain_access.access.address import Address
from aumos_domain_access.requirements.builder import RequirementBuilder
from aumos_domain_access.requirements.connection import ConnectionContext
from aumos_domain_access.requirements.tree import ALWAYS, Requirement

logger = logging.getLogger(__name__)

DEPLOYMENT_ADDRESS = Address.of(("deployment", "*"))


class UnknownCommandError(KeyError):
    """Raised when a command name has not been registered.

    Attributes
    ----------
    command:
        The unknown command name.
    """

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Command {command!r} is not registered.")


class CommandAccessCatalog:
    """Registry of commands and options with their access requirements.

    Example
    -------
    ::

        catalog = CommandAccessCatalog()
        catalog.register_command("reload", reload_requirement(ctx))
        if catalog.is_available(ctx, "reload"):
            ...
    """

    def __init__(self) -> None:
        self._commands: dict[str, Requirement] = {}
        self._options: dict[str, dict[str, Requirement]] = {}

    def register_command(self, name: str, requirement: Requirement = ALWAYS) -> None:
        """Register ``name``; re-registering replaces its requirement."""
        if name in self._commands:
            logger.debug("Replacing requirement for command %r", name)
        self._commands[name] = requirement
        self._options.setdefault(name, {})

    def register_option(
        self, command: str, option: str, requirement: Requirement = ALWAYS
    ) -> None:
        """Register an option of an already registered command.

        Raises
        ------
        UnknownCommandError
            If ``command`` has not been registered.
        """
        if command not in self._commands:
            raise UnknownCommandError(command)
        self._options[command][option] = requirement

    def requirement_for(self, command: str) -> Requirement:
        try:
            return self._commands[command]
        except KeyError:
            raise UnknownCommandError(command) from None

    def is_available(self, ctx: ConnectionContext, command: str) -> bool:
        """Return whether ``command`` may be offered on ``ctx``."""
        return self.requirement_for(command).is_satisfied(ctx)

    def available_commands(self, ctx: ConnectionContext) -> list[str]:
        """Return the available commands in registration order."""
        return [name for name, req in self._commands.items() if req.is_satisfied(ctx)]

    def available_options(self, ctx: ConnectionContext, command: str) -> list[str]:
        """Return the available options of ``command`` in registration order.

        An unavailable command offers no options.
        """
        if not self.is_available(ctx, command):
            return []
        return [
            option
            for option, req in self._options[command].items()
            if req.is_satisfied(ctx)
        ]

    @property
    def commands(self) -> list[str]:
        return list(self._commands)

    def __contains__(self, command: object) -> bool:
        return command in self._commands

    def __len__(self) -> int:
        return len(self._commands)


# ---------------------------------------------------------------------------
# Recipes
# ---------------------------------------------------------------------------


def reload_requirement(ctx: ConnectionContext) -> Requirement:
    """Reload is offered if the root or some host may be reloaded."""
    return (
        RequirementBuilder.create(ctx)
        .any()
        .operation("reload")
        .host_operation("reload")
        .build()
    )


@dataclass(frozen=True)
class DeploymentRequirements:
    """Requirements gating the ``deploy`` command and its options.

    Attributes
    ----------
    listing:
        Listing existing deployments (``--list``).
    main_add:
        Adding deployment content to the repository.
    full_replace:
        Replacing existing deployment content (``--force``).
    deploy:
        Deploying content: on a standalone server directly, in a domain to
        some server group.
    add_or_replace:
        Either of ``main_add`` or ``full_replace``; gates the command.
    """

    listing: Requirement
    main_add: Requirement
    full_replace: Requirement
    deploy: Requirement
    add_or_replace: Requirement


def deploy_requirements(ctx: ConnectionContext) -> DeploymentRequirements:
    listing = (
        RequirementBuilder.create(ctx)
        .all()
        .operation("read-children-names")
        .build()
    )
    main_add = RequirementBuilder.create(ctx).all().operation("add", DEPLOYMENT_ADDRESS).build()
    full_replace = (
        RequirementBuilder.create(ctx).all().operation("full-replace-deployment").build()
    )
    deploy = (
        RequirementBuilder.create(ctx)
        .any()
        .standalone()
        .operation("deploy", DEPLOYMENT_ADDRESS)
        .parent()
        .server_group_operation("add", DEPLOYMENT_ADDRESS)
        .build()
    )
    add_or_replace = (
        RequirementBuilder.create(ctx)
        .any()
        .requirement(main_add)
        .requirement(full_replace)
        .build()
    )
    return DeploymentRequirements(
        listing=listing,
        main_add=main_add,
        full_replace=full_replace,
        deploy=deploy,
        add_or_replace=add_or_replace,
    )


def register_builtin_commands(
    catalog: CommandAccessCatalog, ctx: ConnectionContext
) -> CommandAccessCatalog:
    """Register ``reload`` and ``deploy`` with their options on ``catalog``."""
    catalog.register_command("reload", reload_requirement(ctx))
    deployment = deploy_requirements(ctx)
    catalog.register_command("deploy", deployment.add_or_replace)
    catalog.register_option("deploy", "--list", deployment.listing)
    catalog.register_option("deploy", "--force", deployment.full_replace)
    catalog.register_option("deploy", "--server-groups", deployment.deploy)
    return catalog
