"""Tests for CommandAccessCatalog and the reload/deploy recipes."""
from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from aumos_domain_access.requirements.catalog import (
    CommandAccessCatalog,
    UnknownCommandError,
    deploy_requirements,
    register_builtin_commands,
    reload_requirement,
)
from aumos_domain_access.requirements.connection import ConnectionContext, ControllerMode
from aumos_domain_access.requirements.tree import SingleOperation

if TYPE_CHECKING:
    from conftest import FakeEnumerator, FakeOracle


@pytest.fixture()
def catalog() -> CommandAccessCatalog:
    return CommandAccessCatalog()


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class TestCommandAccessCatalog:
    def test_unrestricted_command_available(
        self, catalog: CommandAccessCatalog, ctx: ConnectionContext
    ) -> None:
        catalog.register_command("help")
        assert catalog.is_available(ctx, "help")

    def test_available_commands_in_registration_order(
        self, catalog: CommandAccessCatalog, ctx: ConnectionContext, oracle: FakeOracle
    ) -> None:
        oracle.allow("shutdown").allow("reload")
        catalog.register_command("shutdown", SingleOperation("shutdown"))
        catalog.register_command("undeploy", SingleOperation("undeploy"))
        catalog.register_command("reload", SingleOperation("reload"))
        assert catalog.available_commands(ctx) == ["shutdown", "reload"]

    def test_options_hidden_when_command_unavailable(
        self, catalog: CommandAccessCatalog, ctx: ConnectionContext, oracle: FakeOracle
    ) -> None:
        catalog.register_command("shutdown", SingleOperation("shutdown"))
        catalog.register_option("shutdown", "--restart")
        assert catalog.available_options(ctx, "shutdown") == []
        assert oracle.calls == [("/", "/", "shutdown")]

    def test_options_filtered(
        self, catalog: CommandAccessCatalog, ctx: ConnectionContext, oracle: FakeOracle
    ) -> None:
        oracle.allow("shutdown")
        catalog.register_command("shutdown", SingleOperation("shutdown"))
        catalog.register_option("shutdown", "--restart")
        catalog.register_option("shutdown", "--timeout", SingleOperation("suspend"))
        assert catalog.available_options(ctx, "shutdown") == ["--restart"]

    def test_option_for_unknown_command_raises(self, catalog: CommandAccessCatalog) -> None:
        with pytest.raises(UnknownCommandError) as exc_info:
            catalog.register_option("nope", "--x")
        assert exc_info.value.command == "nope"

    def test_unknown_command_lookup_raises_key_error(
        self, catalog: CommandAccessCatalog, ctx: ConnectionContext
    ) -> None:
        with pytest.raises(KeyError):
            catalog.is_available(ctx, "nope")

    def test_membership(self, catalog: CommandAccessCatalog) -> None:
        catalog.register_command("help")
        assert "help" in catalog
        assert len(catalog) == 1
        assert catalog.commands == ["help"]


# ---------------------------------------------------------------------------
# Recipes
# ---------------------------------------------------------------------------

class TestReloadRequirement:
    def test_root_reload(self, ctx: ConnectionContext, oracle: FakeOracle) -> None:
        oracle.allow("reload")
        assert reload_requirement(ctx).is_satisfied(ctx)

    def test_host_reload(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("host", ["master", "slave"])
        oracle.allow("reload", scope="/host=slave")
        assert reload_requirement(ctx).is_satisfied(ctx)

    def test_denied(self, ctx: ConnectionContext, enumerator: FakeEnumerator) -> None:
        enumerator.add("host", ["master"])
        assert not reload_requirement(ctx).is_satisfied(ctx)


class TestDeployRequirements:
    def test_add_or_replace(self, ctx: ConnectionContext, oracle: FakeOracle) -> None:
        oracle.allow("full-replace-deployment")
        deployment = deploy_requirements(ctx)
        assert deployment.add_or_replace.is_satisfied(ctx)
        assert not deployment.main_add.is_satisfied(ctx)

    def test_standalone_deploy(self, ctx: ConnectionContext, oracle: FakeOracle) -> None:
        oracle.allow("deploy", "/deployment=*")
        assert deploy_requirements(ctx).deploy.is_satisfied(ctx)

    def test_domain_deploy_needs_server_group(
        self,
        domain_ctx: ConnectionContext,
        oracle: FakeOracle,
        enumerator: FakeEnumerator,
    ) -> None:
        enumerator.add("server-group", ["main-server-group", "other-server-group"])
        oracle.allow("deploy", "/deployment=*")
        oracle.allow("add", "/deployment=*", scope="/server-group=other-server-group")
        deploy = deploy_requirements(domain_ctx).deploy
        assert deploy.is_satisfied(domain_ctx)
        assert ("/", "/deployment=*", "deploy") not in oracle.calls

    def test_builtin_commands(
        self, catalog: CommandAccessCatalog, ctx: ConnectionContext, oracle: FakeOracle
    ) -> None:
        oracle.allow("add", "/deployment=*").allow("read-children-names")
        register_builtin_commands(catalog, ctx)
        assert catalog.available_commands(ctx) == ["deploy"]
        assert catalog.available_options(ctx, "deploy") == ["--list"]
        assert ctx.current_mode() is ControllerMode.STANDALONE
