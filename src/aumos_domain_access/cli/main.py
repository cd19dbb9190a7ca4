"""CLI entry point for aumos-domain-access.

Invoked as::

    domain-access [OPTIONS] COMMAND [ARGS]...

or during development::

    python -m aumos_domain_access.cli.main

Commands
--------
- effects   Show the effects an operation is classified into
- check     Authorize one operation for an identity against a config
- redact    Show how an address renders for an identity
- version   Show version information
"""
from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

from aumos_domain_access.access.action import (
    ALL_EFFECTS,
    EFFECT_ORDER,
    Action,
    OperationEntry,
    classify_effects,
    ordered,
)
from aumos_domain_access.access.address import Address
from aumos_domain_access.access.authorizer import (
    Environment,
    ResourceAuthorization,
    authorize_address_incrementally,
)
from aumos_domain_access.access.config import (
    AccessConfigError,
    AccessConfigLoader,
    AccessControlConfig,
)
from aumos_domain_access.access.constraints import (
    AccessConstraintRegistry,
    SensitivityClassification,
)
from aumos_domain_access.access.target import TargetResource

console = Console()
err_console = Console(stderr=True)

_PROCESS_TYPES = ["standalone", "domain-controller", "host-controller", "server"]


def _load_config(config_path: str) -> AccessControlConfig:
    try:
        return AccessConfigLoader().load(Path(config_path))
    except AccessConfigError as exc:
        err_console.print(f"[red]Invalid config:[/red] {exc}")
        sys.exit(2)


def _parse_address(text: str) -> Address:
    try:
        return Address.from_string(text)
    except ValueError as exc:
        err_console.print(f"[red]Invalid address:[/red] {exc}")
        sys.exit(2)


# ---------------------------------------------------------------------------
# Root command group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumos-domain-access")
def cli() -> None:
    """Domain Access CLI: effect classification, authorization and redaction."""


# ---------------------------------------------------------------------------
# version
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from aumos_domain_access import __version__

    console.print(
        Panel(
            f"[bold]aumos-domain-access[/bold]  v[cyan]{__version__}[/cyan]\n"
            "Access-control decisions for clustered application-server management.",
            title="Version",
            border_style="blue",
        )
    )


# ---------------------------------------------------------------------------
# effects
# ---------------------------------------------------------------------------


@cli.command(name="effects")
@click.option("--operation", "-o", default="operation", show_default=True, help="Operation name.")
@click.option("--read-only", is_flag=True, help="The operation does not modify state.")
@click.option("--runtime-only", is_flag=True, help="The operation touches runtime state only.")
def effects_command(operation: str, read_only: bool, runtime_only: bool) -> None:
    """Show which effects an operation is classified into."""
    entry = OperationEntry(operation, read_only=read_only, runtime_only=runtime_only)
    effects = classify_effects(entry)

    table = Table(title=f"Effects of '{operation}'", box=box.SIMPLE)
    table.add_column("Effect", style="cyan")
    table.add_column("Applies")
    for effect in EFFECT_ORDER:
        applies = "[green]yes[/green]" if effect in effects else "[dim]no[/dim]"
        table.add_row(effect.value, applies)
    console.print(table)


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.argument("config_path", type=click.Path(exists=True))
@click.option("--identity", "-i", required=True, help="Principal to authorize.")
@click.option("--operation", "-o", required=True, help="Operation name.")
@click.option("--address", "-a", "address_text", default="/", show_default=True, help="Target address.")
@click.option("--read-only", is_flag=True, help="The operation does not modify state.")
@click.option("--runtime-only", is_flag=True, help="The operation touches runtime state only.")
@click.option(
    "--constraint",
    "-c",
    "constraint_names",
    multiple=True,
    help="Name of a configured constraint attached to the target. Repeatable.",
)
@click.option(
    "--process-type",
    type=click.Choice(_PROCESS_TYPES),
    default="standalone",
    show_default=True,
    help="Process the decision is made in.",
)
def check_command(
    config_path: str,
    identity: str,
    operation: str,
    address_text: str,
    read_only: bool,
    runtime_only: bool,
    constraint_names: tuple[str, ...],
    process_type: str,
) -> None:
    """Authorize one operation for IDENTITY against CONFIG_PATH."""
    config = _load_config(config_path)
    address = _parse_address(address_text)

    registry = AccessConstraintRegistry()
    known = config.register_constraints(registry)
    missing = [name for name in constraint_names if name not in known]
    if missing:
        err_console.print(f"[red]Unknown constraint(s):[/red] {', '.join(missing)}")
        sys.exit(2)

    authorizer = config.build_authorizer(registry)
    caller = config.caller(identity)
    environment = Environment(process_type=process_type)
    entry = OperationEntry(operation, read_only=read_only, runtime_only=runtime_only)
    action = Action.for_operation(address, entry)
    target = TargetResource(address, tuple(known[name] for name in constraint_names))

    result = authorizer.authorize(caller, environment, action, target)

    status_str = "[green]PERMITTED[/green]" if result.is_permitted else "[red]DENIED[/red]"
    console.print(Panel(status_str, title="Authorization Result", border_style="blue"))
    console.print(f"  Identity: [cyan]{identity}[/cyan]  roles: {sorted(r.value for r in caller.roles)}")
    console.print(f"  Operation: [cyan]{operation}[/cyan] at [bold]{address}[/bold]")
    if result.explanation is not None:
        console.print(f"  Reason: [bold red]{result.explanation}[/bold red]")

    per_effect = ResourceAuthorization(authorizer, caller, environment, action, target)
    table = Table(title="Per-effect Results", box=box.SIMPLE)
    table.add_column("Effect", style="cyan")
    table.add_column("Decision")
    table.add_column("Reason")
    for effect in ordered(action.effects or ALL_EFFECTS):
        effect_result = per_effect.result_for(effect)
        decision = "[green]permit[/green]" if effect_result.is_permitted else "[red]deny[/red]"
        table.add_row(effect.value, decision, str(effect_result.explanation or ""))
    console.print(table)

    sys.exit(0 if result.is_permitted else 1)


# ---------------------------------------------------------------------------
# redact
# ---------------------------------------------------------------------------


@cli.command(name="redact")
@click.argument("config_path", type=click.Path(exists=True))
@click.option("--identity", "-i", required=True, help="Principal the address is rendered for.")
@click.option("--address", "-a", "address_text", required=True, help="Address to render.")
@click.option(
    "--hidden",
    "hidden_prefixes",
    multiple=True,
    help="Address prefix whose existence is sensitive. Repeatable.",
)
def redact_command(
    config_path: str,
    identity: str,
    address_text: str,
    hidden_prefixes: tuple[str, ...],
) -> None:
    """Render ADDRESS as IDENTITY may see it."""
    config = _load_config(config_path)
    address = _parse_address(address_text)
    hidden = {_parse_address(text) for text in hidden_prefixes}

    registry = AccessConstraintRegistry()
    config.register_constraints(registry)
    hidden_constraint = registry.register(
        SensitivityClassification(
            "hidden-resource",
            description="Resources whose existence is sensitive",
            requires_addressable=True,
        )
    )

    def target_for(prefix: Address) -> TargetResource:
        if prefix in hidden:
            return TargetResource(prefix, (hidden_constraint,))
        return TargetResource(prefix)

    rendered = authorize_address_incrementally(
        config.build_authorizer(registry),
        config.caller(identity),
        Environment(),
        address,
        target_factory=target_for,
        placeholder=config.redaction_placeholder,
    )
    console.print(str(rendered))


if __name__ == "__main__":
    cli()
