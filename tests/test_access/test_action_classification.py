"""Tests for addresses, effect classification and actions."""
from __future__ import annotations

import pytest

from aumos_domain_access.access.action import (
    ALL_EFFECTS,
    Action,
    ActionEffect,
    OperationEntry,
    classify_effects,
    ordered,
)
from aumos_domain_access.access.address import REDACTED, Address


# ---------------------------------------------------------------------------
# Address
# ---------------------------------------------------------------------------

class TestAddress:
    def test_root_renders_as_slash(self) -> None:
        assert str(Address.ROOT) == "/"
        assert Address.ROOT.is_root

    def test_of_renders_elements_in_order(self) -> None:
        address = Address.of(("host", "master"), ("server", "one"))
        assert str(address) == "/host=master/server=one"

    def test_from_string_parses_canonical_form(self) -> None:
        address = Address.from_string("/subsystem=logging/logger=root")
        assert address == Address.of(("subsystem", "logging"), ("logger", "root"))

    def test_from_string_slash_is_root(self) -> None:
        assert Address.from_string("/") == Address.ROOT

    def test_from_string_rejects_segment_without_separator(self) -> None:
        with pytest.raises(ValueError, match="Malformed"):
            Address.from_string("/subsystem")

    def test_prefixes_shortest_first(self) -> None:
        address = Address.of(("a", "1"), ("b", "2"), ("c", "3"))
        assert [str(p) for p in address.prefixes()] == ["/a=1", "/a=1/b=2", "/a=1/b=2/c=3"]

    def test_root_has_no_prefixes(self) -> None:
        assert Address.ROOT.prefixes() == []

    def test_redact_from_hides_remaining_values(self) -> None:
        address = Address.of(("a", "1"), ("b", "2"), ("c", "3"))
        assert str(address.redact_from(1)) == f"/a=1/b={REDACTED}/c={REDACTED}"

    def test_append_and_concat(self) -> None:
        base = Address.of(("host", "master"))
        assert base.append("server", "one") == base.concat(Address.of(("server", "one")))

    def test_value_of(self) -> None:
        address = Address.of(("host", "master"), ("server", "one"))
        assert address.value_of("server") == "one"
        assert address.value_of("profile") is None

    def test_addresses_are_hashable(self) -> None:
        assert len({Address.of(("a", "1")), Address.of(("a", "1"))}) == 1


# ---------------------------------------------------------------------------
# classify_effects
# ---------------------------------------------------------------------------

class TestClassifyEffects:
    def test_runtime_only_read_only(self) -> None:
        entry = OperationEntry("read-metrics", read_only=True, runtime_only=True)
        assert classify_effects(entry) == {ActionEffect.ADDRESS, ActionEffect.READ_RUNTIME}

    def test_runtime_only_writable(self) -> None:
        entry = OperationEntry("flush-pool", runtime_only=True)
        assert classify_effects(entry) == {
            ActionEffect.ADDRESS,
            ActionEffect.READ_RUNTIME,
            ActionEffect.WRITE_RUNTIME,
        }

    def test_read_only_config(self) -> None:
        entry = OperationEntry("read-resource", read_only=True)
        assert classify_effects(entry) == {
            ActionEffect.ADDRESS,
            ActionEffect.READ_CONFIG,
            ActionEffect.READ_RUNTIME,
        }

    def test_full_read_write_yields_all_five(self) -> None:
        assert classify_effects(OperationEntry("write-attribute")) == ALL_EFFECTS
        assert len(ALL_EFFECTS) == 5

    def test_unknown_operation_has_no_effects(self) -> None:
        assert classify_effects(None) == frozenset()

    def test_ordered_puts_address_first(self) -> None:
        effects = frozenset({ActionEffect.WRITE_RUNTIME, ActionEffect.ADDRESS})
        assert ordered(effects) == [ActionEffect.ADDRESS, ActionEffect.WRITE_RUNTIME]


# ---------------------------------------------------------------------------
# Action
# ---------------------------------------------------------------------------

class TestAction:
    def test_for_operation_derives_effects(self) -> None:
        address = Address.of(("subsystem", "logging"))
        action = Action.for_operation(address, OperationEntry("read-resource", read_only=True))
        assert action.operation_name == "read-resource"
        assert action.address == address
        assert not action.has_effect(ActionEffect.WRITE_CONFIG)

    def test_limit_action_narrows_to_one_effect(self) -> None:
        action = Action.for_operation(Address.ROOT, OperationEntry("write-attribute"))
        narrowed = action.limit_action(ActionEffect.READ_CONFIG)
        assert narrowed.effects == {ActionEffect.READ_CONFIG}
        assert narrowed.operation_name == action.operation_name
        assert action.effects == ALL_EFFECTS

    def test_limit_action_on_unknown_operation(self) -> None:
        probe = Action.unknown(Address.of(("a", "1"))).limit_action(ActionEffect.ADDRESS)
        assert probe.effects == {ActionEffect.ADDRESS}

    def test_unknown_action_has_no_operation_constraints(self) -> None:
        assert Action.unknown(Address.ROOT).operation_constraints == ()

    def test_ordered_effects_property(self) -> None:
        action = Action.for_operation(
            Address.ROOT, OperationEntry("flush", runtime_only=True)
        )
        assert action.ordered_effects == [
            ActionEffect.ADDRESS,
            ActionEffect.READ_RUNTIME,
            ActionEffect.WRITE_RUNTIME,
        ]

    def test_effect_read_write_flags(self) -> None:
        assert ActionEffect.READ_CONFIG.is_read
        assert ActionEffect.WRITE_RUNTIME.is_write
        assert not ActionEffect.ADDRESS.is_read
        assert not ActionEffect.ADDRESS.is_write
