"""Tests for the resumable per-node and two-level quantifiers."""
from __future__ import annotations

from typing import TYPE_CHECKING

from aumos_domain_access.access.address import Address
from aumos_domain_access.requirements.connection import ConnectionContext
from aumos_domain_access.requirements.quantifiers import (
    NodeScan,
    PerNodeQuantifier,
    ScanState,
    TriState,
    TwoLevelQuantifier,
)

if TYPE_CHECKING:
    from conftest import FakeEnumerator, FakeOracle


# ---------------------------------------------------------------------------
# NodeScan
# ---------------------------------------------------------------------------

class TestNodeScan:
    def test_advance_stops_at_first_true(self) -> None:
        probed: list[str] = []

        def probe(name: str) -> bool:
            probed.append(name)
            return name == "b"

        scan = NodeScan(["a", "b", "c"])
        assert scan.advance_until_true(probe)
        assert probed == ["a", "b"]
        assert scan.cursor == 2
        assert scan.checked == [TriState.FALSE, TriState.TRUE, TriState.UNKNOWN]

    def test_complete_resumes_at_cursor(self) -> None:
        probed: list[str] = []

        def probe(name: str) -> bool:
            probed.append(name)
            return name != "a"

        scan = NodeScan(["a", "b", "c"])
        scan.advance_until_true(probe)
        scan.complete(probe)
        assert probed == ["a", "b", "c"]
        assert scan.allowed() == ["b", "c"]
        assert scan.exhausted

    def test_advance_remembers_earlier_true(self) -> None:
        calls: list[str] = []

        def probe(name: str) -> bool:
            calls.append(name)
            return True

        scan = NodeScan(["a", "b"])
        scan.advance_until_true(probe)
        assert scan.advance_until_true(probe)
        assert calls == ["a"]

    def test_empty_scan(self) -> None:
        scan = NodeScan([])
        assert not scan.advance_until_true(lambda name: True)
        assert scan.allowed() == []


# ---------------------------------------------------------------------------
# PerNodeQuantifier
# ---------------------------------------------------------------------------

class TestPerNodeQuantifier:
    def test_resumable_enumeration(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("server-group", ["a", "b", "c"])
        oracle.allow("deploy", scope="/server-group=c")
        quantifier = PerNodeQuantifier("server-group", "deploy")

        assert quantifier.is_satisfied(ctx)
        assert len(oracle.calls) == 3
        assert quantifier.get_allowed(ctx) == ["c"]
        assert len(oracle.calls) == 3

    def test_get_allowed_completes_partial_scan(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("server-group", ["a", "b", "c"])
        oracle.allow("deploy", scope="/server-group=a")
        oracle.allow("deploy", scope="/server-group=c")
        quantifier = PerNodeQuantifier("server-group", "deploy")

        assert quantifier.is_satisfied(ctx)
        assert len(oracle.calls) == 1
        assert quantifier.scan_state(ctx) is ScanState.PARTIALLY_SCANNED
        assert quantifier.get_allowed(ctx) == ["a", "c"]
        assert [scope for scope, _, _ in oracle.calls] == [
            "/server-group=a",
            "/server-group=b",
            "/server-group=c",
        ]
        assert quantifier.scan_state(ctx) is ScanState.FULLY_SCANNED

    def test_allowed_list_cached(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("host", ["h1", "h2"])
        oracle.allow("reload", scope="/host=h2")
        quantifier = PerNodeQuantifier("host", "reload")
        quantifier.get_allowed(ctx)
        quantifier.get_allowed(ctx)
        assert len(oracle.calls) == 2
        assert len(enumerator.calls) == 1

    def test_get_allowed_first_sets_memo(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("host", ["h1"])
        oracle.allow("reload", scope="/host=h1")
        quantifier = PerNodeQuantifier("host", "reload")
        assert quantifier.get_allowed(ctx) == ["h1"]
        assert quantifier.is_satisfied(ctx)
        assert len(oracle.calls) == 1

    def test_no_instances_unsatisfiable(
        self, ctx: ConnectionContext, oracle: FakeOracle
    ) -> None:
        quantifier = PerNodeQuantifier("server-group", "deploy")
        assert not quantifier.is_satisfied(ctx)
        assert quantifier.get_allowed(ctx) == []
        assert oracle.calls == []

    def test_enumeration_order_preserved(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("server-group", ["zeta", "alpha", "mid"])
        for name in ("zeta", "alpha", "mid"):
            oracle.allow("deploy", scope=f"/server-group={name}")
        quantifier = PerNodeQuantifier("server-group", "deploy")
        assert quantifier.get_allowed(ctx) == ["zeta", "alpha", "mid"]

    def test_failing_instance_treated_as_denied(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("host", ["down", "up"])
        oracle.fail_for("/host=down").allow("reload", scope="/host=up")
        quantifier = PerNodeQuantifier("host", "reload")
        assert quantifier.is_satisfied(ctx)
        assert quantifier.get_allowed(ctx) == ["up"]

    def test_relative_address_passed_to_oracle(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("server-group", ["main"])
        oracle.allow("add", "/deployment=*", scope="/server-group=main")
        quantifier = PerNodeQuantifier("server-group", "add", Address.of(("deployment", "*")))
        assert quantifier.is_satisfied(ctx)

    def test_disconnect_resets_to_not_enumerated(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("host", ["h1"])
        quantifier = PerNodeQuantifier("host", "reload")
        assert not quantifier.is_satisfied(ctx)
        assert quantifier.scan_state(ctx) is ScanState.FULLY_SCANNED

        quantifier.on_disconnected(ctx)
        assert quantifier.scan_state(ctx) is ScanState.NOT_ENUMERATED

        oracle.allow("reload", scope="/host=h1")
        assert quantifier.is_satisfied(ctx)
        assert len(enumerator.calls) == 2


# ---------------------------------------------------------------------------
# TwoLevelQuantifier
# ---------------------------------------------------------------------------

class TestTwoLevelQuantifier:
    def _topology(self, enumerator: FakeEnumerator) -> None:
        enumerator.add("host", ["h1", "h2"])
        enumerator.add("server", ["s1", "s2"], parent="/host=h1")
        enumerator.add("server", ["s3"], parent="/host=h2")

    def test_early_exit_then_allowed_outer_without_rescan(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        self._topology(enumerator)
        oracle.allow("reload", scope="/host=h2/server=s3")
        quantifier = TwoLevelQuantifier("reload")

        assert quantifier.is_satisfied(ctx)
        assert [scope for scope, _, _ in oracle.calls] == [
            "/host=h1/server=s1",
            "/host=h1/server=s2",
            "/host=h2/server=s3",
        ]
        assert quantifier.get_allowed_outer(ctx) == ["h2"]
        assert len(oracle.calls) == 3
        assert len(enumerator.calls) == 3

    def test_later_hosts_deferred(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        self._topology(enumerator)
        oracle.allow("reload", scope="/host=h1/server=s1")
        oracle.allow("reload", scope="/host=h2/server=s3")
        quantifier = TwoLevelQuantifier("reload")

        assert quantifier.is_satisfied(ctx)
        assert len(oracle.calls) == 1
        assert quantifier.deferred_outer(ctx) == ["h2"]
        assert quantifier.scan_state(ctx) is ScanState.PARTIALLY_SCANNED

        assert quantifier.get_allowed_outer(ctx) == ["h1", "h2"]
        assert len(oracle.calls) == 3
        assert quantifier.deferred_outer(ctx) == []
        assert quantifier.scan_state(ctx) is ScanState.FULLY_SCANNED

    def test_allowed_inner_completes_one_host(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        self._topology(enumerator)
        oracle.allow("reload", scope="/host=h1/server=s1")
        oracle.allow("reload", scope="/host=h1/server=s2")
        quantifier = TwoLevelQuantifier("reload")

        assert quantifier.is_satisfied(ctx)
        assert quantifier.get_allowed_inner(ctx, "h1") == ["s1", "s2"]
        assert len(oracle.calls) == 2
        assert quantifier.deferred_outer(ctx) == ["h2"]

    def test_allowed_inner_unknown_host(
        self, ctx: ConnectionContext, enumerator: FakeEnumerator
    ) -> None:
        self._topology(enumerator)
        assert TwoLevelQuantifier("reload").get_allowed_inner(ctx, "h9") == []

    def test_unsatisfied_scans_everything_once(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        self._topology(enumerator)
        quantifier = TwoLevelQuantifier("reload")
        assert not quantifier.is_satisfied(ctx)
        assert quantifier.get_allowed_outer(ctx) == []
        assert len(oracle.calls) == 3

    def test_custom_levels(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        enumerator.add("profile", ["full"])
        enumerator.add("subsystem", ["logging"], parent="/profile=full")
        oracle.allow("read-resource", scope="/profile=full/subsystem=logging")
        quantifier = TwoLevelQuantifier(
            "read-resource", outer_type="profile", inner_type="subsystem"
        )
        assert quantifier.is_satisfied(ctx)
        assert quantifier.get_allowed_inner(ctx, "full") == ["logging"]

    def test_disconnect_resets(
        self, ctx: ConnectionContext, oracle: FakeOracle, enumerator: FakeEnumerator
    ) -> None:
        self._topology(enumerator)
        quantifier = TwoLevelQuantifier("reload")
        quantifier.is_satisfied(ctx)
        ctx.disconnected()
        assert quantifier.scan_state(ctx) is ScanState.NOT_ENUMERATED
