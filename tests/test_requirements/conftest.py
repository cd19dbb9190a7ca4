"""Shared fakes for the requirement evaluator tests."""
from __future__ import annotations

import pytest

from aumos_domain_access.access.address import Address
from aumos_domain_access.requirements.connection import (
    ConnectionContext,
    ControllerMode,
    RemoteQueryError,
)


class FakeOracle:
    """Oracle answering from an allow-list and recording every query."""

    def __init__(self) -> None:
        self.allowed: set[tuple[str, str, str]] = set()
        self.failing: set[str] = set()
        self.calls: list[tuple[str, str, str]] = []

    def allow(self, operation: str, address: str = "/", scope: str = "/") -> FakeOracle:
        self.allowed.add((scope, address, operation))
        return self

    def fail_for(self, scope: str) -> FakeOracle:
        self.failing.add(scope)
        return self

    def is_executable(self, scope_prefix: Address, address: Address, operation: str) -> bool:
        key = (str(scope_prefix), str(address), operation)
        self.calls.append(key)
        if key[0] in self.failing:
            raise RemoteQueryError(f"lost contact with {key[0]}", address)
        return key in self.allowed


class FakeEnumerator:
    """Enumerator serving fixed child lists and recording every query."""

    def __init__(self) -> None:
        self.children: dict[tuple[str, str], list[str]] = {}
        self.calls: list[tuple[str, str]] = []

    def add(self, node_type: str, names: list[str], parent: str = "/") -> FakeEnumerator:
        self.children[(parent, node_type)] = list(names)
        return self

    def list_child_names(self, parent: Address, node_type: str) -> list[str]:
        key = (str(parent), node_type)
        self.calls.append(key)
        return list(self.children.get(key, []))


@pytest.fixture()
def oracle() -> FakeOracle:
    return FakeOracle()


@pytest.fixture()
def enumerator() -> FakeEnumerator:
    return FakeEnumerator()


@pytest.fixture()
def ctx(oracle: FakeOracle, enumerator: FakeEnumerator) -> ConnectionContext:
    return ConnectionContext(oracle, enumerator, connection_id="test-connection")


@pytest.fixture()
def domain_ctx(oracle: FakeOracle, enumerator: FakeEnumerator) -> ConnectionContext:
    return ConnectionContext(oracle, enumerator, mode=ControllerMode.DOMAIN)
