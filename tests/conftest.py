"""Shared fixtures for the screener tests.

All tests are network-isolated: socket connections are blocked by default.
"""
from __future__ import annotations

import socket
from typing import Dict

import pytest

from mining_screener.core.catalog import MetricCatalog
from mining_screener.core.metrics import MetricRange
from tests.support.factories import make_metric


def _blocked_socket_connect(self, *args, **kwargs):
    raise RuntimeError(
        "Tests must not make network connections! "
        f"Use mocks instead. Attempted connection to: {args}"
    )


@pytest.fixture(autouse=True)
def block_network_access(monkeypatch):
    monkeypatch.setattr(socket.socket, "connect", _blocked_socket_connect)
    yield


@pytest.fixture
def catalog() -> MetricCatalog:
    return MetricCatalog(
        [
            make_metric("revenue", tier="free"),
            make_metric("debt", tier="medium", higher_is_better=False),
            make_metric("ebitda", tier="premium"),
        ]
    )


@pytest.fixture
def ranges() -> Dict[str, MetricRange]:
    return {
        "revenue": MetricRange(0.0, 100.0),
        "debt": MetricRange(0.0, 50.0),
        "ebitda": MetricRange(-10.0, 10.0),
    }
