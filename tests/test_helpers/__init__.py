"""
Shared helpers for the harness tests.
"""
from .fake_node import FakeNode, FakeClock, make_event_receipt
from .topology_factory import (
    TEST_NODE_URL, TEST_NID, TEST_ENDPOINT, StubWallets, make_props,
)

__all__ = [
    "FakeNode", "FakeClock", "make_event_receipt",
    "TEST_NODE_URL", "TEST_NID", "TEST_ENDPOINT", "StubWallets", "make_props",
]
