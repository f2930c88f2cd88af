"""
Pytest fixtures for the RPC conformance harness tests.
"""
import json
import time

import pytest
from eth_account import Account

from rpc_conformance.config import HarnessConfig, HarnessSettings
from rpc_conformance.poller import ConfirmationPoller
from rpc_conformance.rpc import RpcGateway
from rpc_conformance.scenarios import Harness
from rpc_conformance.submitter import TxSubmitter
from rpc_conformance.topology import TopologyBuilder

from tests.test_helpers import (
    FakeClock, FakeNode, StubWallets, TEST_ENDPOINT, TEST_NID, make_props,
)

KEYSTORE_PASSWORD = "gochain"


# Make time.sleep instantaneous so polling doesn't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture
def write_keystore(tmp_path):
    """
    Factory writing an encrypted keystore file and returning (path, private key).

    Uses a cheap KDF so the suite stays fast.
    """
    def _write(name: str = "wallet.json", password: str = KEYSTORE_PASSWORD):
        account = Account.create()
        keyfile = Account.encrypt(account.key, password, kdf="pbkdf2", iterations=2)
        path = tmp_path / name
        path.write_text(json.dumps(keyfile))
        return path, bytes(account.key)
    return _write


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def stub_wallets():
    return StubWallets()


@pytest.fixture
def topology(stub_wallets):
    builder = TopologyBuilder(wallet_loader=stub_wallets.load, wallet_factory=stub_wallets.create)
    return builder.build(make_props())


@pytest.fixture
def harness_config(topology, tmp_path):
    return HarnessConfig(
        topology=topology,
        settings=HarnessSettings(waiting_time=5, poll_interval=0.5),
        env_file=tmp_path / "env.properties",
    )


@pytest.fixture
def fake_node(requests_mock):
    return FakeNode(TEST_ENDPOINT, TEST_NID).register(requests_mock)


@pytest.fixture
def harness(harness_config, fake_node, fake_clock):
    """Harness on the default channel, talking to the fake node with a fake clock."""
    channel = harness_config.topology.default_channel()
    gateway = RpcGateway(channel.api_url(harness_config.settings.api_version))
    poller = ConfirmationPoller(
        gateway,
        waiting_time=harness_config.settings.waiting_time,
        poll_interval=harness_config.settings.poll_interval,
        clock=fake_clock,
        sleep=fake_clock.sleep,
    )
    submitter = TxSubmitter(gateway, nid=channel.chain.nid)
    return Harness(channel=channel, gateway=gateway, submitter=submitter, poller=poller)
