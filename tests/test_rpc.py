"""
Tests for the JSON-RPC gateway.
"""
import pytest
import requests

from rpc_conformance.exceptions import RpcError
from rpc_conformance.models import ConfirmedTransaction, Receipt
from rpc_conformance.rpc import (
    EXECUTING_CODE, NOT_FOUND_CODE, PENDING_CODE, LookupResult, LookupStatus, RpcGateway,
)

from tests.test_helpers import TEST_ENDPOINT


TX_HASH = "0x" + "ab" * 32


def rpc_error(code, message="error"):
    return {"jsonrpc": "2.0", "id": 1, "error": {"code": code, "message": message}}


def rpc_result(result):
    return {"jsonrpc": "2.0", "id": 1, "result": result}


@pytest.fixture
def gateway():
    return RpcGateway(TEST_ENDPOINT, retry_count=0)


class TestCall:
    def test_returns_result(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, json=rpc_result("0x10"))
        assert gateway.call("icx_getBalance", {"address": "hx"}) == "0x10"

        body = requests_mock.last_request.json()
        assert body["jsonrpc"] == "2.0"
        assert body["method"] == "icx_getBalance"
        assert body["params"] == {"address": "hx"}

    def test_request_ids_increase(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, json=rpc_result(None))
        gateway.call("a")
        gateway.call("b")
        ids = [r.json()["id"] for r in requests_mock.request_history]
        assert ids == [1, 2]

    def test_params_omitted_when_none(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, json=rpc_result(None))
        gateway.call("icx_getLastBlock")
        assert "params" not in requests_mock.last_request.json()

    def test_error_object(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, json=rpc_error(-32602, "Invalid params"), status_code=400)
        with pytest.raises(RpcError, match="Invalid params") as exc_info:
            gateway.call("icx_sendTransaction", {})
        assert exc_info.value.code == -32602

    def test_invalid_json(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, text="<html>bad gateway</html>", status_code=502)
        with pytest.raises(RpcError, match="Invalid JSON"):
            gateway.call("icx_getBalance")

    def test_non_object_body(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, json=[1, 2])
        with pytest.raises(RpcError, match="Unexpected response"):
            gateway.call("icx_getBalance")

    def test_missing_result(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, json={"jsonrpc": "2.0", "id": 1})
        with pytest.raises(RpcError, match="neither result nor error"):
            gateway.call("icx_getBalance")

    def test_connection_error(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, exc=requests.exceptions.ConnectionError("refused"))
        with pytest.raises(RpcError, match="refused") as exc_info:
            gateway.call("icx_getBalance")
        assert exc_info.value.code is None


class TestLookup:
    @pytest.mark.parametrize("code", [PENDING_CODE, EXECUTING_CODE, NOT_FOUND_CODE])
    def test_transient_codes_are_pending(self, gateway, requests_mock, code):
        requests_mock.post(TEST_ENDPOINT, json=rpc_error(code))
        result = gateway.lookup_transaction_result(TX_HASH)
        assert result.status == LookupStatus.PENDING
        assert result.error.code == code
        assert result.artifact is None

    @pytest.mark.parametrize("code", [-32000, -32602, -31000])
    def test_other_codes_are_fatal(self, gateway, requests_mock, code):
        requests_mock.post(TEST_ENDPOINT, json=rpc_error(code))
        result = gateway.lookup_transaction_result(TX_HASH)
        assert result.status == LookupStatus.FATAL
        assert result.error.code == code

    def test_transport_failure_is_fatal(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, exc=requests.exceptions.ConnectTimeout)
        assert gateway.lookup_transaction(TX_HASH).status == LookupStatus.FATAL

    def test_found_receipt(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, json=rpc_result({"status": "0x1", "txHash": TX_HASH}))
        result = gateway.lookup_transaction_result(TX_HASH)
        assert result.status == LookupStatus.FOUND
        assert isinstance(result.artifact, Receipt)
        assert result.artifact.tx_hash == TX_HASH
        assert requests_mock.last_request.json()["params"] == {"txHash": TX_HASH}

    def test_found_transaction(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, json=rpc_result({"txHash": TX_HASH, "nid": "0x3"}))
        result = gateway.lookup_transaction(TX_HASH)
        assert isinstance(result.artifact, ConfirmedTransaction)
        assert result.artifact.nid == 3
        assert requests_mock.last_request.json()["method"] == "icx_getTransactionByHash"

    def test_malformed_receipt_is_fatal(self, gateway, requests_mock):
        requests_mock.post(TEST_ENDPOINT, json=rpc_result({"txHash": TX_HASH}))
        result = gateway.lookup_transaction_result(TX_HASH)
        assert result.status == LookupStatus.FATAL
        assert "Malformed" in str(result.error)


def test_lookup_result_constructors():
    error = RpcError("x", code=PENDING_CODE)
    assert LookupResult.pending(error).status == LookupStatus.PENDING
    assert LookupResult.fatal(error).error is error
    receipt = Receipt(status=1)
    assert LookupResult.found(receipt).artifact is receipt


def test_get_balance(gateway, requests_mock):
    requests_mock.post(TEST_ENDPOINT, json=rpc_result("0xde0b6b3a7640000"))
    assert gateway.get_balance("hx" + "0" * 40) == 10 ** 18


def test_send_transaction(gateway, requests_mock):
    requests_mock.post(TEST_ENDPOINT, json=rpc_result(TX_HASH))
    assert gateway.send_transaction({"from": "hx"}) == TX_HASH
    assert requests_mock.last_request.json()["method"] == "icx_sendTransaction"


def test_custom_session_is_used(requests_mock):
    session = requests.Session()
    gateway = RpcGateway(TEST_ENDPOINT, session=session)
    assert gateway.session is session
