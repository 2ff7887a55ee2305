"""JSON-RPC collaborators exercised against an httpx.MockTransport node."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

import httpx
import pytest
from eth_account import Account
from eth_utils import function_signature_to_4byte_selector

from flarebank.chain.abi import (
    decode_function_result,
    encode_function_call,
    load_abi,
)
from flarebank.chain.rpc import JsonRpcClient, RpcQueryService
from flarebank.chain.tx import LocalSigner
from flarebank.chain.watcher import ReceiptWatcher
from flarebank.config import Settings
from flarebank.core.errors import (
    ConfirmationTimeout,
    NetworkError,
    RejectionError,
    RpcError,
)
from flarebank.core.lifecycle import LifecycleStage
from flarebank.core.models import BankContract, SignalKind, TransactionHandle
from flarebank.session import open_session

from .conftest import ALICE, BANK, ETHER

pytestmark = pytest.mark.anyio

RPC_URL = "http://node.test/rpc"


def _word(value: int) -> str:
    return "0x" + value.to_bytes(32, "big").hex()


def _selector(signature: str) -> str:
    return "0x" + function_signature_to_4byte_selector(signature).hex()


class Fault:
    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message


class FakeNode:
    """Answers JSON-RPC methods from a table of values or callables."""

    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.requests: list[dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        result = self.responses[body["method"]]
        if callable(result):
            result = result(body["params"])
        if isinstance(result, Fault):
            payload = {"code": result.code, "message": result.message}
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": payload})
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": result})

    def methods(self) -> list[str]:
        return [r["method"] for r in self.requests]


def _client(handler) -> JsonRpcClient:
    return JsonRpcClient(RPC_URL, transport=httpx.MockTransport(handler))


class TestAbi:
    def test_embedded_abi_has_bank_functions(self) -> None:
        names = {entry["name"] for entry in load_abi()}
        assert names == {"deposit", "withdraw", "getBankBalance", "getMyBalance"}

    def test_encode_withdraw(self) -> None:
        calldata = encode_function_call(load_abi(), "withdraw", (5,))
        assert calldata == _selector("withdraw(uint256)") + _word(5)[2:]

    def test_encode_rejects_wrong_arity(self) -> None:
        with pytest.raises(ValueError):
            encode_function_call(load_abi(), "withdraw", ())

    def test_unknown_function(self) -> None:
        with pytest.raises(ValueError, match="not found"):
            encode_function_call(load_abi(), "steal", ())

    def test_decode_empty_result(self) -> None:
        assert decode_function_result(load_abi(), "getBankBalance", "0x") is None

    def test_load_abi_from_artifact(self, tmp_path) -> None:
        artifact = tmp_path / "Bank.json"
        artifact.write_text(json.dumps({"abi": load_abi()[:1]}), encoding="utf-8")
        assert [e["name"] for e in load_abi(artifact)] == ["deposit"]

    def test_load_abi_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_abi(tmp_path / "missing.json")


class TestJsonRpcClient:
    async def test_result(self) -> None:
        node = FakeNode({"eth_chainId": "0x72"})
        async with _client(node) as rpc:
            assert await rpc.get_chain_id() == 114
        assert node.requests[0]["jsonrpc"] == "2.0"

    async def test_error_object_raises_rpc_error(self) -> None:
        node = FakeNode({"eth_sendRawTransaction": Fault(-32000, "nonce too low")})
        async with _client(node) as rpc:
            with pytest.raises(RpcError) as excinfo:
                await rpc.send_raw_transaction("0x00")
        assert excinfo.value.code == -32000
        assert isinstance(excinfo.value, RejectionError)

    async def test_transport_failure_raises_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as rpc:
            with pytest.raises(NetworkError):
                await rpc.get_gas_price()

    async def test_http_error_status_raises_network_error(self) -> None:
        async with _client(lambda request: httpx.Response(502)) as rpc:
            with pytest.raises(NetworkError):
                await rpc.get_gas_price()

    async def test_invalid_json_raises_network_error(self) -> None:
        async with _client(lambda request: httpx.Response(200, text="<html>")) as rpc:
            with pytest.raises(NetworkError):
                await rpc.get_gas_price()


class TestQueryService:
    async def test_identity_view_sets_from(self) -> None:
        node = FakeNode({"eth_call": _word(40 * ETHER)})
        contract = BankContract(BANK, load_abi())
        async with _client(node) as rpc:
            value = await RpcQueryService(rpc).call(contract.identity_view(), ALICE)

        assert value == 40 * ETHER
        tx, block = node.requests[0]["params"]
        assert tx == {"to": BANK, "data": _selector("getMyBalance()"), "from": ALICE}
        assert block == "latest"

    async def test_aggregate_view_has_no_from(self) -> None:
        node = FakeNode({"eth_call": _word(7)})
        contract = BankContract(BANK, load_abi())
        async with _client(node) as rpc:
            assert await RpcQueryService(rpc).call(contract.aggregate_view()) == 7
        assert "from" not in node.requests[0]["params"][0]

    async def test_empty_result_is_none(self) -> None:
        node = FakeNode({"eth_call": "0x"})
        contract = BankContract(BANK, load_abi())
        async with _client(node) as rpc:
            assert await RpcQueryService(rpc).call(contract.aggregate_view()) is None

    async def test_truncated_result_is_value_error(self) -> None:
        node = FakeNode({"eth_call": "0x1234"})
        contract = BankContract(BANK, load_abi())
        async with _client(node) as rpc:
            with pytest.raises(ValueError):
                await RpcQueryService(rpc).call(contract.aggregate_view())


class TestReceiptWatcher:
    async def test_pending_then_included(self) -> None:
        receipts = [None, None, {"status": "0x1", "blockNumber": "0x10"}]
        node = FakeNode({"eth_getTransactionReceipt": lambda params: receipts.pop(0)})
        async with _client(node) as rpc:
            watcher = ReceiptWatcher(rpc, poll_interval=0)
            kinds = [s.kind async for s in watcher.signals(TransactionHandle("0xaa"))]
        assert kinds == [SignalKind.PENDING, SignalKind.PENDING, SignalKind.INCLUDED]

    async def test_reverted_receipt(self) -> None:
        node = FakeNode({"eth_getTransactionReceipt": {"status": "0x0"}})
        async with _client(node) as rpc:
            watcher = ReceiptWatcher(rpc, poll_interval=0)
            signals = [s async for s in watcher.signals(TransactionHandle("0xaa"))]
        assert [s.kind for s in signals] == [SignalKind.EXECUTION_FAILED]
        assert signals[0].receipt == {"status": "0x0"}

    async def test_timeout(self) -> None:
        node = FakeNode({"eth_getTransactionReceipt": None})
        async with _client(node) as rpc:
            watcher = ReceiptWatcher(rpc, poll_interval=0, timeout=0)
            with pytest.raises(ConfirmationTimeout):
                async for _ in watcher.signals(TransactionHandle("0xaa")):
                    pass


class TestLocalSigner:
    async def test_signs_and_sends(self) -> None:
        account = Account.create()
        sent: list[str] = []

        def send(params):
            sent.append(params[0])
            return "0x" + "ab" * 32

        node = FakeNode(
            {
                "eth_getTransactionCount": "0x3",
                "eth_gasPrice": "0x3b9aca00",
                "eth_sendRawTransaction": send,
            }
        )
        contract = BankContract(BANK, load_abi())
        async with _client(node) as rpc:
            signer = LocalSigner(rpc, account, chain_id=114)
            handle = await signer.broadcast(contract.deposit_call(ETHER))

        assert handle == TransactionHandle("0x" + "ab" * 32)
        assert node.methods() == [
            "eth_getTransactionCount",
            "eth_gasPrice",
            "eth_sendRawTransaction",
        ]
        assert sent[0].startswith("0x")
        assert Account.recover_transaction(sent[0]) == account.address

    async def test_without_key_rejects(self) -> None:
        node = FakeNode({})
        contract = BankContract(BANK, load_abi())
        async with _client(node) as rpc:
            with pytest.raises(RejectionError):
                await LocalSigner(rpc, None, chain_id=114).broadcast(contract.withdraw_call(1))
        assert node.requests == []


class TestOpenSession:
    async def test_deposit_end_to_end(self) -> None:
        account = Account.create()
        ledger = {"bank": 100 * ETHER, "mine": 0}
        receipts = [None, {"status": "0x1"}]

        def eth_call(params):
            data = params[0]["data"]
            if data == _selector("getBankBalance()"):
                return _word(ledger["bank"])
            assert params[0]["from"] == account.address
            return _word(ledger["mine"])

        def receipt(params):
            result = receipts.pop(0)
            if result is not None:
                ledger["bank"] += 2 * ETHER
                ledger["mine"] += 2 * ETHER
            return result

        node = FakeNode(
            {
                "eth_call": eth_call,
                "eth_getTransactionCount": "0x0",
                "eth_gasPrice": "0x1",
                "eth_sendRawTransaction": "0x" + "cd" * 32,
                "eth_getTransactionReceipt": receipt,
            }
        )
        settings = Settings(contract_address=BANK, poll_interval=0)

        async with open_session(settings, account, transport=httpx.MockTransport(node)) as session:
            first = await session.refresh()
            assert first.data.identity.is_known
            assert first.data.identity_balance == Decimal(0)

            outcome = await session.deposit("2")
            assert outcome.ok
            state = await session.manager.wait_until_settled()

            assert state.stage is LifecycleStage.CONFIRMED
            snap = session.snapshot()
            assert snap.data.as_display() == {"bankBalance": "102", "myBalance": "2"}

    async def test_read_only_session_without_account(self) -> None:
        node = FakeNode({"eth_call": _word(5 * ETHER)})
        settings = Settings(contract_address=BANK)
        async with open_session(settings, None, transport=httpx.MockTransport(node)) as session:
            snap = await session.refresh()
            assert session.identity is None
            assert snap.data.aggregate_balance == Decimal(5)
            assert not snap.data.identity.is_known

            outcome = await session.withdraw("1")
            assert isinstance(outcome.error, RejectionError)
            assert snap.status.stage is LifecycleStage.IDLE
            assert session.snapshot().status.is_failed
