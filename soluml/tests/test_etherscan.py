"""Tests for the Etherscan source client.

HTTP is served by httpx.MockTransport; the Solidity parser is a stub.
"""

import json
from typing import List

import httpx
import pytest

from soluml.core.diagrams.models import ClassEntity
from soluml.core.errors import SourceFetchError, SourceParseError
from soluml.core.etherscan import EtherscanClient, SourceFile, SourceParser

_ADDRESS = "0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984"


# ── Fixtures ──────────────────────────────────────────────────────────────


class _StubParser(SourceParser):
    """Returns one entity per file, named after the file."""

    def __init__(self):
        self.calls = []

    def parse_source(self, source_text: str, filename: str) -> List[ClassEntity]:
        self.calls.append((source_text, filename))
        return [ClassEntity(id=str(len(self.calls)), name=filename, code_path=filename)]


class _BrokenParser(SourceParser):
    def parse_source(self, source_text, filename):
        raise SyntaxError("extraneous input")


def _client(payload=None, status_code=200, handler=None, **kwargs) -> EtherscanClient:
    def default_handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    transport = httpx.MockTransport(handler or default_handler)
    return EtherscanClient(api_key="KEY", client=httpx.Client(transport=transport), **kwargs)


def _result(source_code) -> dict:
    return {"status": "1", "message": "OK", "result": [{"SourceCode": source_code}]}


_BUNDLE = {
    "language": "Solidity",
    "sources": {
        "contracts/Token.sol": {"content": "contract Token {}"},
        "contracts/IERC20.sol": {"content": "interface IERC20 {}"},
    },
}


# ── Tests: Construction ───────────────────────────────────────────────────


class TestNetworks:
    def test_mainnet_url(self):
        assert EtherscanClient(api_key="k").url == "https://api.etherscan.io/api"

    def test_testnet_url(self):
        assert EtherscanClient(api_key="k", network="goerli").url == "https://api-goerli.etherscan.io/api"

    def test_invalid_network(self):
        with pytest.raises(ValueError, match="Invalid network"):
            EtherscanClient(api_key="k", network="polygon")

    def test_api_key_from_env(self, monkeypatch):
        monkeypatch.setenv("ETHERSCAN_API_KEY", "ENVKEY")
        seen = {}

        def handler(request):
            seen.update(request.url.params)
            return httpx.Response(200, json=_result("contract A {}"))

        client = EtherscanClient(client=httpx.Client(transport=httpx.MockTransport(handler)))
        client.get_source_code(_ADDRESS)

        assert seen["apikey"] == "ENVKEY"


# ── Tests: Source retrieval ───────────────────────────────────────────────


class TestGetSourceCode:
    def test_request_parameters(self):
        seen = {}

        def handler(request):
            seen["url"] = f"{request.url.scheme}://{request.url.host}{request.url.path}"
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=_result("contract A {}"))

        _client(handler=handler).get_source_code(_ADDRESS)

        assert seen["url"] == "https://api.etherscan.io/api"
        assert seen["params"] == {
            "module": "contract",
            "action": "getsourcecode",
            "address": _ADDRESS,
            "apikey": "KEY",
        }

    def test_single_file(self):
        files = _client(_result("contract A {}")).get_source_code(_ADDRESS)
        assert files == [SourceFile(code="contract A {}", filename=_ADDRESS)]

    def test_double_brace_bundle(self):
        source_code = "{" + json.dumps(_BUNDLE) + "}"
        files = _client(_result(source_code)).get_source_code(_ADDRESS)

        assert files == [
            SourceFile(code="contract Token {}", filename="contracts/Token.sol"),
            SourceFile(code="interface IERC20 {}", filename="contracts/IERC20.sol"),
        ]

    def test_plain_json_bundle(self):
        source_code = json.dumps({"Token.sol": {"content": "contract Token {}"}})
        files = _client(_result(source_code)).get_source_code(_ADDRESS)

        assert files == [SourceFile(code="contract Token {}", filename="Token.sol")]

    def test_no_result_array(self):
        payload = {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}

        with pytest.raises(SourceFetchError, match="No result array") as exc:
            _client(payload).get_source_code(_ADDRESS)

        assert exc.value.address == _ADDRESS
        assert exc.value.payload == payload

    def test_unverified_contract(self):
        with pytest.raises(SourceFetchError, match="not been verified"):
            _client(_result("")).get_source_code(_ADDRESS)

    def test_malformed_bundle(self):
        with pytest.raises(SourceFetchError, match="Failed to parse Solidity source code") as exc:
            _client(_result("{{not json}}")).get_source_code(_ADDRESS)

        assert exc.value.payload == "{{not json}}"

    def test_sources_not_a_mapping(self):
        source_code = '{{"sources": ["a.sol"]}}'

        with pytest.raises(SourceFetchError, match="no sources mapping") as exc:
            _client(_result(source_code)).get_source_code(_ADDRESS)

        assert exc.value.address == _ADDRESS
        assert exc.value.payload == {"sources": ["a.sol"]}

    def test_decoded_bundle_with_string_sources(self):
        with pytest.raises(SourceFetchError, match="no sources mapping"):
            _client(_result({"sources": "a.sol"})).get_source_code(_ADDRESS)

    def test_unexpected_source_code_type(self):
        with pytest.raises(SourceFetchError, match="Unexpected SourceCode type list"):
            _client(_result(["contract A {}"])).get_source_code(_ADDRESS)

    def test_http_error_status(self):
        with pytest.raises(SourceFetchError, match="HTTP status code 503"):
            _client({"error": "busy"}, status_code=503).get_source_code(_ADDRESS)

    def test_no_http_response(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SourceFetchError, match="No HTTP response") as exc:
            _client(handler=handler).get_source_code(_ADDRESS)

        assert isinstance(exc.value.__cause__, httpx.ConnectError)


# ── Tests: Parsing ────────────────────────────────────────────────────────


class TestGetClasses:
    def test_parses_every_file(self):
        parser = _StubParser()
        source_code = "{" + json.dumps(_BUNDLE) + "}"

        entities = _client(_result(source_code), parser=parser).get_classes(_ADDRESS)

        assert [e.code_path for e in entities] == ["contracts/Token.sol", "contracts/IERC20.sol"]
        assert parser.calls[0] == ("contract Token {}", "contracts/Token.sol")

    def test_parse_failure_carries_source(self):
        client = _client(_result("contract {"), parser=_BrokenParser())

        with pytest.raises(SourceParseError) as exc:
            client.get_classes(_ADDRESS)

        assert exc.value.source == "contract {"
        assert exc.value.filename == _ADDRESS
        assert isinstance(exc.value.__cause__, SyntaxError)

    def test_requires_parser(self):
        with pytest.raises(ValueError):
            _client(_result("contract A {}")).get_classes(_ADDRESS)


# ── Tests: Client lifecycle ───────────────────────────────────────────────


class TestClientLifecycle:
    def test_owned_client_closed_after_request(self, monkeypatch):
        created = []
        real_client = httpx.Client

        def make_client(**kwargs):
            transport = httpx.MockTransport(lambda request: httpx.Response(200, json=_result("contract A {}")))
            client = real_client(transport=transport, **kwargs)
            created.append(client)
            return client

        monkeypatch.setattr(httpx, "Client", make_client)
        etherscan = EtherscanClient(api_key="KEY")

        files = etherscan.get_source_code(_ADDRESS)

        assert files == [SourceFile(code="contract A {}", filename=_ADDRESS)]
        assert len(created) == 1
        assert created[0].is_closed

    def test_injected_client_left_open(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=_result("contract A {}")))
        http_client = httpx.Client(transport=transport)

        EtherscanClient(api_key="KEY", client=http_client).get_source_code(_ADDRESS)

        assert not http_client.is_closed
        http_client.close()
