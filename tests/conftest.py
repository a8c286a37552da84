"""
Pytest configuration and shared fixtures.

No test talks to a real node: the HTTP transport used by every backend is
replaced by FakeTransport, which serves recorded chain state.
"""

from typing import Any, Dict, Optional

import pytest
import requests
from eth_abi import encode
from eth_utils import to_checksum_address

from resolution.errors import ResolutionError, ResolutionErrorCode
from resolution.naming_services import common
from resolution.naming_services.common import NamingService, has_suffix, normalize_ticker
from resolution.naming_services.ethereum import encode_call
from resolution.types import ResolutionMeta, ResolutionResponse

ZILLIQA_URL = "https://api.zilliqa.com"
ETHEREUM_URL = "https://mainnet.infura.io"
API_URL = "https://unstoppabledomains.com/api/v1"

ZNS_REGISTRY = "9611c53be6d1b32058b2747bdececed7e1216793"

BRAD_ZIL_NODE = "0x5fc604da00f502da70bfbc618088c0ce468ec9d18d05540935ae4118e8f50787"
BRAD_ZIL_OWNER = "0x2d418942dce1afa02d0733a2000c71b371a6ac07"
BRAD_ZIL_RESOLVER = "0xdac22230adfe4601f00631eae92df6d77f054891"
BRAD_ZIL_RECORDS = {
    "crypto.BCH.address": "qrq4sk49ayvepqz7j7ep8x4km2qp8lauvcnzhveyu6",
    "crypto.BTC.address": "1EVt92qQnaLDcmVFtHivRJaunG2mf2C3mB",
    "crypto.ETH.address": "0x45b31e01AA6f42F0549aD482BE81635ED3149abb",
    "crypto.ZIL.address": "zil1yu5u4hegy9v3xgluweg4en54zm8f8auwxu0xxj",
    "ipfs.html.value": "QmVaAtQbi3EtsfpKoLzALm6vXphdi2KjMgxEDKeGg6wHuK",
    "ipfs.redirect_domain.value": "www.unstoppabledomains.com",
    "ttl": "0",
}

ERG_ZIL_OWNER = "0xcb8ba6fd4d2f5bb7e0c6f7a4e9c7b3f4a0d5e6f7"
ERG_ZIL_RESOLVER = "0x4ac4c0b9b8c5ae5f2a7c9d4c8c4a2ef1b1c0d0e9"
ERG_ZIL_RECORDS = {
    "crypto.ZIL.address": "zil1zzpjwyp2nu29pcv3sh04qxq9x5l45vke0hrwes",
    "whois.email.value": "matt+test@unstoppabledomains.com",
}


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.content = b"" if payload is None else b"{}"

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"HTTP {self.status_code}", response=self)


def abi_result(output_types, *values) -> str:
    """eth_call result hex for the given return values."""
    return "0x" + encode(list(output_types), list(values)).hex()


class FakeTransport:
    """Serves JSON-RPC and GET requests from registered routes.

    Unknown Zilliqa state reads answer null and unknown eth_calls answer
    "0x", which is what a node returns for names nobody registered.
    """

    def __init__(self):
        self.rpc_routes: Dict[tuple, dict] = {}
        self.get_routes: Dict[str, FakeResponse] = {}
        self.calls = []
        self.failure: Optional[Exception] = None

    def zilliqa_state(self, contract: str, field: str, indices, result) -> None:
        key = ("GetSmartContractSubState", contract.lower().removeprefix("0x"), field, tuple(indices))
        self.rpc_routes[key] = {"result": result}

    def eth_call(self, to: str, signature: str, args, output_types, *values) -> None:
        key = ("eth_call", to.lower(), encode_call(signature, *args))
        self.rpc_routes[key] = {"result": abi_result(output_types, *values)}

    def eth_revert(self, to: str, signature: str, args) -> None:
        key = ("eth_call", to.lower(), encode_call(signature, *args))
        self.rpc_routes[key] = {"error": {"code": -32000, "message": "execution reverted"}}

    def eth_error(self, to: str, signature: str, args, message: str) -> None:
        key = ("eth_call", to.lower(), encode_call(signature, *args))
        self.rpc_routes[key] = {"error": {"code": -32603, "message": message}}

    def api_domain(self, domain: str, payload: Any, status_code: int = 200, url: str = API_URL) -> None:
        self.get_routes[f"{url}/{domain}"] = FakeResponse(payload, status_code)

    def _rpc_key(self, body: dict) -> tuple:
        method = body["method"]
        params = body["params"]
        if method == "eth_call":
            return (method, params[0]["to"].lower(), params[0]["data"])
        contract, field, indices = params
        return (method, contract, field, tuple(indices))

    def __call__(self, method: str, url: str, **kwargs) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        if self.failure is not None:
            raise self.failure
        if method == "GET":
            return self.get_routes.get(url, FakeResponse({"message": "not found"}, 404))
        body = kwargs["json"]
        default = {"result": "0x"} if body["method"] == "eth_call" else {"result": None}
        reply = self.rpc_routes.get(self._rpc_key(body), default)
        return FakeResponse({"id": body["id"], "jsonrpc": "2.0", **reply})


@pytest.fixture
def transport(monkeypatch) -> FakeTransport:
    fake = FakeTransport()
    monkeypatch.setattr(common, "_request_with_retry", fake)
    return fake


@pytest.fixture
def zilliqa_chain(transport) -> FakeTransport:
    """ZNS state for brad.zil and ergergergerg.zil."""
    from resolution.naming_services.zns import namehash

    brad_node = namehash("brad.zil")
    transport.zilliqa_state(ZNS_REGISTRY, "records", [brad_node], {
        "records": {
            brad_node: {
                "argtypes": [],
                "arguments": [BRAD_ZIL_OWNER, BRAD_ZIL_RESOLVER],
                "constructor": "Record",
            }
        }
    })
    transport.zilliqa_state(BRAD_ZIL_RESOLVER, "records", [], {"records": BRAD_ZIL_RECORDS})

    erg_node = namehash("ergergergerg.zil")
    transport.zilliqa_state(ZNS_REGISTRY, "records", [erg_node], {
        "records": {
            erg_node: {
                "argtypes": [],
                "arguments": [ERG_ZIL_OWNER, ERG_ZIL_RESOLVER],
                "constructor": "Record",
            }
        }
    })
    transport.zilliqa_state(ERG_ZIL_RESOLVER, "records", [], {"records": ERG_ZIL_RECORDS})
    return transport


class FakeNamingService(NamingService):
    """In-memory backend.

    domains maps a domain to {"owner": str, "records": {key: value}}; address
    records use the crypto.<TICKER>.address keys.
    """

    def __init__(self, name: str, suffixes, domains=None, network_supported: bool = True, failure=None):
        super().__init__(f"memory://{name.lower()}")
        self.name = name
        self.suffixes = tuple(suffixes)
        self.domains = domains or {}
        self.network_supported = network_supported
        self.failure = failure
        self.calls = []

    def _lookup(self, domain: str) -> Optional[dict]:
        self.calls.append(domain)
        if self.failure is not None:
            raise self.failure
        return self.domains.get(domain)

    def _claimed(self, domain: str) -> dict:
        data = self._lookup(domain)
        if not data or not data.get("owner"):
            raise ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)
        return data

    def is_supported_domain(self, domain: str) -> bool:
        return has_suffix(domain, self.suffixes)

    def is_supported_network(self) -> bool:
        return self.network_supported

    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        data = self._lookup(domain)
        if not data or not data.get("owner"):
            return None
        addresses = {
            key.split(".")[1]: value
            for key, value in data.get("records", {}).items()
            if key.startswith("crypto.") and key.endswith(".address")
        }
        return ResolutionResponse(addresses=addresses, meta=ResolutionMeta(owner=data["owner"], type=self.name))

    async def address(self, domain: str, currency_ticker: str) -> str:
        data = self._claimed(domain)
        key = f"crypto.{normalize_ticker(domain, currency_ticker)}.address"
        value = data.get("records", {}).get(key)
        if not value:
            raise ResolutionError(ResolutionErrorCode.RecordNotFound, domain=domain, record_name=key)
        return value

    async def owner(self, domain: str) -> Optional[str]:
        data = self._lookup(domain)
        return data.get("owner") if data else None

    async def record(self, domain: str, key: str) -> str:
        value = self._claimed(domain).get("records", {}).get(key)
        if not value:
            raise ResolutionError(ResolutionErrorCode.RecordNotFound, domain=domain, record_name=key)
        return value

    def namehash(self, domain: str) -> str:
        return f"0x{self.name.lower()}:{domain}"


@pytest.fixture
def fake_zns() -> FakeNamingService:
    return FakeNamingService("ZNS", ["zil"], domains={
        "brad.zil": {
            "owner": BRAD_ZIL_OWNER,
            "records": dict(BRAD_ZIL_RECORDS),
        },
        "unowned.zil": {"owner": None},
    })


@pytest.fixture
def fake_ens() -> FakeNamingService:
    return FakeNamingService("ENS", ["eth", "luxe", "xyz"], domains={
        "matthewgould.eth": {
            "owner": to_checksum_address("0x714ef33943d925731fbb89c99af5780d888bd106"),
            "records": {"crypto.ETH.address": to_checksum_address("0x714ef33943d925731fbb89c99af5780d888bd106")},
        },
    })
