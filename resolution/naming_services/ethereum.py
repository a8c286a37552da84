"""Ethereum plumbing shared by the ENS and CNS backends."""

from typing import Any, Dict, Optional, Sequence

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector, keccak

from ..config import SourceConfig
from .common import NamingService


def namehash(domain: str) -> str:
    """EIP-137 namehash: keccak256 folded over labels from the right."""
    node = b"\x00" * 32
    if domain:
        for label in reversed(domain.split(".")):
            node = keccak(node + keccak(text=label))
    return "0x" + node.hex()


def node_bytes(node: str) -> bytes:
    return bytes.fromhex(node[2:] if node.startswith("0x") else node)


def _argument_types(signature: str) -> list:
    inner = signature[signature.index("(") + 1:signature.rindex(")")]
    return [t for t in inner.split(",") if t]


def encode_call(signature: str, *args: Any) -> str:
    """Calldata for `signature` (e.g. "text(bytes32,string)") applied to args."""
    selector = function_signature_to_4byte_selector(signature)
    return "0x" + (selector + encode(_argument_types(signature), list(args))).hex()


def decode_result(output_types: Sequence[str], result: Optional[str]) -> Any:
    """Decode eth_call output. Empty output (no contract at address) gives None."""
    if not result or result == "0x":
        return None
    raw = bytes.fromhex(result[2:] if result.startswith("0x") else result)
    values = decode(list(output_types), raw)
    return values[0] if len(values) == 1 else values


class EthereumNamingService(NamingService):
    """Naming service whose registry lives in an Ethereum contract."""

    registries: Dict[str, str] = {}

    def __init__(self, source: SourceConfig):
        super().__init__(source.url)
        self.network = source.network
        self.registry_address = self.registries.get(source.network)

    def is_supported_network(self) -> bool:
        return self.registry_address is not None

    def namehash(self, domain: str) -> str:
        return namehash(domain)

    async def _eth_call(self, to: str, signature: str, args: Sequence[Any], output_types: Sequence[str]) -> Any:
        data = encode_call(signature, *args)
        result = await self._json_rpc("eth_call", [{"to": to, "data": data}, "latest"])
        return decode_result(output_types, result)
