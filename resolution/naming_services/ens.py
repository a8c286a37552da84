from typing import Optional

import base58
from eth_utils import to_checksum_address

from ..errors import ResolutionError, ResolutionErrorCode
from ..logger import get_logger
from ..types import ENS, EMAIL_KEY, IPFS_HASH_KEY, IPFS_REDIRECT_KEY, ResolutionMeta, ResolutionResponse
from .common import address_record_key, has_suffix, is_null_address, normalize_ticker
from .ethereum import EthereumNamingService, namehash, node_bytes

logger = get_logger()

REGISTRY_ADDRESS = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"
SUFFIXES = ("eth", "luxe", "xyz")

# SLIP-44 coin types whose addresses share Ethereum's 20-byte format (EIP-2304)
COIN_TYPES = {
    "ETH": 60,
    "ETC": 61,
    "RSK": 137,
    "XDAI": 700,
}

# Well-known record keys mapped onto ENS text record keys
TEXT_KEYS = {
    EMAIL_KEY: "email",
    IPFS_REDIRECT_KEY: "url",
}

_IPFS_CONTENTHASH_PREFIX = bytes.fromhex("e3010170")  # ipfs-ns, CIDv1, dag-pb


def decode_contenthash(raw: Optional[bytes]) -> Optional[str]:
    """EIP-1577 contenthash -> base58 CIDv0. Non-IPFS content gives None."""
    if not raw or not raw.startswith(_IPFS_CONTENTHASH_PREFIX):
        return None
    multihash = raw[len(_IPFS_CONTENTHASH_PREFIX):]
    return base58.b58encode(multihash).decode("ascii")


class Ens(EthereumNamingService):
    """Ethereum Name Service: .eth, .luxe and .xyz names."""

    name = ENS
    registries = {
        "mainnet": REGISTRY_ADDRESS,
        "ropsten": REGISTRY_ADDRESS,
        "rinkeby": REGISTRY_ADDRESS,
        "goerli": REGISTRY_ADDRESS,
    }

    def is_supported_domain(self, domain: str) -> bool:
        return has_suffix(domain, SUFFIXES)

    async def _owner_of(self, node: str) -> Optional[str]:
        owner = await self._eth_call(self.registry_address, "owner(bytes32)", [node_bytes(node)], ["address"])
        return None if is_null_address(owner) else owner

    async def _resolver_of(self, node: str) -> Optional[str]:
        resolver = await self._eth_call(self.registry_address, "resolver(bytes32)", [node_bytes(node)], ["address"])
        return None if is_null_address(resolver) else resolver

    async def _claimed(self, domain: str) -> tuple:
        """(node, owner, resolver); UnregisteredDomain when nobody owns the name."""
        self._ensure_network()
        node = self.namehash(domain)
        owner = await self._owner_of(node)
        if owner is None:
            raise self._unregistered(domain)
        return node, owner, await self._resolver_of(node)

    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        self._ensure_network()
        node = self.namehash(domain)
        owner = await self._owner_of(node)
        if owner is None:
            return None

        addresses = {}
        resolver = await self._resolver_of(node)
        if resolver is not None:
            eth_address = await self._eth_call(resolver, "addr(bytes32)", [node_bytes(node)], ["address"])
            if not is_null_address(eth_address):
                addresses["ETH"] = eth_address
        ttl = await self._eth_call(self.registry_address, "ttl(bytes32)", [node_bytes(node)], ["uint64"])
        return ResolutionResponse(
            addresses=addresses,
            meta=ResolutionMeta(owner=owner, type=self.name, ttl=int(ttl or 0)),
        )

    async def owner(self, domain: str) -> Optional[str]:
        self._ensure_network()
        return await self._owner_of(self.namehash(domain))

    async def address(self, domain: str, currency_ticker: str) -> str:
        node, _, resolver = await self._claimed(domain)
        ticker = normalize_ticker(domain, currency_ticker)
        coin_type = COIN_TYPES.get(ticker)
        if coin_type is None:
            raise ResolutionError(
                ResolutionErrorCode.UnspecifiedCurrency, domain=domain, currency_ticker=currency_ticker
            )
        if resolver is None:
            raise self._record_not_found(domain, address_record_key(ticker))

        if ticker == "ETH":
            value = await self._eth_call(resolver, "addr(bytes32)", [node_bytes(node)], ["address"])
        else:
            raw = await self._eth_call(resolver, "addr(bytes32,uint256)", [node_bytes(node), coin_type], ["bytes"])
            value = to_checksum_address(raw) if raw and len(raw) == 20 else None
        if is_null_address(value):
            raise self._record_not_found(domain, address_record_key(ticker))
        return value

    async def record(self, domain: str, key: str) -> str:
        node, _, resolver = await self._claimed(domain)
        if resolver is None:
            raise self._record_not_found(domain, key)

        if key == IPFS_HASH_KEY:
            raw = await self._eth_call(resolver, "contenthash(bytes32)", [node_bytes(node)], ["bytes"])
            value = decode_contenthash(raw)
        else:
            value = await self._eth_call(
                resolver, "text(bytes32,string)", [node_bytes(node), TEXT_KEYS.get(key, key)], ["string"]
            )
        if not value:
            raise self._record_not_found(domain, key)
        return value

    async def reverse(self, address: str, currency_ticker: str) -> str:
        """Primary ENS name of an Ethereum address (reverse record)."""
        if not currency_ticker or currency_ticker.upper() != "ETH":
            raise ResolutionError(ResolutionErrorCode.UnspecifiedCurrency, currency_ticker=currency_ticker)
        self._ensure_network()

        reverse_domain = f"{address.lower().removeprefix('0x')}.addr.reverse"
        node = namehash(reverse_domain)
        resolver = await self._resolver_of(node)
        if resolver is None:
            raise self._record_not_found(reverse_domain, "name")
        name = await self._eth_call(resolver, "name(bytes32)", [node_bytes(node)], ["string"])
        if not name:
            raise self._record_not_found(reverse_domain, "name")
        logger.debug("ENS reverse record found", address=address, name=name)
        return name
