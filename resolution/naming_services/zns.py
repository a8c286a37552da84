import hashlib
import re
from typing import Dict, Optional, Tuple

from ..config import SourceConfig
from ..logger import get_logger
from ..types import ZNS, ResolutionMeta, ResolutionResponse
from .common import NamingService, address_record_key, has_suffix, is_null_address, normalize_ticker

logger = get_logger()

REGISTRY_ADDRESSES = {
    "mainnet": "0x9611c53BE6d1b32058b2747bdeCECed7e1216793",
}

_ADDRESS_KEY = re.compile(r"^crypto\.([^.]+)\.address$")


def namehash(domain: str) -> str:
    """Zilliqa namehash: sha256 folded over labels from the right."""
    node = b"\x00" * 32
    if domain:
        for label in reversed(domain.split(".")):
            node = hashlib.sha256(node + hashlib.sha256(label.encode("utf-8")).digest()).digest()
    return "0x" + node.hex()


class Zns(NamingService):
    """Zilliqa Naming Service: .zil names.

    Registry state maps namehash -> Record(owner, resolver); each resolver
    contract keeps a flat map of dotted record keys to string values.
    """

    name = ZNS

    def __init__(self, source: SourceConfig):
        super().__init__(source.url)
        self.network = source.network
        self.registry_address = REGISTRY_ADDRESSES.get(source.network)

    def is_supported_domain(self, domain: str) -> bool:
        return domain == "zil" or has_suffix(domain, ("zil",))

    def is_supported_network(self) -> bool:
        return self.registry_address is not None

    def namehash(self, domain: str) -> str:
        return namehash(domain)

    async def _sub_state(self, contract: str, field: str, indices: list) -> Optional[dict]:
        contract_id = contract.lower().removeprefix("0x")
        result = await self._json_rpc("GetSmartContractSubState", [contract_id, field, indices])
        return result if isinstance(result, dict) else None

    async def _record_addresses(self, domain: str) -> Optional[Tuple[str, Optional[str]]]:
        """(owner, resolver) from the registry, or None when the name is unclaimed."""
        self._ensure_network()
        node = self.namehash(domain)
        state = await self._sub_state(self.registry_address, "records", [node])
        record = ((state or {}).get("records") or {}).get(node)
        if not record:
            return None
        arguments = record.get("arguments") or []
        owner = arguments[0] if len(arguments) > 0 else None
        resolver = arguments[1] if len(arguments) > 1 else None
        if is_null_address(owner):
            return None
        return owner, None if is_null_address(resolver) else resolver

    async def _resolver_records(self, resolver: Optional[str]) -> Dict[str, str]:
        if resolver is None:
            return {}
        state = await self._sub_state(resolver, "records", [])
        return (state or {}).get("records") or {}

    async def _claimed_records(self, domain: str) -> Dict[str, str]:
        addresses = await self._record_addresses(domain)
        if addresses is None:
            raise self._unregistered(domain)
        return await self._resolver_records(addresses[1])

    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        addresses = await self._record_addresses(domain)
        if addresses is None:
            return None
        owner, resolver = addresses
        records = await self._resolver_records(resolver)

        currencies = {}
        for key, value in records.items():
            match = _ADDRESS_KEY.match(key)
            if match and value:
                currencies[match.group(1)] = value
        try:
            ttl = int(records.get("ttl") or 0)
        except ValueError:
            logger.warning("ZNS ttl record is not an integer", domain=domain, ttl=records.get("ttl"))
            ttl = 0
        return ResolutionResponse(
            addresses=currencies,
            meta=ResolutionMeta(owner=owner, type=self.name, ttl=ttl),
        )

    async def owner(self, domain: str) -> Optional[str]:
        addresses = await self._record_addresses(domain)
        return addresses[0] if addresses else None

    async def address(self, domain: str, currency_ticker: str) -> str:
        records = await self._claimed_records(domain)
        key = address_record_key(normalize_ticker(domain, currency_ticker))
        value = records.get(key)
        if not value:
            raise self._record_not_found(domain, key)
        return value

    async def record(self, domain: str, key: str) -> str:
        records = await self._claimed_records(domain)
        value = records.get(key)
        if not value:
            raise self._record_not_found(domain, key)
        return value
