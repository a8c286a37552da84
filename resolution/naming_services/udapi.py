from typing import Any, Mapping, Optional

from ..config import DEFAULT_API_URL, default_source
from ..errors import ResolutionError, ResolutionErrorCode
from ..logger import get_logger
from ..types import ResolutionMeta, ResolutionResponse
from .cns import Cns
from .common import NamingService, address_record_key, normalize_ticker
from .ens import Ens
from .zns import Zns

logger = get_logger()


def lookup_record(data: Any, key: str) -> Optional[str]:
    """Walk a dotted record key through an API response.

    The API flattens `{"ipfs": {"html": {"value": h}}}` to
    `{"ipfs": {"html": h}}`, so a trailing `value` segment may land on a
    string leaf.
    """
    node = data
    parts = key.split(".")
    for i, part in enumerate(parts):
        if isinstance(node, Mapping) and part in node:
            node = node[part]
        elif isinstance(node, str) and part == "value" and i == len(parts) - 1:
            break
        else:
            return None
    return node if isinstance(node, str) and node else None


class Udapi(NamingService):
    """Centralized API proxy serving every protocol's names over HTTP.

    Routing, namehash and service name come from the protocol that owns
    the suffix; those protocol instances never touch the network here.
    """

    name = "UDAPI"

    def __init__(self, url: str = DEFAULT_API_URL):
        super().__init__(url.rstrip("/"))
        self._protocols = (
            Ens(default_source("ens")),
            Zns(default_source("zns")),
            Cns(default_source("cns")),
        )

    def _protocol_for(self, domain: str) -> Optional[NamingService]:
        return next((p for p in self._protocols if p.is_supported_domain(domain)), None)

    def _protocol_or_throw(self, domain: str) -> NamingService:
        protocol = self._protocol_for(domain)
        if protocol is None:
            raise ResolutionError(ResolutionErrorCode.UnsupportedDomain, domain=domain)
        return protocol

    def is_supported_domain(self, domain: str) -> bool:
        return self._protocol_for(domain) is not None

    def is_supported_network(self) -> bool:
        return True

    def namehash(self, domain: str) -> str:
        return self._protocol_or_throw(domain).namehash(domain)

    def service_name(self, domain: str) -> str:
        return self._protocol_or_throw(domain).service_name(domain)

    async def _domain_data(self, domain: str) -> dict:
        data = await self._fetch("GET", f"{self.url}/{domain}")
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _owner_of(data: dict) -> Optional[str]:
        return (data.get("meta") or {}).get("owner") or None

    async def _claimed_data(self, domain: str) -> dict:
        data = await self._domain_data(domain)
        if self._owner_of(data) is None:
            raise self._unregistered(domain)
        return data

    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        data = await self._domain_data(domain)
        owner = self._owner_of(data)
        if owner is None:
            return None
        meta = data.get("meta") or {}
        try:
            ttl = int(meta.get("ttl") or 0)
        except (TypeError, ValueError):
            logger.warning("API ttl is not an integer", domain=domain, ttl=meta.get("ttl"))
            ttl = 0
        return ResolutionResponse(
            addresses=data.get("addresses") or {},
            meta=ResolutionMeta(
                owner=owner,
                type=meta.get("type") or self.service_name(domain),
                ttl=ttl,
            ),
        )

    async def owner(self, domain: str) -> Optional[str]:
        return self._owner_of(await self._domain_data(domain))

    async def address(self, domain: str, currency_ticker: str) -> str:
        data = await self._claimed_data(domain)
        ticker = normalize_ticker(domain, currency_ticker)
        value = (data.get("addresses") or {}).get(ticker)
        if not value:
            raise self._record_not_found(domain, address_record_key(ticker))
        return value

    async def record(self, domain: str, key: str) -> str:
        data = await self._claimed_data(domain)
        value = lookup_record(data, key)
        if value is None:
            raise self._record_not_found(domain, key)
        return value
