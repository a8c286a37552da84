from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Optional

ENS = "ENS"
ZNS = "ZNS"
CNS = "CNS"

IPFS_HASH_KEY = "ipfs.html.value"
IPFS_REDIRECT_KEY = "ipfs.redirect_domain.value"
EMAIL_KEY = "whois.email.value"


class AddressMap(Mapping):
    """Read-only ticker -> address mapping.

    Hashable and picklable, so responses can be cached or sent between processes.
    """

    def __init__(self, addresses: Optional[Mapping[str, str]] = None):
        self._addresses = dict(addresses or {})

    def __getitem__(self, ticker: str) -> str:
        return self._addresses[ticker]

    def __iter__(self) -> Iterator[str]:
        return iter(self._addresses)

    def __len__(self) -> int:
        return len(self._addresses)

    def __hash__(self) -> int:
        return hash(frozenset(self._addresses.items()))

    def __repr__(self) -> str:
        return f"AddressMap({self._addresses!r})"


@dataclass(frozen=True)
class ResolutionMeta:
    owner: Optional[str] = None
    type: str = ""
    ttl: int = 0


@dataclass(frozen=True)
class ResolutionResponse:
    """Resolved domain data: currency ticker -> address plus ownership metadata."""

    addresses: Mapping[str, str] = field(default_factory=AddressMap)
    meta: ResolutionMeta = field(default_factory=ResolutionMeta)

    def __post_init__(self):
        # Shared instances (the unclaimed sentinel) must not be mutable through addresses
        if not isinstance(self.addresses, AddressMap):
            object.__setattr__(self, "addresses", AddressMap(self.addresses))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "addresses": dict(self.addresses),
            "meta": {
                "owner": self.meta.owner,
                "type": self.meta.type,
                "ttl": self.meta.ttl,
            },
        }


UNCLAIMED_DOMAIN_RESPONSE = ResolutionResponse(addresses={}, meta=ResolutionMeta(owner=None))
