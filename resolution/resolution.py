"""
Blockchain domain resolution.

Routes each domain to the naming service that owns its suffix and
presents every backend through one set of operations:

    resolution = Resolution()
    await resolution.address("brad.zil", "ZIL")
    await resolution.ipfs_hash("brad.zil")
    resolution.service_name("domain.crypto")  # "CNS"
"""

from typing import Any, Optional, Sequence, Tuple

from .config import ResolutionConfig
from .errors import ConfigurationError, ResolutionError, ResolutionErrorCode
from .naming_services import Cns, Ens, NamingService, Udapi, Zns
from .types import EMAIL_KEY, IPFS_HASH_KEY, IPFS_REDIRECT_KEY, UNCLAIMED_DOMAIN_RESPONSE, ResolutionResponse


def build_naming_services(config: ResolutionConfig) -> Tuple[NamingService, ...]:
    """Backends in routing priority order: ENS, ZNS, CNS, or the API proxy alone."""
    if config.blockchain is None:
        return (Udapi(config.api.url),)
    services = []
    if config.blockchain.ens is not None:
        services.append(Ens(config.blockchain.ens))
    if config.blockchain.zns is not None:
        services.append(Zns(config.blockchain.zns))
    if config.blockchain.cns is not None:
        services.append(Cns(config.blockchain.cns))
    return tuple(services)


class Resolution:
    """
    Naming service dispatcher.

    The backend set is fixed at construction. Every call is independent;
    nothing is cached between calls.

    Args:
        blockchain: True (ENS, ZNS and CNS), False (API proxy) or per-protocol
            mapping of True / False / {url, network}
        api: {url} of the API proxy, used only when blockchain is False
        naming_services: Prebuilt backends, used verbatim in the given order
            instead of building them from configuration
    """

    def __init__(
        self,
        blockchain: Any = True,
        api: Any = None,
        naming_services: Optional[Sequence[NamingService]] = None,
    ):
        self.config = ResolutionConfig.build(blockchain=blockchain, api=api)
        if naming_services is not None:
            self.naming_services = tuple(naming_services)
        else:
            self.naming_services = build_naming_services(self.config)

    @classmethod
    def from_config(cls, config: ResolutionConfig) -> "Resolution":
        return cls(blockchain=config.blockchain if config.blockchain is not None else False, api=config.api)

    @property
    def ens(self) -> Optional[Ens]:
        return next((s for s in self.naming_services if isinstance(s, Ens)), None)

    def _select_or_none(self, domain: str) -> Optional[NamingService]:
        """First backend, in construction order, whose suffix test accepts the domain."""
        for service in self.naming_services:
            if service.is_supported_domain(domain):
                return service
        return None

    def _select_or_throw(self, domain: str) -> NamingService:
        service = self._select_or_none(domain)
        if service is None:
            raise ResolutionError(ResolutionErrorCode.UnsupportedDomain, domain=domain)
        return service

    async def resolve(self, domain: str) -> ResolutionResponse:
        """Resolve a domain; unclaimed domains give UNCLAIMED_DOMAIN_RESPONSE.

        Raises:
            ResolutionError: UnsupportedDomain when no backend owns the suffix
        """
        service = self._select_or_throw(domain)
        result = await service.resolve(domain)
        return result or UNCLAIMED_DOMAIN_RESPONSE

    async def address(self, domain: str, currency_ticker: str) -> Optional[str]:
        """Address for a currency, or None on any resolution failure.

        Transport failures (NamingServiceError) still propagate.
        """
        try:
            return await self.address_or_throw(domain, currency_ticker)
        except ResolutionError:
            return None

    async def address_or_throw(self, domain: str, currency_ticker: str) -> str:
        """
        Address for a currency such as ZIL, BTC or ETH.

        Raises:
            ResolutionError: UnsupportedDomain, UnregisteredDomain,
                UnspecifiedCurrency or RecordNotFound
        """
        service = self._select_or_throw(domain)
        return await service.address(domain, currency_ticker)

    async def owner(self, domain: str) -> Optional[str]:
        """Owner address, or None.

        None covers both "no backend owns this suffix" and "nobody owns
        this domain"; callers cannot tell the two apart.
        """
        service = self._select_or_none(domain)
        if service is None:
            return None
        return (await service.owner(domain)) or None

    async def ipfs_hash(self, domain: str) -> str:
        return await self._select_or_throw(domain).record(domain, IPFS_HASH_KEY)

    async def ipfs_redirect(self, domain: str) -> str:
        return await self._select_or_throw(domain).record(domain, IPFS_REDIRECT_KEY)

    async def email(self, domain: str) -> str:
        """Whois email. Raises ResolutionError(RecordNotFound) when none is set."""
        return await self._select_or_throw(domain).record(domain, EMAIL_KEY)

    async def reverse(self, address: str, currency_ticker: str) -> str:
        """Domain name registered for an address. Only ENS keeps reverse records."""
        ens = self.ens
        if ens is None:
            raise ConfigurationError("reverse resolution requires the ENS naming service to be configured")
        return await ens.reverse(address, currency_ticker)

    def namehash(self, domain: str) -> str:
        return self._select_or_throw(domain).namehash(domain)

    def is_supported_domain(self, domain: str) -> bool:
        return self._select_or_none(domain) is not None

    def is_supported_domain_in_network(self, domain: str) -> Optional[bool]:
        """Truthy when a backend owns the suffix and its network is usable."""
        service = self._select_or_none(domain)
        return service and service.is_supported_network()

    def service_name(self, domain: str) -> str:
        return self._select_or_throw(domain).service_name(domain)
