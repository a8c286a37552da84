from typing import Any, Optional, Sequence

from ..logger import get_logger
from ..types import CNS, ResolutionMeta, ResolutionResponse
from .common import JsonRpcError, address_record_key, has_suffix, is_null_address, normalize_ticker
from .ethereum import EthereumNamingService

logger = get_logger()

REGISTRY_ADDRESS = "0xD1E5b0FF1287aA9f9A268759062E4Ab08b9Dacbe"

# Tickers fetched in one getMany() call by resolve()
RESOLVED_TICKERS = ("BTC", "ETH", "ZIL", "LTC", "XRP", "ETC", "BCH", "XLM", "LINK", "USDT", "DOGE")


class Cns(EthereumNamingService):
    """Crypto Name Service: .crypto names, one ERC-721 token per name.

    The token id is the namehash read as an integer.
    """

    name = CNS
    registries = {"mainnet": REGISTRY_ADDRESS}

    def is_supported_domain(self, domain: str) -> bool:
        return has_suffix(domain, ("crypto",))

    def _token_id(self, domain: str) -> int:
        return int(self.namehash(domain), 16)

    async def _call_or_none(self, to: str, signature: str, args: Sequence[Any], output_types: Sequence[str]) -> Any:
        # Registry lookups revert for tokens that were never minted
        try:
            return await self._eth_call(to, signature, args, output_types)
        except JsonRpcError as e:
            if not e.is_revert:
                raise
            logger.debug("CNS call reverted", signature=signature)
            return None

    async def _owner_of(self, token_id: int) -> Optional[str]:
        owner = await self._call_or_none(self.registry_address, "ownerOf(uint256)", [token_id], ["address"])
        return None if is_null_address(owner) else owner

    async def _resolver_of(self, token_id: int) -> Optional[str]:
        resolver = await self._call_or_none(self.registry_address, "resolverOf(uint256)", [token_id], ["address"])
        return None if is_null_address(resolver) else resolver

    async def _get(self, resolver: str, key: str, token_id: int) -> Optional[str]:
        return await self._eth_call(resolver, "get(string,uint256)", [key, token_id], ["string"])

    async def _claimed_resolver(self, domain: str) -> tuple:
        self._ensure_network()
        token_id = self._token_id(domain)
        if await self._owner_of(token_id) is None:
            raise self._unregistered(domain)
        return token_id, await self._resolver_of(token_id)

    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        self._ensure_network()
        token_id = self._token_id(domain)
        owner = await self._owner_of(token_id)
        if owner is None:
            return None

        addresses = {}
        resolver = await self._resolver_of(token_id)
        if resolver is not None:
            keys = [address_record_key(ticker) for ticker in RESOLVED_TICKERS]
            values = await self._eth_call(resolver, "getMany(string[],uint256)", [keys, token_id], ["string[]"])
            for ticker, value in zip(RESOLVED_TICKERS, values or ()):
                if value:
                    addresses[ticker] = value
        return ResolutionResponse(addresses=addresses, meta=ResolutionMeta(owner=owner, type=self.name, ttl=0))

    async def owner(self, domain: str) -> Optional[str]:
        self._ensure_network()
        return await self._owner_of(self._token_id(domain))

    async def address(self, domain: str, currency_ticker: str) -> str:
        token_id, resolver = await self._claimed_resolver(domain)
        key = address_record_key(normalize_ticker(domain, currency_ticker))
        value = await self._get(resolver, key, token_id) if resolver else None
        if not value:
            raise self._record_not_found(domain, key)
        return value

    async def record(self, domain: str, key: str) -> str:
        token_id, resolver = await self._claimed_resolver(domain)
        value = await self._get(resolver, key, token_id) if resolver else None
        if not value:
            raise self._record_not_found(domain, key)
        return value
