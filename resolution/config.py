"""
Resolver configuration.

Configuration is resolved once, when a Resolution is constructed. Every
field ends up with an explicit value; nothing is mutated afterwards.

    blockchain=True                  -> ENS, ZNS and CNS with default endpoints
    blockchain=False                 -> centralized API proxy only
    blockchain={"ens": {...}, ...}   -> per protocol: True, False, None or {url, network}
"""

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlparse

from .errors import ConfigurationError

DEFAULT_API_URL = "https://unstoppabledomains.com/api/v1"
DEFAULT_ETHEREUM_URL = "https://mainnet.infura.io"
DEFAULT_ZILLIQA_URL = "https://api.zilliqa.com"
DEFAULT_NETWORK = "mainnet"

PROTOCOLS = ("ens", "zns", "cns")

ENV_BLOCKCHAIN = "RESOLUTION_BLOCKCHAIN"
ENV_ETHEREUM_URL = "RESOLUTION_ETHEREUM_URL"
ENV_ZILLIQA_URL = "RESOLUTION_ZILLIQA_URL"
ENV_API_URL = "RESOLUTION_API_URL"


@dataclass(frozen=True)
class SourceConfig:
    """Endpoint of one blockchain naming service."""

    url: str
    network: str = DEFAULT_NETWORK


@dataclass(frozen=True)
class BlockchainConfig:
    """Per-protocol sources. None means the protocol is disabled."""

    ens: Optional[SourceConfig]
    zns: Optional[SourceConfig]
    cns: Optional[SourceConfig]


@dataclass(frozen=True)
class ApiConfig:
    url: str = DEFAULT_API_URL


def _default_url(protocol: str, network: str) -> str:
    if protocol == "zns":
        if network != DEFAULT_NETWORK:
            raise ConfigurationError(f"zns: url is required for network '{network}'")
        return DEFAULT_ZILLIQA_URL
    if network == DEFAULT_NETWORK:
        return DEFAULT_ETHEREUM_URL
    return f"https://{network}.infura.io"


def _check_url(option: str, url: Any) -> str:
    if not isinstance(url, str):
        raise ConfigurationError(f"{option}: url must be a string")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"{option}: expected an http(s) URL, got '{url}'")
    return url


def default_source(protocol: str) -> SourceConfig:
    return SourceConfig(url=_default_url(protocol, DEFAULT_NETWORK), network=DEFAULT_NETWORK)


def _parse_source(protocol: str, value: Any) -> Optional[SourceConfig]:
    if value is None or value is True:
        return default_source(protocol)
    if value is False:
        return None
    if isinstance(value, SourceConfig):
        return value
    if isinstance(value, Mapping):
        unknown = set(value) - {"url", "network"}
        if unknown:
            raise ConfigurationError(f"{protocol}: unknown option(s) {sorted(unknown)}")
        network = value.get("network") or DEFAULT_NETWORK
        url = value.get("url") or _default_url(protocol, network)
        if not isinstance(url, str) or not isinstance(network, str):
            raise ConfigurationError(f"{protocol}: url and network must be strings")
        return SourceConfig(url=_check_url(protocol, url), network=network)
    raise ConfigurationError(
        f"{protocol}: expected bool or {{url, network}}, got {type(value).__name__}"
    )


def _parse_blockchain(value: Any) -> Optional[BlockchainConfig]:
    if value is False:
        return None
    if value is True or value is None:
        value = {}
    if isinstance(value, BlockchainConfig):
        return value
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"blockchain: expected bool or mapping, got {type(value).__name__}"
        )
    unknown = set(value) - set(PROTOCOLS)
    if unknown:
        raise ConfigurationError(f"blockchain: unknown protocol(s) {sorted(unknown)}")
    return BlockchainConfig(**{p: _parse_source(p, value.get(p)) for p in PROTOCOLS})


def _parse_api(value: Any) -> ApiConfig:
    if value is None:
        return ApiConfig()
    if isinstance(value, ApiConfig):
        return value
    if isinstance(value, str):
        return ApiConfig(url=_check_url("api", value))
    if isinstance(value, Mapping):
        return ApiConfig(url=_check_url("api", value.get("url") or DEFAULT_API_URL))
    raise ConfigurationError(f"api: expected {{url}}, got {type(value).__name__}")


def _env_flag(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    raise ConfigurationError(f"{ENV_BLOCKCHAIN}: expected true/false, got '{raw}'")


@dataclass(frozen=True)
class ResolutionConfig:
    """Fully resolved configuration. blockchain=None selects proxy mode."""

    blockchain: Optional[BlockchainConfig]
    api: ApiConfig

    @property
    def uses_blockchain(self) -> bool:
        return self.blockchain is not None

    @classmethod
    def build(cls, blockchain: Any = True, api: Any = None) -> "ResolutionConfig":
        return cls(blockchain=_parse_blockchain(blockchain), api=_parse_api(api))

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        use_blockchain: Optional[bool] = None,
        api_url: Optional[str] = None,
        ethereum_url: Optional[str] = None,
        zilliqa_url: Optional[str] = None,
    ) -> "ResolutionConfig":
        """Build a config from RESOLUTION_* variables; explicit arguments win."""
        env = os.environ if environ is None else environ

        if use_blockchain is None:
            raw = env.get(ENV_BLOCKCHAIN)
            use_blockchain = True if raw is None else _env_flag(raw)

        api = {"url": api_url or env.get(ENV_API_URL) or DEFAULT_API_URL}
        if not use_blockchain:
            return cls.build(blockchain=False, api=api)

        ethereum_url = ethereum_url or env.get(ENV_ETHEREUM_URL)
        zilliqa_url = zilliqa_url or env.get(ENV_ZILLIQA_URL)
        blockchain = {}
        if ethereum_url:
            blockchain["ens"] = {"url": ethereum_url}
            blockchain["cns"] = {"url": ethereum_url}
        if zilliqa_url:
            blockchain["zns"] = {"url": zilliqa_url}
        return cls.build(blockchain=blockchain, api=api)
