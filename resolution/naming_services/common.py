"""Shared plumbing for all naming service backends."""

import asyncio
import re
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

import requests

from ..errors import NamingServiceError, ResolutionError, ResolutionErrorCode
from ..logger import get_logger
from ..retry import RetryError, exponential_backoff, should_retry_http_status
from ..types import ResolutionResponse

logger = get_logger()

REQUEST_TIMEOUT = 15
TICKER_PATTERN = re.compile(r"^[A-Za-z0-9]{1,10}$")
_NULL_ADDRESS_PATTERN = re.compile(r"^0x0*$", re.IGNORECASE)


class TransientHTTPError(requests.exceptions.RequestException):
    """HTTP status worth retrying (rate limiting, 5xx)."""


class JsonRpcError(NamingServiceError):
    """The node answered with a JSON-RPC error object."""

    def __init__(self, service: str, code: Any, message: str):
        self.code = code
        self.rpc_message = message
        super().__init__(service, f"JSON-RPC error {code}: {message}")

    def __reduce__(self):
        return (type(self), (self.service, self.code, self.rpc_message))

    @property
    def is_revert(self) -> bool:
        return "revert" in (self.rpc_message or "").lower()


@exponential_backoff(
    max_retries=2,
    base_delay=0.5,
    exceptions=(requests.exceptions.Timeout, requests.exceptions.ConnectionError, TransientHTTPError),
)
def _request_with_retry(method: str, url: str, **kwargs) -> requests.Response:
    """Issue an HTTP request, retrying timeouts, dropped connections and retryable statuses."""
    resp = requests.request(method, url, timeout=REQUEST_TIMEOUT, **kwargs)
    if should_retry_http_status(resp.status_code):
        raise TransientHTTPError(f"HTTP {resp.status_code} from {url}", response=resp)
    return resp


def fetch_json(method: str, url: str, service: str, **kwargs) -> Any:
    """Fetch and decode a JSON document with standardized error handling and logging.

    Raises:
        NamingServiceError: On any HTTP error, timeout, exhausted retries or invalid JSON
    """
    logger.record_backend_call(service)
    logger.debug(f"{service} request", method=method, url=url)
    try:
        resp = _request_with_retry(method, url, **kwargs)
        resp.raise_for_status()
        data = resp.json()
    except RetryError as e:
        logger.record_backend_failure(service, "RetryExhausted")
        logger.error(f"{service} request failed after retries", url=url, error=str(e))
        raise NamingServiceError(service, f"request failed after retries: {url}") from e
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "HTTPError"
        logger.record_backend_failure(service, f"HTTPError_{status}")
        logger.error(f"{service} request failed", url=url, status=status)
        raise NamingServiceError(service, f"request failed ({status}): {url}") from e
    except requests.exceptions.JSONDecodeError as e:
        # A RequestException subclass; MissingSchema and InvalidURL fall through to the next branch
        logger.record_backend_failure(service, "InvalidJSON")
        logger.error(f"{service} returned invalid JSON", url=url)
        raise NamingServiceError(service, f"returned invalid JSON: {url}") from e
    except requests.exceptions.RequestException as e:
        logger.record_backend_failure(service, "RequestException")
        logger.error(f"{service} request error", url=url, error=str(e))
        raise NamingServiceError(service, f"request error: {e}") from e

    logger.record_backend_success(service)
    return data


def is_null_address(address: Optional[str]) -> bool:
    return not address or bool(_NULL_ADDRESS_PATTERN.match(address))


def normalize_ticker(domain: str, currency_ticker: Optional[str]) -> str:
    """Upper-cased ticker, or UnspecifiedCurrency when it is not a ticker at all."""
    if not currency_ticker or not TICKER_PATTERN.match(currency_ticker):
        raise ResolutionError(
            ResolutionErrorCode.UnspecifiedCurrency,
            domain=domain,
            currency_ticker=currency_ticker,
        )
    return currency_ticker.upper()


def address_record_key(ticker: str) -> str:
    return f"crypto.{ticker}.address"


def has_suffix(domain: str, suffixes: Iterable[str]) -> bool:
    """True for `label(.label)*.suffix` with non-empty, whitespace-free labels."""
    if not isinstance(domain, str) or "." not in domain:
        return False
    labels = domain.split(".")
    if any(not label or any(c.isspace() for c in label) for label in labels):
        return False
    return labels[-1] in suffixes


class NamingService(ABC):
    """
    Capability interface every backend satisfies.

    Routing predicates, namehash and service name are pure and synchronous.
    Everything that touches the network is a coroutine.
    """

    name: str = ""

    def __init__(self, url: str):
        self.url = url

    @abstractmethod
    def is_supported_domain(self, domain: str) -> bool:
        ...

    @abstractmethod
    def is_supported_network(self) -> bool:
        ...

    @abstractmethod
    async def resolve(self, domain: str) -> Optional[ResolutionResponse]:
        """Full resolution; None means the domain is recognized but unclaimed."""

    @abstractmethod
    async def address(self, domain: str, currency_ticker: str) -> str:
        ...

    @abstractmethod
    async def owner(self, domain: str) -> Optional[str]:
        ...

    @abstractmethod
    async def record(self, domain: str, key: str) -> str:
        ...

    @abstractmethod
    def namehash(self, domain: str) -> str:
        ...

    def service_name(self, domain: str) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}(url={self.url!r})"

    async def _fetch(self, method: str, url: Optional[str] = None, **kwargs) -> Any:
        # requests is blocking; keep the caller's event loop free
        return await asyncio.to_thread(fetch_json, method, url or self.url, self.name, **kwargs)

    async def _json_rpc(self, method: str, params: list) -> Any:
        payload = {"id": "1", "jsonrpc": "2.0", "method": method, "params": params}
        data = await self._fetch("POST", json=payload)
        if not isinstance(data, dict):
            raise NamingServiceError(self.name, f"malformed JSON-RPC reply to {method}")
        if data.get("error"):
            error = data["error"]
            if isinstance(error, dict):
                raise JsonRpcError(self.name, error.get("code"), str(error.get("message", "")))
            raise JsonRpcError(self.name, None, str(error))
        return data.get("result")

    def _ensure_network(self) -> None:
        if not self.is_supported_network():
            raise ResolutionError(ResolutionErrorCode.UnsupportedNetwork, method=self.name)

    @staticmethod
    def _unregistered(domain: str) -> ResolutionError:
        return ResolutionError(ResolutionErrorCode.UnregisteredDomain, domain=domain)

    @staticmethod
    def _record_not_found(domain: str, key: str) -> ResolutionError:
        return ResolutionError(ResolutionErrorCode.RecordNotFound, domain=domain, record_name=key)
