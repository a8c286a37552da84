"""
Error taxonomy for domain resolution.

- ResolutionError: a domain could not be resolved (closed set of codes)
- NamingServiceError: a backend could not be reached or answered garbage
- ConfigurationError: the resolver was built with an invalid configuration
"""

from enum import Enum
from typing import Optional


class ResolutionErrorCode(str, Enum):
    """Closed set of resolution failure kinds."""

    UnsupportedDomain = "UnsupportedDomain"
    UnsupportedNetwork = "UnsupportedNetwork"
    UnregisteredDomain = "UnregisteredDomain"
    UnspecifiedCurrency = "UnspecifiedCurrency"
    RecordNotFound = "RecordNotFound"


_MESSAGES = {
    ResolutionErrorCode.UnsupportedDomain: "Domain {domain} is not supported",
    ResolutionErrorCode.UnsupportedNetwork: "Unsupported network in {method} resolver",
    ResolutionErrorCode.UnregisteredDomain: "Domain {domain} is not registered",
    ResolutionErrorCode.UnspecifiedCurrency: "Domain {domain} has no {currency_ticker} attached to it",
    ResolutionErrorCode.RecordNotFound: "No {record_name} record found for {domain}",
}


class ResolutionError(Exception):
    """
    Raised when a domain cannot be resolved.

    Attributes:
        code: ResolutionErrorCode identifying the failure kind
        context: Diagnostic fields (domain, currency_ticker, record_name, method)
    """

    def __init__(
        self,
        code: ResolutionErrorCode,
        domain: Optional[str] = None,
        currency_ticker: Optional[str] = None,
        record_name: Optional[str] = None,
        method: Optional[str] = None,
    ):
        self.code = ResolutionErrorCode(code)
        self.domain = domain
        self.currency_ticker = currency_ticker
        self.record_name = record_name
        self.method = method
        self.context = {
            k: v
            for k, v in (
                ("domain", domain),
                ("currency_ticker", currency_ticker),
                ("record_name", record_name),
                ("method", method),
            )
            if v is not None
        }
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        template = _MESSAGES[self.code]
        return template.format(
            domain=self.domain if self.domain is not None else "",
            currency_ticker=self.currency_ticker if self.currency_ticker is not None else "currency",
            record_name=self.record_name if self.record_name is not None else "",
            method=self.method if self.method is not None else "naming service",
        )

    def __repr__(self) -> str:
        return f"ResolutionError({self.code.value}, {self.context!r})"

    def __reduce__(self):
        return (type(self), (self.code, self.domain, self.currency_ticker, self.record_name, self.method))


class NamingServiceError(Exception):
    """Raised when a naming service backend cannot be reached or replies with garbage."""

    def __init__(self, service: str, message: str):
        self.service = service
        self.message = message
        super().__init__(f"{service} {message}")

    def __reduce__(self):
        return (type(self), (self.service, self.message))


class ConfigurationError(ValueError):
    """Invalid resolver configuration."""
