"""Blockchain domain name resolution across ENS, ZNS, CNS and the Unstoppable Domains API."""

__version__ = "1.0.0"

from .config import ResolutionConfig
from .errors import ConfigurationError, NamingServiceError, ResolutionError, ResolutionErrorCode
from .resolution import Resolution
from .types import UNCLAIMED_DOMAIN_RESPONSE, ResolutionMeta, ResolutionResponse

__all__ = [
    "Resolution",
    "ResolutionConfig",
    "ResolutionError",
    "ResolutionErrorCode",
    "NamingServiceError",
    "ConfigurationError",
    "ResolutionResponse",
    "ResolutionMeta",
    "UNCLAIMED_DOMAIN_RESPONSE",
]
