"""Per-request providers for outbound service clients."""

from ..core.dc_client import DiagnosticCenterClient
from ..core.signed_url_cache import SignedUrlCache


def get_dc_client() -> DiagnosticCenterClient:
    return DiagnosticCenterClient()


def get_signer() -> SignedUrlCache:
    """A fresh signing session per viewing request."""
    return SignedUrlCache()
