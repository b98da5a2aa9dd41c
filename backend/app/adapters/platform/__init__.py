"""Recruiting platform client.

This module provides:
- PlatformClient base class (the wizard's external collaborators)
- HttpPlatformClient for the real platform
- MockPlatformClient for tests
- Factory function building an HTTP client from settings
"""

from app.adapters.platform.base import PlatformClient
from app.adapters.platform.http_client import HttpPlatformClient
from app.adapters.platform.mock_client import MockPlatformClient
from app.core.config import Settings, settings
from app.core.retry import RetryPolicy


def get_platform_client(
    authorization: str | None = None,
    config: Settings = settings,
) -> PlatformClient:
    """Build an HTTP platform client from settings.

    Args:
        authorization: Caller's Authorization header, forwarded to the platform.
        config: Settings to read URL, timeout and retry values from.

    Returns:
        A new HttpPlatformClient. The caller owns it and must ``aclose()`` it.
    """
    return HttpPlatformClient(
        config.platform_api_url,
        authorization=authorization,
        timeout=config.platform_timeout_seconds,
        retry_policy=RetryPolicy(
            max_retries=config.platform_max_retries,
            base_delay_ms=config.platform_retry_base_delay_ms,
            max_delay_ms=config.platform_retry_max_delay_ms,
        ),
    )


__all__ = [
    "get_platform_client",
    "HttpPlatformClient",
    "MockPlatformClient",
    "PlatformClient",
]
