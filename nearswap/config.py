"""
Environment configuration for the NEAR Intent Swaps MCP server.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_API_URL = "https://1click.chaindefuser.com"
SUPPORTED_TRANSPORTS = ("stdio", "sse")


def _parse_timeout(raw: Optional[str]) -> Optional[float]:
    """Parse NEAR_SWAP_HTTP_TIMEOUT; unset or empty means no local timeout."""
    if raw is None or not raw.strip():
        return None
    try:
        timeout = float(raw)
    except ValueError:
        raise ValueError(f"NEAR_SWAP_HTTP_TIMEOUT must be a number of seconds, got {raw!r}")
    if timeout <= 0:
        return None
    return timeout


@dataclass(frozen=True)
class SwapConfig:
    """Configuration for the 1Click swap API and the MCP transport"""
    base_url: str = DEFAULT_API_URL
    jwt_token: str = ""
    http_timeout: Optional[float] = None
    transport: str = "stdio"
    log_level: str = "INFO"

    @property
    def has_token(self) -> bool:
        return bool(self.jwt_token)

    @classmethod
    def from_env(cls) -> "SwapConfig":
        """Read the configuration from the process environment.

        Absent values fall back to the production API URL and an empty token.
        An empty token is allowed; authenticated calls then fail remotely.
        """
        base_url = os.getenv("NEAR_SWAP_API_URL") or DEFAULT_API_URL
        return cls(
            base_url=base_url.rstrip("/"),
            jwt_token=os.getenv("NEAR_SWAP_JWT_TOKEN", ""),
            http_timeout=_parse_timeout(os.getenv("NEAR_SWAP_HTTP_TIMEOUT")),
            transport=os.getenv("TRANSPORT", "stdio").lower(),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
