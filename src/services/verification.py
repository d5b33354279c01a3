"""
Ticketeer - Purchase Verification
=================================

Tebex transaction lookups for categories that require a purchase.

DESIGN:
    verify_purchase() never raises for expected failures. Missing
    configuration, malformed tokens, unknown payments and network errors
    all come back as a failed VerificationResult with a reason, which
    the intake workflow turns into VERIFICATION_FAILED.
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple
from urllib.parse import quote

import aiohttp

from src.core.constants import API_TIMEOUT, TEBEX_API_BASE
from src.core.logger import logger


# =============================================================================
# Token Format
# =============================================================================

TOKEN_PATTERN = re.compile(r"^tbx-[0-9a-z]+-[0-9a-z]+$", re.IGNORECASE)


def is_valid_token(token: Optional[str]) -> bool:
    """Check the tbx-<alnum>-<alnum> shape of a transaction id."""
    return bool(token) and TOKEN_PATTERN.match(token.strip()) is not None


# =============================================================================
# Result
# =============================================================================

@dataclass(frozen=True)
class VerificationResult:
    """
    Outcome of a purchase lookup.

    Attributes:
        success: Whether the payment was found.
        status: Payment status reported by Tebex (e.g. "Complete").
        packages: Names of the purchased packages.
        reason: Failure reason when success is False.
    """

    success: bool
    status: Optional[str] = None
    packages: Tuple[str, ...] = ()
    reason: Optional[str] = None

    @classmethod
    def failure(cls, reason: str) -> "VerificationResult":
        return cls(success=False, reason=reason)


def parse_payment(data: Any) -> VerificationResult:
    """
    Turn a Tebex payment payload into a VerificationResult.

    Args:
        data: Decoded JSON body of GET /payments/{id}.

    Returns:
        Success with status and package names, or a malformed_response failure.
    """
    if not isinstance(data, dict) or not data.get("status"):
        return VerificationResult.failure("malformed_response")

    packages = tuple(
        str(package["name"])
        for package in data.get("packages") or []
        if isinstance(package, dict) and package.get("name")
    )
    return VerificationResult(success=True, status=str(data["status"]), packages=packages)


# =============================================================================
# Client
# =============================================================================

class TebexClient:
    """Minimal Tebex plugin API client."""

    def __init__(
        self,
        secret: Optional[str],
        base_url: str = TEBEX_API_BASE,
        timeout: float = API_TIMEOUT,
    ) -> None:
        self.secret = secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

        logger.tree("Tebex Client", [
            ("Status", "Enabled" if secret else "Disabled"),
            ("API", self.base_url),
        ], emoji="🛒")

    @property
    def enabled(self) -> bool:
        return bool(self.secret)

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create persistent HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        """Close HTTP session on shutdown."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def verify_purchase(self, token: str) -> VerificationResult:
        """
        Look up a transaction id.

        Args:
            token: Transaction id as typed by the requester.

        Returns:
            VerificationResult (never raises for lookup failures).
        """
        token = (token or "").strip()
        if not is_valid_token(token):
            return VerificationResult.failure("malformed_token")
        if not self.enabled:
            logger.warning("Tebex Lookup Skipped", [("Reason", "TEBEX_SECRET not configured")])
            return VerificationResult.failure("not_configured")

        url = f"{self.base_url}/payments/{quote(token, safe='')}"
        try:
            session = await self._get_session()
            async with session.get(url, headers={"X-Tebex-Secret": self.secret}) as response:
                if response.status == 404:
                    logger.info("Tebex Payment Not Found", [("Transaction", token)])
                    return VerificationResult.failure("not_found")
                if response.status != 200:
                    logger.warning("Tebex Lookup Rejected", [
                        ("Transaction", token),
                        ("Status", str(response.status)),
                    ])
                    return VerificationResult.failure(f"http_{response.status}")
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.warning("Tebex Lookup Failed", [
                ("Transaction", token),
                ("Error Type", type(e).__name__),
                ("Error", str(e)[:100]),
            ])
            return VerificationResult.failure("unreachable")

        result = parse_payment(data)
        logger.tree("Tebex Payment Verified" if result.success else "Tebex Payment Unreadable", [
            ("Transaction", token),
            ("Status", result.status or result.reason or "-"),
            ("Packages", ", ".join(result.packages) or "-"),
        ], emoji="🛒")
        return result


__all__ = [
    "TOKEN_PATTERN",
    "is_valid_token",
    "VerificationResult",
    "parse_payment",
    "TebexClient",
]
