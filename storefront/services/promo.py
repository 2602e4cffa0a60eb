"""
Promo code resolution

Resolvers map a code to a DiscountRule or a PromoRejection. The
PromoApplicator holds the one active rule for a cart session and makes
sure that, when several lookups overlap, the last submitted code wins.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Callable, Iterable, Optional, Protocol

import httpx
from pydantic import ValidationError

from ..models.pricing import DiscountRule, PromoRejection, PromoResult

logger = logging.getLogger(__name__)

INVALID_CODE_MESSAGE = "Invalid or expired promo code"
EMPTY_CODE_MESSAGE = "Please enter a promo code"
UNAVAILABLE_MESSAGE = "Promo service unavailable, please try again later"
STALE_MESSAGE = "Your cart changed, please re-apply promo code"


class PromoLookupError(Exception):
    """Promo lookup could not be completed"""
    pass


class PromoResolver(Protocol):
    async def resolve(self, code: str) -> PromoResult:
        ...


def normalize_code(code: str) -> str:
    return code.strip().upper()


class StaticPromoResolver:
    """Resolves codes from a fixed table of rules"""

    def __init__(self, rules: Iterable[DiscountRule], delay: float = 0.0):
        self.rules = {normalize_code(rule.code): rule for rule in rules}
        self.delay = delay

    async def resolve(self, code: str) -> PromoResult:
        if self.delay:
            await asyncio.sleep(self.delay)

        rule = self.rules.get(normalize_code(code))
        if rule is None:
            return PromoRejection(code=code, reason=INVALID_CODE_MESSAGE)
        return rule


class HttpPromoResolver:
    """
    Resolves codes against a remote promo service.

    GET {base_url}/api/promos/{code} answers 200 with a rule body or 404
    for unknown codes. Anything else raises PromoLookupError.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def resolve(self, code: str) -> PromoResult:
        url = f"{self.base_url}/api/promos/{normalize_code(code)}"
        try:
            response = await self._http_client.get(url)
        except httpx.HTTPError as e:
            raise PromoLookupError(f"Promo lookup failed: {e}") from e

        if response.status_code == 404:
            reason = INVALID_CODE_MESSAGE
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("detail"):
                reason = str(body["detail"])
            return PromoRejection(code=code, reason=reason)

        if response.status_code >= 400:
            logger.error(f"Promo lookup failed: {response.status_code} - {response.text}")
            raise PromoLookupError(f"Promo service returned {response.status_code}")

        try:
            return DiscountRule.model_validate(response.json())
        except (ValidationError, ValueError) as e:
            raise PromoLookupError(f"Malformed promo rule for {code}: {e}") from e


class PromoApplicator:
    """
    Active promo code for one cart session.

    Only one rule is active at a time; a new code always replaces the old
    one. The rule is bound to the subtotal it was applied at, and is
    dropped by invalidate_if_changed() once the subtotal moves.
    """

    def __init__(self, resolver: PromoResolver, subtotal_provider: Callable[[], Decimal]):
        self.resolver = resolver
        self.subtotal_provider = subtotal_provider
        self.active_rule: Optional[DiscountRule] = None
        self.applied_subtotal: Optional[Decimal] = None
        self.message: Optional[str] = None
        self.stale_code: Optional[str] = None
        self._latest_ticket = 0
        self._in_flight = 0

    @property
    def pending(self) -> bool:
        return self._in_flight > 0

    @property
    def code(self) -> Optional[str]:
        if self.active_rule:
            return self.active_rule.code
        return self.stale_code

    async def apply(self, code: str) -> Optional[PromoResult]:
        """
        Resolve and apply a code.

        Returns the result that was applied, or None when a newer
        submission superseded this one while it was in flight.
        """
        self._latest_ticket += 1
        ticket = self._latest_ticket

        if not code or not code.strip():
            result: PromoResult = PromoRejection(code=code or "", reason=EMPTY_CODE_MESSAGE)
            self._accept(result)
            return result

        self._in_flight += 1
        try:
            try:
                result = await self.resolver.resolve(code)
            except PromoLookupError as e:
                logger.warning(f"Promo lookup for {code} failed: {e}")
                result = PromoRejection(code=code, reason=UNAVAILABLE_MESSAGE)
        finally:
            self._in_flight -= 1

        if ticket != self._latest_ticket:
            logger.debug(f"Discarding stale promo response for {code} (ticket {ticket})")
            return None

        self._accept(result)
        return result

    def _accept(self, result: PromoResult) -> None:
        self.stale_code = None
        if isinstance(result, DiscountRule):
            self.active_rule = result
            self.applied_subtotal = self.subtotal_provider()
            self.message = f"Promo code '{result.code}' applied successfully!"
            logger.info(f"Applied promo {result.code} at subtotal {self.applied_subtotal}")
        else:
            self.active_rule = None
            self.applied_subtotal = None
            self.message = result.reason
            logger.info(f"Promo code {result.code!r} rejected: {result.reason}")

    def invalidate_if_changed(self, subtotal: Decimal) -> bool:
        """Drop the active rule if the subtotal moved since it was applied"""
        if self.active_rule is None or subtotal == self.applied_subtotal:
            return False

        logger.info(
            f"Subtotal changed from {self.applied_subtotal} to {subtotal}, "
            f"promo {self.active_rule.code} needs re-applying"
        )
        self.stale_code = self.active_rule.code
        self.active_rule = None
        self.applied_subtotal = None
        self.message = STALE_MESSAGE
        return True

    def clear(self) -> None:
        """Remove the active rule; a lookup still in flight will be ignored"""
        self._latest_ticket += 1
        self.active_rule = None
        self.applied_subtotal = None
        self.message = None
        self.stale_code = None
