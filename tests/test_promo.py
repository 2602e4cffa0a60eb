import asyncio
from decimal import Decimal

import httpx
import pytest

from storefront.models.pricing import DiscountKind, DiscountRule, PromoRejection
from storefront.services.promo import (
    EMPTY_CODE_MESSAGE,
    INVALID_CODE_MESSAGE,
    UNAVAILABLE_MESSAGE,
    HttpPromoResolver,
    PromoApplicator,
    PromoLookupError,
    StaticPromoResolver,
)


class ControlledResolver:
    """Resolver whose lookups finish only when the test releases them"""

    def __init__(self, rules):
        self.inner = StaticPromoResolver(rules)
        self.gates: dict[str, asyncio.Event] = {}
        self.calls = []

    async def resolve(self, code):
        self.calls.append(code)
        gate = self.gates.setdefault(code, asyncio.Event())
        await gate.wait()
        return await self.inner.resolve(code)

    def release(self, code):
        self.gates.setdefault(code, asyncio.Event()).set()


class FailingResolver:
    async def resolve(self, code):
        raise PromoLookupError("connection refused")


@pytest.mark.asyncio
async def test_static_resolver(promo_resolver):
    rule = await promo_resolver.resolve(" welcome20 ")
    rejection = await promo_resolver.resolve("INVALID")

    assert isinstance(rule, DiscountRule)
    assert rule.value == Decimal("0.20")
    assert rejection == PromoRejection(code="INVALID", reason=INVALID_CODE_MESSAGE)


@pytest.mark.asyncio
async def test_apply_valid_code(promo_resolver):
    promo = PromoApplicator(promo_resolver, lambda: Decimal("60"))

    result = await promo.apply("WELCOME20")

    assert promo.active_rule == result
    assert promo.applied_subtotal == Decimal("60")
    assert "applied" in promo.message


@pytest.mark.asyncio
async def test_rejection_clears_rule_and_sets_message(promo_resolver):
    promo = PromoApplicator(promo_resolver, lambda: Decimal("60"))
    await promo.apply("WELCOME20")

    result = await promo.apply("INVALID")

    assert isinstance(result, PromoRejection)
    assert promo.active_rule is None
    assert promo.message == INVALID_CODE_MESSAGE


@pytest.mark.asyncio
async def test_new_code_replaces_previous(promo_resolver):
    promo = PromoApplicator(promo_resolver, lambda: Decimal("60"))

    await promo.apply("WELCOME20")
    await promo.apply("DISCOUNT10")

    assert promo.active_rule.code == "DISCOUNT10"


@pytest.mark.asyncio
async def test_empty_code_is_rejected_without_lookup(promo_rules):
    resolver = ControlledResolver(promo_rules)
    promo = PromoApplicator(resolver, lambda: Decimal("60"))

    result = await promo.apply("   ")

    assert isinstance(result, PromoRejection)
    assert promo.message == EMPTY_CODE_MESSAGE
    assert resolver.calls == []


@pytest.mark.asyncio
async def test_last_submitted_code_wins(promo_rules):
    resolver = ControlledResolver(promo_rules)
    promo = PromoApplicator(resolver, lambda: Decimal("60"))

    first = asyncio.create_task(promo.apply("WELCOME20"))
    second = asyncio.create_task(promo.apply("DISCOUNT10"))
    await asyncio.sleep(0)
    assert promo.pending

    # The later submission answers first, the earlier one answers last
    resolver.release("DISCOUNT10")
    assert (await second).code == "DISCOUNT10"
    resolver.release("WELCOME20")
    assert await first is None

    assert promo.active_rule.code == "DISCOUNT10"
    assert not promo.pending


@pytest.mark.asyncio
async def test_rule_binds_to_subtotal_when_lookup_completes(promo_rules):
    resolver = ControlledResolver(promo_rules)
    subtotal = {"value": Decimal("60")}
    promo = PromoApplicator(resolver, lambda: subtotal["value"])

    task = asyncio.create_task(promo.apply("WELCOME20"))
    await asyncio.sleep(0)
    subtotal["value"] = Decimal("80")
    resolver.release("WELCOME20")
    await task

    assert promo.applied_subtotal == Decimal("80")
    assert not promo.invalidate_if_changed(Decimal("80"))


@pytest.mark.asyncio
async def test_invalidate_if_changed(promo_resolver):
    promo = PromoApplicator(promo_resolver, lambda: Decimal("60"))
    await promo.apply("WELCOME20")

    assert promo.invalidate_if_changed(Decimal("40"))
    assert promo.active_rule is None
    assert promo.stale_code == "WELCOME20"
    assert promo.code == "WELCOME20"


@pytest.mark.asyncio
async def test_clear_ignores_in_flight_lookup(promo_rules):
    resolver = ControlledResolver(promo_rules)
    promo = PromoApplicator(resolver, lambda: Decimal("60"))

    task = asyncio.create_task(promo.apply("WELCOME20"))
    await asyncio.sleep(0)
    promo.clear()
    resolver.release("WELCOME20")

    assert await task is None
    assert promo.active_rule is None


@pytest.mark.asyncio
async def test_lookup_failure_becomes_rejection():
    promo = PromoApplicator(FailingResolver(), lambda: Decimal("60"))

    result = await promo.apply("WELCOME20")

    assert isinstance(result, PromoRejection)
    assert promo.message == UNAVAILABLE_MESSAGE
    assert promo.active_rule is None


def _http_resolver(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpPromoResolver("http://promos.test/", http_client=client)


@pytest.mark.asyncio
async def test_http_resolver_returns_rule():
    def handler(request):
        assert request.url.path == "/api/promos/WELCOME20"
        return httpx.Response(200, json={"code": "WELCOME20", "kind": "percent", "value": "0.20"})

    resolver = _http_resolver(handler)
    rule = await resolver.resolve("welcome20")
    await resolver.close()

    assert rule == DiscountRule(code="WELCOME20", kind=DiscountKind.PERCENT, value=Decimal("0.20"))


@pytest.mark.asyncio
async def test_http_resolver_404_is_rejection():
    resolver = _http_resolver(lambda request: httpx.Response(404, json={"detail": "Code expired"}))

    result = await resolver.resolve("OLD")
    await resolver.close()

    assert result == PromoRejection(code="OLD", reason="Code expired")


@pytest.mark.asyncio
async def test_http_resolver_server_error_raises():
    resolver = _http_resolver(lambda request: httpx.Response(503, text="down"))

    with pytest.raises(PromoLookupError):
        await resolver.resolve("WELCOME20")
    await resolver.close()
