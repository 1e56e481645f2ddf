import pytest
from playwright.async_api import Error as PlaywrightError

from clearance.accumulator import ProductAccumulator
from clearance.interactive import (
    BotChallengeError,
    RateLimitError,
    SETTLE_DELAY_MS,
    ShowMoreAcquirer,
    check_page_access,
    click_and_wait_for_growth,
    find_show_more_button,
)
from clearance.pipeline import collect_products
from clearance.stop_conditions import StopReason
from helpers import FakeShowMorePage, link_for


async def run(page, max_items=100, max_clicks=40):
    acquirer = ShowMoreAcquirer(page, max_items=max_items, max_clicks=max_clicks)
    result = await collect_products(acquirer, ProductAccumulator(max_items))
    return acquirer, result


@pytest.mark.asyncio
async def test_runs_until_the_button_disappears():
    page = FakeShowMorePage([["a", "b"], ["c", "d"], ["e"]])

    acquirer, result = await run(page)

    assert result.stop_reason is StopReason.NO_MORE_CONTROL
    assert [p.link for p in result.products] == [link_for(s) for s in "abcde"]
    assert page.clicks == 2
    assert acquirer.state.clicks == 2


@pytest.mark.asyncio
async def test_two_stagnant_clicks_stop():
    page = FakeShowMorePage([["a", "b"], [], []], keep_button=True)

    acquirer, result = await run(page)

    assert result.stop_reason is StopReason.STAGNANT
    assert page.clicks == 2
    assert len(result.products) == 2
    # growth never arrived, so each click got the extra settle delay
    assert page.waits.count(SETTLE_DELAY_MS) == 2


@pytest.mark.asyncio
async def test_single_stagnant_click_does_not_stop():
    page = FakeShowMorePage([["a"], [], ["b"], [], []], keep_button=True)

    acquirer, result = await run(page)

    assert result.stop_reason is StopReason.STAGNANT
    assert page.clicks == 4
    assert [p.link for p in result.products] == [link_for("a"), link_for("b")]


@pytest.mark.asyncio
async def test_click_limit():
    page = FakeShowMorePage([["a"], ["b"], ["c"], ["d"]])

    _, result = await run(page, max_clicks=2)

    assert result.stop_reason is StopReason.CLICK_LIMIT
    assert len(result.products) == 3


@pytest.mark.asyncio
async def test_item_cap_truncates():
    page = FakeShowMorePage([["a", "b", "c"], ["d", "e", "f"]])

    _, result = await run(page, max_items=4)

    assert result.stop_reason is StopReason.CAPPED
    assert [p.link for p in result.products] == [link_for(s) for s in "abcd"]


@pytest.mark.asyncio
async def test_hidden_button_counts_as_missing():
    page = FakeShowMorePage([["a"], ["b"]], button_visible=False)

    assert await find_show_more_button(page) is None
    _, result = await run(page)
    assert result.stop_reason is StopReason.NO_MORE_CONTROL


@pytest.mark.asyncio
async def test_click_errors_fall_through_to_stagnation():
    page = FakeShowMorePage([["a"], ["b"]], click_error=True)

    _, result = await run(page)

    assert result.stop_reason is StopReason.STAGNANT
    assert [p.link for p in result.products] == [link_for("a")]


@pytest.mark.asyncio
async def test_click_and_wait_reports_growth():
    page = FakeShowMorePage([["a"], ["b"]])
    button = await find_show_more_button(page)

    assert await click_and_wait_for_growth(page, button, previous_count=1) is True
    assert SETTLE_DELAY_MS not in page.waits


@pytest.mark.asyncio
async def test_missing_first_tiles_propagates():
    page = FakeShowMorePage([[]])

    with pytest.raises(PlaywrightError):
        await run(page)


class FakeBody:
    def __init__(self, text):
        self.text = text

    async def inner_text(self):
        return self.text


class FakeResponse:
    def __init__(self, status):
        self.status = status


class FakeLandingPage:
    url = "https://www.sportinglife.ca/en-CA/clearance/"

    def __init__(self, title="Clearance", body="Shop clearance"):
        self._title = title
        self._body = body

    async def title(self):
        return self._title

    def locator(self, selector):
        return FakeBody(self._body)


class TestCheckPageAccess:
    @pytest.mark.asyncio
    async def test_normal_page(self):
        await check_page_access(FakeLandingPage(), FakeResponse(200), headless=True)

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        with pytest.raises(RateLimitError):
            await check_page_access(FakeLandingPage(), FakeResponse(429), headless=True)

    @pytest.mark.asyncio
    async def test_rate_limit_page_served_with_200(self):
        page = FakeLandingPage(title="Access denied", body="Error 1015: You are being rate limited")
        with pytest.raises(RateLimitError):
            await check_page_access(page, FakeResponse(200), headless=False)

    @pytest.mark.asyncio
    async def test_challenge_headless(self):
        page = FakeLandingPage(title="Just a moment...")
        with pytest.raises(BotChallengeError):
            await check_page_access(page, FakeResponse(403), headless=True)

    @pytest.mark.asyncio
    async def test_challenge_headed_continues(self):
        page = FakeLandingPage(body="Cloudflare security verification")
        await check_page_access(page, FakeResponse(200), headless=False)
