"""
================================================================================
Self-Healing Locator UI Tests (Async / Playwright)
================================================================================

Resolution order, registry persistence and heuristic healing against a real
browser. Markup is injected with `page.set_content`.

================================================================================
"""

import allure
import pytest
from playwright.async_api import Error as PlaywrightError

from healing_suites.ui_testing.framework.self_healing_locator import (
    ResolutionStrategy,
    SelfHealingLocator,
)


LOGIN_V1 = '<button id="login-btn">Login</button>'
LOGIN_V2 = '<button id="signin-btn" data-testid="login-button">Login</button>'


@allure.epic("UI Testing")
@allure.feature("Self-Healing Locator")
class TestSelfHealingLocator:
    """Self-healing resolver suite (async)."""

    @allure.story("Primary Match")
    @allure.title("Matching primary selector is used as-is")
    @pytest.mark.P0
    @pytest.mark.smoke
    async def test_primary_selector_matches(self, page, healer, registry):
        await page.set_content(LOGIN_V1)

        locator = await healer.get_locator("#login-btn", [])

        assert await locator.count() == 1
        assert await locator.text_content() == "Login"
        assert registry.load() == {}

    @allure.story("Fallback Healing")
    @allure.title("Fallback heals drifted id and is recorded")
    @pytest.mark.P0
    @pytest.mark.smoke
    @pytest.mark.healing
    async def test_fallback_heals_and_records(self, page, healer, registry):
        await page.set_content(LOGIN_V2)

        resolution = await healer.resolve("#login-btn", ['[data-testid="login-button"]'])

        assert resolution.strategy == ResolutionStrategy.FALLBACK
        assert await resolution.locator.count() == 1
        assert await resolution.locator.text_content() == "Login"
        assert registry.load() == {"#login-btn": '[data-testid="login-button"]'}

    @allure.story("Fallback Healing")
    @allure.title("Healed selector is reused by later runs")
    @pytest.mark.P1
    @pytest.mark.healing
    async def test_registry_survives_new_resolver(self, page, healer, registry):
        await page.set_content(LOGIN_V2)
        await healer.resolve("#login-btn", ['[data-testid="login-button"]'])

        later_run = SelfHealingLocator(page, registry=registry, healing_enabled=True)
        resolution = await later_run.resolve("#login-btn")

        assert resolution.strategy == ResolutionStrategy.REGISTRY
        assert await resolution.locator.text_content() == "Login"

    @allure.story("Fixed Order")
    @allure.title("Fallbacks are not tried when the primary matches")
    @pytest.mark.P1
    async def test_primary_wins_over_matching_fallback(self, page, healer, registry):
        await page.set_content(LOGIN_V1 + '<a id="other">Other</a>')

        resolution = await healer.resolve("#login-btn", ["#other"])

        assert resolution.strategy == ResolutionStrategy.PRIMARY
        assert await resolution.locator.text_content() == "Login"
        assert registry.load() == {}

    @allure.story("Heuristic Healing")
    @allure.title("Visible text heals a selector without fallbacks")
    @pytest.mark.P1
    @pytest.mark.healing
    async def test_heuristic_heals_by_text(self, page, healer, registry):
        await page.set_content(LOGIN_V2)

        resolution = await healer.resolve("#login-btn")

        assert resolution.strategy.startswith(ResolutionStrategy.HEURISTIC)
        assert await resolution.locator.count() >= 1
        assert "Login" in await resolution.locator.first.text_content()
        assert registry.lookup("#login-btn") == resolution.selector

    @allure.story("Heuristic Healing")
    @allure.title("Placeholder heals a renamed input")
    @pytest.mark.P2
    @pytest.mark.healing
    async def test_heuristic_heals_input_by_placeholder(self, page, healer):
        await page.set_content('<input id="user-mail" placeholder="Email address">')

        resolution = await healer.resolve("#email-input")

        assert resolution.strategy == "heuristic:by_placeholder"
        assert await resolution.locator.get_attribute("id") == "user-mail"

    @allure.story("Healing Disabled")
    @allure.title("Unmatched selector returns an empty locator")
    @pytest.mark.P1
    async def test_healing_disabled(self, page, registry):
        await page.set_content(LOGIN_V2)
        healer = SelfHealingLocator(page, registry=registry, healing_enabled=False)

        resolution = await healer.resolve("#login-btn", ['[data-testid="login-button"]'])

        assert resolution.strategy == ResolutionStrategy.UNRESOLVED
        assert await resolution.locator.count() == 0
        assert registry.load() == {}

    @allure.story("Unresolved")
    @allure.title("Nothing on the page resembles the selector")
    @pytest.mark.P2
    async def test_unresolvable_selector(self, page, healer, registry):
        await page.set_content("<p>nothing to see</p>")

        resolution = await healer.resolve("#checkout-total")

        assert resolution.strategy == ResolutionStrategy.UNRESOLVED
        assert await resolution.locator.count() == 0
        assert registry.load() == {}

    @allure.story("Errors")
    @allure.title("Malformed selector raises a Playwright error")
    @pytest.mark.P2
    async def test_malformed_selector_propagates(self, page, healer):
        await page.set_content(LOGIN_V1)

        with pytest.raises(PlaywrightError):
            await healer.resolve("##bad")

    @allure.story("Interactions")
    @allure.title("Fill and read through healed selectors")
    @pytest.mark.P2
    async def test_interactions(self, page, healer):
        await page.set_content('<input name="q"><span class="result">done</span>')

        await healer.fill("#search", "healing", fallbacks=["input[name='q']"])

        assert await page.input_value("input[name='q']") == "healing"
        assert await healer.get_text("#result-text", fallbacks=[".result"]) == "done"
        assert await healer.is_visible("#nowhere", fallbacks=["#also-nowhere"]) is False
