"""
================================================================================
Login Page Object (Async / Playwright)
================================================================================

Async Login Page Object built on the self-healing BasePage.

Design goals:
  - Consistent with async Playwright fixtures used in `healing_suites/ui_testing/tests/`
  - Every element declares a primary selector plus fallbacks; anything that
    still fails is healed heuristically and recorded for later runs

NOTE:
  Primary selectors are intentionally id-based so that markup drift
  exercises the healing path. Real projects should prefer `data-testid`.

================================================================================
"""

from __future__ import annotations

import os
from typing import Optional

import allure

from healing_suites.ui_testing.framework.page_base import BasePage


class LoginPage(BasePage):
    """Login page object (async)."""

    URL_PATH = "/login"
    PAGE_NAME = "login-page"

    ELEMENTS = {
        "username_input": {
            "primary": "#username",
            "fallbacks": ["input[name='username']", "[data-testid='input-username']"],
        },
        "password_input": {
            "primary": "#password",
            "fallbacks": ["input[name='password']", "input[type='password']"],
        },
        "login_button": {
            "primary": "#login-btn",
            "fallbacks": ["[data-testid='btn-login']", "button[type='submit']"],
        },
        "error_message": {
            "primary": "#login-error",
            "fallbacks": ["[data-testid='error-message']", ".error-message", "[role='alert']"],
        },
    }

    @allure.step("Open login page")
    async def open(self) -> "LoginPage":
        """Navigate to the login page."""
        await self.navigate()
        await self.wait_for_page_load()
        return self

    @allure.step("Verify login form is displayed")
    async def is_form_visible(self) -> bool:
        """Verify login form elements are visible."""
        for name in ("username_input", "password_input", "login_button"):
            if not await self.is_visible(name):
                return False
        return True

    @allure.step("Login (username={username})")
    async def login(
        self,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> None:
        """
        Perform login.

        Args:
            username: Username to login. Defaults to `UI_USERNAME` env var (demo-safe).
            password: Password to login. Defaults to `UI_PASSWORD` env var (demo-safe).
        """
        if username is None:
            username = os.getenv("UI_USERNAME", "demo_user")
        if password is None:
            password = os.getenv("UI_PASSWORD", "demo_password")

        await self.fill("username_input", username)
        await self.fill("password_input", password)
        await self.click("login_button")

    async def error_message(self) -> str:
        """Text of the login error, empty if none is shown."""
        if not await self.is_visible("error_message"):
            return ""
        return (await self.get_text("error_message")).strip()


__all__ = ["LoginPage"]
