"""
Selenium WebDriver implementation of the document contracts.

Reads go through find_elements so a missing element is an empty result
rather than an exception. Mutations are dispatched with execute_script so
the page's own input/change/keyboard listeners fire, matching what a
user's browser would send.
"""

import os
from typing import Optional, Sequence, Union

from selenium import webdriver
from selenium.common.exceptions import (
    StaleElementReferenceException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement

from ..errors import TransientObservationMiss
from ..logging.config import get_action_logger
from .base import ENTER_KEY, DocumentActuator, DocumentObserver, ElementHandle

logger = get_action_logger(__name__)

_JS_CLOSEST = "return arguments[0].closest(arguments[1]);"
_JS_VISIBLE = "return arguments[0].offsetParent !== null;"
_JS_INNER_TEXT = "return arguments[0].innerText;"
_JS_SET_VALUE = """
const input = arguments[0];
input.value = '';
input.focus();
input.value = arguments[1];
input.dispatchEvent(new Event('input', { bubbles: true }));
input.dispatchEvent(new Event('change', { bubbles: true }));
"""
_JS_KEY_PRESS = """
const target = arguments[0];
const key = arguments[1];
const code = key === 'Enter' ? 13 : 0;
for (const type of ['keydown', 'keypress', 'keyup']) {
    target.dispatchEvent(new KeyboardEvent(type, {
        key: key, code: key, keyCode: code, which: code,
        bubbles: true, cancelable: true
    }));
}
"""
_JS_CLICK = "arguments[0].click();"


class SeleniumElement(ElementHandle):
    """ElementHandle over a selenium WebElement."""

    def __init__(self, driver: WebDriver, element: WebElement, locator: str = "") -> None:
        self.driver = driver
        self.element = element
        self.locator = locator

    @property
    def text(self) -> str:
        try:
            return self.driver.execute_script(_JS_INNER_TEXT, self.element) or ""
        except StaleElementReferenceException as e:
            raise TransientObservationMiss(
                "Element detached while reading text", locator=self.locator
            ) from e

    @property
    def value(self) -> str:
        try:
            return self.element.get_attribute("value") or ""
        except StaleElementReferenceException as e:
            raise TransientObservationMiss(
                "Element detached while reading value", locator=self.locator
            ) from e

    def closest(self, selector: str) -> Optional["SeleniumElement"]:
        try:
            found = self.driver.execute_script(_JS_CLOSEST, self.element, selector)
        except StaleElementReferenceException as e:
            raise TransientObservationMiss(
                "Element detached while walking ancestors", locator=self.locator
            ) from e
        return SeleniumElement(self.driver, found, selector) if found is not None else None


class SeleniumDocument(DocumentObserver, DocumentActuator):
    """Observer and actuator bound to one WebDriver tab."""

    def __init__(self, driver: WebDriver) -> None:
        self.driver = driver
        self.logger = logger

    def find_first(self, selectors: Union[str, Sequence[str]]) -> Optional[SeleniumElement]:
        if isinstance(selectors, str):
            selectors = [selectors]
        for selector in selectors:
            found = self.driver.find_elements(By.CSS_SELECTOR, selector)
            if found:
                return SeleniumElement(self.driver, found[0], selector)
        return None

    def find_by_path_expr(self, expr: str) -> Optional[SeleniumElement]:
        found = self.driver.find_elements(By.XPATH, expr)
        return SeleniumElement(self.driver, found[0], expr) if found else None

    def is_visible(self, handle: ElementHandle) -> bool:
        try:
            return bool(self.driver.execute_script(_JS_VISIBLE, handle.element))
        except StaleElementReferenceException:
            return False

    def query_all(self, selector: str) -> list[SeleniumElement]:
        return [
            SeleniumElement(self.driver, element, selector)
            for element in self.driver.find_elements(By.CSS_SELECTOR, selector)
        ]

    def set_field_value(self, handle: ElementHandle, value: str) -> None:
        self._dispatch("fill", handle, _JS_SET_VALUE, value)

    def click(self, handle: ElementHandle) -> None:
        try:
            self.driver.execute_script(_JS_CLICK, handle.element)
        except StaleElementReferenceException:
            self.logger.debug("Click target detached", locator=handle.locator)
        except WebDriverException:
            # Script click refused (e.g. cross-origin frame); fall back to a native click
            try:
                handle.element.click()
            except WebDriverException as e:
                self.logger.debug("Native click failed", locator=handle.locator, error=str(e))

    def simulate_key_press(self, handle: ElementHandle, key: str = ENTER_KEY) -> None:
        self._dispatch("key", handle, _JS_KEY_PRESS, key)

    def _dispatch(self, action: str, handle: ElementHandle, script: str, argument: str) -> None:
        try:
            self.driver.execute_script(script, handle.element, argument)
        except StaleElementReferenceException:
            self.logger.debug("Action target detached", action=action, locator=handle.locator)


def launch_chrome(
    block_images: bool = True,
    profile_dir: Optional[str] = None,
    window_size: str = "1024,768",
) -> WebDriver:
    """
    Start a Chrome session for the bot.

    Args:
        block_images: Skip image loading while the bot runs
        profile_dir: User data dir; keeps the site's login session between runs
        window_size: Large enough that responsive layouts keep every control visible
    """
    options = Options()
    options.add_argument("--no-first-run")
    options.add_argument("--password-store=basic")
    options.add_argument("--lang=zh-TW")
    options.add_argument(f"--window-size={window_size}")

    if profile_dir:
        os.makedirs(profile_dir, exist_ok=True)
        options.add_argument(f"--user-data-dir={profile_dir}")

    if block_images:
        options.add_experimental_option(
            "prefs", {"profile.managed_default_content_settings.images": 2}
        )

    driver = webdriver.Chrome(options=options)
    logger.info("Chrome session started", block_images=block_images, profile_dir=profile_dir)
    return driver
