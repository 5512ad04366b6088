"""
Assertion Service
Log-then-assert helpers that keep a human readable trail of every check
"""
import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional, Union

from playwright.async_api import Locator, Page, expect

from testbridge.logger import ASSERTION_FILE_NAME, write_log

logger = logging.getLogger(__name__)

RecordProperty = Callable[[str, Any], None]


def _assertion_message(expected: Any, obtained: Any) -> str:
    return f"ASSERTION RESULT:\n Expected: {expected} \n Obtained: {obtained}"


def json_assertion(obtained_value: Any, expected_value: Any, assertion_logger: logging.Logger):
    """
    Makes an assertion with JSON objects

    Args:
        obtained_value: Decoded JSON obtained from the system under test
        expected_value: Expected JSON structure
        assertion_logger: Logger created with `logger_setup`
    """
    message = _assertion_message(
        json.dumps(expected_value, default=str),
        json.dumps(obtained_value, default=str)
    )
    write_log(message, assertion_logger)
    if obtained_value != expected_value:
        raise AssertionError(message)


def literal_values_assertion(obtained_value: Any, expected_value: Any, assertion_logger: logging.Logger):
    """Makes an assertion with literal values"""
    message = _assertion_message(expected_value, obtained_value)
    write_log(message, assertion_logger)
    if obtained_value != expected_value:
        raise AssertionError(message)


async def input_value_assertion(locator: Locator, expected_text: str, assertion_logger: logging.Logger):
    """Makes the assertion if the input has the expected value"""
    message = _assertion_message(expected_text, await locator.input_value())
    write_log(message, assertion_logger)
    await expect(locator).to_have_value(expected_text)


async def locator_text_assertion(locator: Locator, expected_text: str, assertion_logger: logging.Logger):
    """Makes the assertion if the locator contains the expected text"""
    message = _assertion_message(expected_text, await locator.inner_text())
    write_log(message, assertion_logger)
    await expect(locator).to_contain_text(expected_text)


def throw_assert_exception(message: Optional[Any] = None):
    raise AssertionError(f"Test Failed: {message}")


def attach_assertion_file_to_report(record_property: RecordProperty, path: Union[str, Path]):
    """
    Attach the assertion results file to the test report

    Args:
        record_property: pytest `record_property` fixture (or any callable with the same signature)
        path: Test result directory holding the assertion file
    """
    assertion_file = Path(path) / ASSERTION_FILE_NAME
    if not assertion_file.exists():
        logger.warning(f"Assertion file not found: {assertion_file}")
    record_property("AssertionResults", str(assertion_file))


async def take_screenshot(record_property: RecordProperty, page: Page, path: Union[str, Path]) -> bytes:
    """Takes a full page screenshot and attaches it to the report"""
    screenshot = await page.screenshot(path=str(path), full_page=True)
    logger.debug(f"📸 Captured page screenshot: {path}")
    record_property("screenshot", str(path))
    return screenshot
