"""
Services Package
File handling and assertion helpers used by the test suites
"""

from .file_service import create_directory, file_to_base64, get_files
from .assertion_service import (
    json_assertion,
    literal_values_assertion,
    input_value_assertion,
    locator_text_assertion,
    throw_assert_exception,
    attach_assertion_file_to_report,
    take_screenshot
)

__all__ = [
    'create_directory',
    'file_to_base64',
    'get_files',
    'json_assertion',
    'literal_values_assertion',
    'input_value_assertion',
    'locator_text_assertion',
    'throw_assert_exception',
    'attach_assertion_file_to_report',
    'take_screenshot'
]
