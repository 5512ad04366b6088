"""
Exceptions raised by the testbridge helpers
"""
from typing import Optional


class ApiRequestError(Exception):
    """Non-2xx response from a remote API"""

    def __init__(self, status_code: int, response_text: str, url: Optional[str] = None):
        self.status_code = status_code
        self.response_text = response_text
        self.url = url
        target = f" to {url}" if url else ""
        super().__init__(
            f"API request failed{target}. Status Code: {status_code} Response: {response_text}"
        )


class ReferenceMissingError(LookupError):
    """Local registry is missing an entry the remote run expects (or vice versa)"""


class ConfigurationError(ValueError):
    """Missing or invalid configuration"""
