"""
Cookie extraction error classes.

Every failure of the extraction subsystem is reported with one of the
exceptions below, so callers can render a consistent message without
knowing which layer failed.

Usage:
    try:
        cookies = await read_cookies("https://www.example.com")
    except NoCookiesFoundError:
        ...  # nothing stored for that domain, ask the user to log in
    except CookieError as e:
        print(e.user_message)
"""

from typing import Optional


class CookieError(Exception):
    """Base exception for all cookie extraction errors."""

    def __init__(self, message: str = "", original_error: Optional[Exception] = None):
        self.detail = message
        self.original_error = original_error
        self.user_message = self._create_user_message(message)
        super().__init__(message or self.user_message)

    def _create_user_message(self, message: str) -> str:
        """Create a user-friendly error message."""
        return message


class BrowserNotInstalledError(CookieError):
    """Raised when the Chrome user-data directory or executable is missing."""

    def _create_user_message(self, message: str) -> str:
        if message:
            return f"Chrome browser not found: {message}"
        return "Chrome browser not found"


class BrowserLaunchError(CookieError):
    """Raised when the headless browser cannot be started or connected to."""

    def _create_user_message(self, message: str) -> str:
        return f"Failed to launch browser: {message}"


class NoCookiesFoundError(CookieError):
    """Raised when extraction worked but no cookie matched the domain."""

    def __init__(self, domain: str = "", original_error: Optional[Exception] = None):
        self.domain = domain
        super().__init__(domain, original_error)

    def _create_user_message(self, message: str) -> str:
        if message:
            return f"No cookies found for {message}"
        return "No cookies found for this domain"


class CookieExtractionError(CookieError):
    """Raised for protocol or I/O failures not covered by another error."""


class ProtocolError(CookieExtractionError):
    """Raised when a DevTools protocol call fails."""

    def _create_user_message(self, message: str) -> str:
        return f"DevTools protocol error: {message}"
