"""
Tests for cookie extraction error handling.
"""

from chrome_cookies.extractors.errors import (
    BrowserLaunchError,
    BrowserNotInstalledError,
    CookieError,
    CookieExtractionError,
    NoCookiesFoundError,
    ProtocolError
)


def test_cookie_error_base():
    """Test basic CookieError functionality."""
    error = CookieError("Test error")
    assert str(error) == "Test error"
    assert error.user_message == "Test error"
    assert error.detail == "Test error"
    assert error.original_error is None


def test_cookie_error_with_original():
    """Test CookieError with original exception."""
    original = OSError("disk gone")
    error = CookieExtractionError("Wrapped error", original_error=original)
    assert error.original_error is original
    assert error.user_message == "Wrapped error"


def test_browser_not_installed_error():
    error = BrowserNotInstalledError()
    assert error.user_message == "Chrome browser not found"
    assert str(error) == "Chrome browser not found"

    detailed = BrowserNotInstalledError("Chrome executable not found")
    assert detailed.user_message == "Chrome browser not found: Chrome executable not found"


def test_browser_launch_error():
    error = BrowserLaunchError("DevTools handshake failed: reset")
    assert error.user_message == "Failed to launch browser: DevTools handshake failed: reset"
    assert error.detail == "DevTools handshake failed: reset"


def test_no_cookies_found_error():
    error = NoCookiesFoundError("jd.com")
    assert error.domain == "jd.com"
    assert error.user_message == "No cookies found for jd.com"
    assert NoCookiesFoundError().user_message == "No cookies found for this domain"


def test_protocol_error_is_other():
    error = ProtocolError("Storage.getCookies failed: Internal error")
    assert isinstance(error, CookieExtractionError)
    assert error.user_message == "DevTools protocol error: Storage.getCookies failed: Internal error"


def test_messages_are_distinct():
    messages = {
        BrowserNotInstalledError().user_message,
        BrowserLaunchError("x").user_message,
        NoCookiesFoundError("x").user_message,
        CookieExtractionError("x").user_message,
    }
    assert len(messages) == 4


def test_error_inheritance():
    for error_cls in (BrowserNotInstalledError, BrowserLaunchError, NoCookiesFoundError,
                      CookieExtractionError, ProtocolError):
        assert issubclass(error_cls, CookieError)
        assert issubclass(error_cls, Exception)
