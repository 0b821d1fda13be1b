# Chrome profile discovery and cookie extraction

from typing import List

from .browser_paths import BrowserProfile
from .cookie_data import Cookie, domain_matches, extract_domain
from .cookie_reader import ChromeCookieReader, list_profiles, read_cookies
from .errors import (
    BrowserLaunchError,
    BrowserNotInstalledError,
    CookieError,
    CookieExtractionError,
    NoCookiesFoundError,
    ProtocolError
)

__all__: List[str] = [
    'BrowserProfile',
    'Cookie',
    'ChromeCookieReader',
    'domain_matches',
    'extract_domain',
    'list_profiles',
    'read_cookies',
    'BrowserLaunchError',
    'BrowserNotInstalledError',
    'CookieError',
    'CookieExtractionError',
    'NoCookiesFoundError',
    'ProtocolError',
]
