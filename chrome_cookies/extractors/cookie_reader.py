"""Chrome cookie extraction with a single-call API"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .browser_paths import (
    BrowserProfile,
    DEFAULT_PROFILE,
    find_chrome_executable,
    get_user_data_dir,
    list_profiles as find_profiles
)
from .cdp_session import (
    DEFAULT_CLOSE_TIMEOUT,
    DEFAULT_COMMAND_TIMEOUT,
    DEFAULT_CONNECT_ATTEMPTS,
    DEFAULT_CONNECT_RETRY_DELAY,
    DEFAULT_LAUNCH_TIMEOUT,
    LaunchConfig,
    extract_all_cookies
)
from .cookie_data import Cookie, extract_domain, filter_cookies_by_domain
from .errors import CookieError, CookieExtractionError, NoCookiesFoundError

logger = logging.getLogger(__name__)


class ChromeCookieReader:
    """Reads cookies for one domain out of a local Chrome profile"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize reader

        Args:
            config: Application config; only the ``browser`` section is used
        """
        browser_config = (config or {}).get('browser') or {}
        self.user_data_dir_override: Optional[str] = browser_config.get('user_data_dir')
        self.executable_override: Optional[str] = browser_config.get('executable')
        self.default_profile: str = browser_config.get('default_profile') or DEFAULT_PROFILE
        self.launch_config = LaunchConfig()
        self.session_options = {
            'launch_timeout': float(browser_config.get('launch_timeout', DEFAULT_LAUNCH_TIMEOUT)),
            'command_timeout': float(browser_config.get('command_timeout', DEFAULT_COMMAND_TIMEOUT)),
            'close_timeout': float(browser_config.get('close_timeout', DEFAULT_CLOSE_TIMEOUT)),
            'connect_attempts': int(browser_config.get('connect_attempts', DEFAULT_CONNECT_ATTEMPTS)),
            'connect_retry_delay': float(browser_config.get('connect_retry_delay', DEFAULT_CONNECT_RETRY_DELAY)),
        }

    def get_user_data_dir(self) -> Path:
        return get_user_data_dir(self.user_data_dir_override)

    def find_executable(self) -> Path:
        return find_chrome_executable(self.executable_override)

    def list_profiles(self) -> List[BrowserProfile]:
        """List the Chrome profiles available for extraction

        Raises:
            BrowserNotInstalledError: If Chrome's user-data directory is missing
        """
        return find_profiles(self.get_user_data_dir())

    async def read_cookies(self, domain: str, profile: Optional[str] = None) -> List[Cookie]:
        """Extract the cookies of one domain from a Chrome profile

        Args:
            domain: URL or host name, e.g. 'https://www.example.com/login'
            profile: Profile directory name (default: configured default profile)

        Returns:
            Matching cookies sorted by name, never empty

        Raises:
            BrowserNotInstalledError: If Chrome or its user data is missing
            BrowserLaunchError: If the headless browser cannot be started
            NoCookiesFoundError: If no cookie matches the domain
            CookieExtractionError: For any other failure
        """
        target_domain = extract_domain(domain)
        user_data_dir = self.get_user_data_dir()
        executable = self.find_executable()
        profile_id = profile or self.default_profile

        logger.info(f"Reading cookies for {target_domain} from profile {profile_id}")

        try:
            raw_cookies = await extract_all_cookies(
                executable, user_data_dir, profile_id,
                self.launch_config, **self.session_options
            )
        except CookieError:
            raise
        except Exception as e:
            raise CookieExtractionError(f"Cookie extraction failed: {e}", original_error=e) from e

        matched = filter_cookies_by_domain(raw_cookies, target_domain)
        if not matched:
            logger.warning(f"No cookies for {target_domain} in profile {profile_id}")
            raise NoCookiesFoundError(target_domain)

        cookies = sorted((Cookie.from_raw(raw) for raw in matched), key=lambda c: c.name)

        logger.info(f"Read {len(cookies)} cookies for {target_domain}")
        return cookies


def list_profiles(config: Optional[Dict[str, Any]] = None) -> List[BrowserProfile]:
    """List Chrome profiles"""
    return ChromeCookieReader(config).list_profiles()


async def read_cookies(domain: str, profile: Optional[str] = None,
                       config: Optional[Dict[str, Any]] = None) -> List[Cookie]:
    """Extract the cookies of one domain from a Chrome profile"""
    return await ChromeCookieReader(config).read_cookies(domain, profile)
