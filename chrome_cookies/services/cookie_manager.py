import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
import requests

from ..extractors.cookie_data import Cookie, cookies_to_header, extract_domain
from ..extractors.cookie_reader import ChromeCookieReader
from ..extractors.errors import CookieExtractionError

logger = logging.getLogger(__name__)


class CookieManager:
    """Keeps the latest extracted cookies per domain and saves them on request"""

    def __init__(self, config: Dict, reader: Optional[ChromeCookieReader] = None):
        self.config = config
        self.cookie_dir = Path(config.get("cookies", {}).get("output_dir") or "data/cookies")
        self.cookies: Dict[str, List[Cookie]] = {}
        self.reader = reader or ChromeCookieReader(config)

    async def refresh(self, domain: str, profile: Optional[str] = None) -> List[Cookie]:
        """Extract fresh cookies for a domain from the browser"""
        target = extract_domain(domain)
        cookies = await self.reader.read_cookies(target, profile)
        self.cookies[target] = cookies
        return cookies

    def get_cookies(self, domain: str) -> Optional[List[Cookie]]:
        """Get the last extracted cookies for a domain"""
        return self.cookies.get(extract_domain(domain))

    def get_cookie_header(self, domain: str) -> Optional[str]:
        """Get the last extracted cookies as a Cookie header value"""
        cookies = self.get_cookies(domain)
        if not cookies:
            return None
        return cookies_to_header(cookies)

    def get_cookie_jar(self, domain: str) -> requests.cookies.RequestsCookieJar:
        """Get a requests CookieJar for a domain"""
        jar = requests.cookies.RequestsCookieJar()

        for cookie in self.get_cookies(domain) or []:
            jar.set(
                name=cookie.name,
                value=cookie.value,
                domain=cookie.domain,
                path=cookie.path,
                secure=cookie.secure,
                expires=cookie.expires,
                rest={"HttpOnly": None} if cookie.http_only else {}
            )

        return jar

    def _cookie_file(self, domain: str, filename: Optional[str]) -> Path:
        if not filename:
            safe_domain = re.sub(r"[^\w.-]+", "_", extract_domain(domain)) or "cookies"
            filename = f"{safe_domain}_cookies.json"
        return self.cookie_dir / filename

    async def save_cookies(self, domain: str, cookies: List[Cookie],
                           filename: Optional[str] = None) -> Path:
        """Save cookies for a domain as JSON

        Returns:
            Path of the written file
        """
        cookie_file = self._cookie_file(domain, filename)
        try:
            cookie_file.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(cookie_file, "w", encoding="utf-8") as f:
                await f.write(json.dumps([c.to_dict() for c in cookies], indent=2, ensure_ascii=False))
        except OSError as e:
            logger.error(f"Failed to save cookies to {cookie_file}: {e}")
            raise CookieExtractionError(f"Could not write {cookie_file}: {e}", original_error=e) from e

        self.cookies[extract_domain(domain)] = list(cookies)
        logger.info(f"Saved {len(cookies)} cookies to {cookie_file}")
        return cookie_file

    async def load_cookies(self, domain: str, filename: Optional[str] = None) -> List[Cookie]:
        """Load cookies previously written by save_cookies"""
        cookie_file = self._cookie_file(domain, filename)
        try:
            async with aiofiles.open(cookie_file, "r", encoding="utf-8") as f:
                content = await f.read()
            cookies = [Cookie.from_dict(item) for item in json.loads(content)]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load cookies from {cookie_file}: {e}")
            raise CookieExtractionError(f"Could not read {cookie_file}: {e}", original_error=e) from e

        self.cookies[extract_domain(domain)] = cookies
        logger.info(f"Loaded {len(cookies)} cookies from {cookie_file}")
        return cookies
