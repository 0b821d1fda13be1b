"""Cookie records and domain matching"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawCookie:
    """A cookie as reported by the DevTools protocol

    ``expires`` is seconds since the epoch, or -1 for session cookies.
    """
    name: str
    value: str
    domain: str
    path: str
    expires: float
    secure: bool
    http_only: bool

    @classmethod
    def from_cdp(cls, data: Dict[str, Any]) -> 'RawCookie':
        """Build from a ``Network.Cookie`` object"""
        return cls(
            name=data.get('name', ''),
            value=data.get('value', ''),
            domain=data.get('domain', ''),
            path=data.get('path', '/'),
            expires=float(data.get('expires', -1)),
            secure=bool(data.get('secure', False)),
            http_only=bool(data.get('httpOnly', False))
        )


@dataclass(frozen=True)
class Cookie:
    """Represents an extracted browser cookie"""
    name: str
    value: str
    domain: str
    path: str
    expires: Optional[int]
    secure: bool
    http_only: bool

    @classmethod
    def from_raw(cls, raw: RawCookie) -> 'Cookie':
        """Convert a protocol cookie, mapping non-positive expiry to no expiry"""
        return cls(
            name=raw.name,
            value=raw.value,
            domain=raw.domain,
            path=raw.path,
            expires=int(raw.expires) if raw.expires > 0 else None,
            secure=raw.secure,
            http_only=raw.http_only
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Cookie':
        """Build from a saved record

        Accepts both the ``secure``/``httpOnly`` keys written by to_dict and
        the ``is_secure``/``is_http_only`` keys of older cookie files.
        """
        return cls(
            name=data['name'],
            value=data['value'],
            domain=data.get('domain', ''),
            path=data.get('path', '/'),
            expires=data.get('expires'),
            secure=bool(data.get('secure', data.get('is_secure', False))),
            http_only=bool(data.get('httpOnly', data.get('is_http_only', False)))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format"""
        return {
            'name': self.name,
            'value': self.value,
            'domain': self.domain,
            'path': self.path,
            'expires': self.expires,
            'secure': self.secure,
            'httpOnly': self.http_only
        }


def extract_domain(url: str) -> str:
    """Reduce a URL or host string to a bare host

    Strips the scheme and a leading ``www.``, then drops everything from the
    first ``/``. Case is left untouched.
    """
    url = url.strip()
    for prefix in ('http://', 'https://', 'www.'):
        if url.startswith(prefix):
            url = url[len(prefix):]
    return url.split('/', 1)[0]


def _strip_leading_dot(domain: str) -> str:
    return domain[1:] if domain.startswith('.') else domain


def domain_matches(cookie_domain: str, target_domain: str) -> bool:
    """Check whether a cookie domain covers the target domain

    Besides exact and subdomain matches in either direction, a cookie also
    matches when either domain contains the other. The containment rule
    over-matches on purpose: sub-brand hosts of the same platform do not nest
    as proper subdomains.
    """
    cookie_domain = _strip_leading_dot(cookie_domain)
    target_domain = _strip_leading_dot(target_domain)

    if cookie_domain == target_domain:
        return True

    return (
        target_domain.endswith(f".{cookie_domain}")
        or cookie_domain.endswith(f".{target_domain}")
        or cookie_domain in target_domain
        or target_domain in cookie_domain
    )


def filter_cookies_by_domain(cookies: List[RawCookie], target_domain: str) -> List[RawCookie]:
    """Keep the cookies whose domain matches the target domain"""
    filtered = [cookie for cookie in cookies if domain_matches(cookie.domain, target_domain)]
    logger.debug(f"{len(filtered)} of {len(cookies)} cookies match {target_domain}")
    return filtered


def cookies_to_header(cookies: List[Cookie]) -> str:
    """Render cookies as a ``Cookie`` request header value"""
    return '; '.join(f"{cookie.name}={cookie.value}" for cookie in cookies)
