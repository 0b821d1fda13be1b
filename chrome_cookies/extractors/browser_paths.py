"""Chrome installation and profile detection across different operating systems"""
import json
import logging
import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from .errors import BrowserNotInstalledError

logger = logging.getLogger(__name__)

LOCAL_STATE_FILE = 'Local State'
DEFAULT_PROFILE = 'Default'
PROFILE_DIR_PREFIX = 'Profile '


@dataclass(frozen=True)
class BrowserProfile:
    """A Chrome profile directory under the user-data root"""
    id: str
    display_name: str
    profile_path: Path

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'name': self.display_name,
            'profile_path': str(self.profile_path)
        }


def detect_os() -> str:
    """Detect the current operating system

    Returns:
        str: 'windows' or 'macos' or 'linux'
    """
    system = platform.system().lower()
    if system == 'darwin':
        return 'macos'
    elif system == 'windows':
        return 'windows'
    elif system == 'linux':
        return 'linux'
    else:
        raise NotImplementedError(f"Unsupported operating system: {system}")


def _supported_os() -> str:
    try:
        return detect_os()
    except NotImplementedError as e:
        raise BrowserNotInstalledError(str(e), original_error=e) from e


def _local_appdata() -> Path:
    return Path(os.environ.get('LOCALAPPDATA') or Path.home() / 'AppData' / 'Local')


def get_default_user_data_dir() -> Path:
    """Get the Chrome user-data root for the current OS (may not exist)"""
    os_name = _supported_os()

    if os_name == 'windows':
        return _local_appdata() / 'Google' / 'Chrome' / 'User Data'
    elif os_name == 'macos':
        return Path.home() / 'Library' / 'Application Support' / 'Google' / 'Chrome'
    else:
        return Path.home() / '.config' / 'google-chrome'


def get_executable_candidates() -> List[Path]:
    """Get Chrome executable locations in search order

    User-level installs come first, followed by system-wide installs.
    """
    os_name = _supported_os()

    if os_name == 'windows':
        return [
            _local_appdata() / 'Google' / 'Chrome' / 'Application' / 'chrome.exe',
            Path(r'C:\Program Files\Google\Chrome\Application\chrome.exe'),
            Path(r'C:\Program Files (x86)\Google\Chrome\Application\chrome.exe'),
        ]
    elif os_name == 'macos':
        bundle = Path('Google Chrome.app') / 'Contents' / 'MacOS' / 'Google Chrome'
        return [
            Path.home() / 'Applications' / bundle,
            Path('/Applications') / bundle,
        ]
    else:
        return [
            Path.home() / '.local' / 'bin' / 'google-chrome',
            Path('/opt/google/chrome/chrome'),
            Path('/usr/bin/google-chrome-stable'),
            Path('/usr/bin/google-chrome'),
        ]


def get_user_data_dir(override: Optional[str] = None) -> Path:
    """Resolve the Chrome user-data root

    Args:
        override: Explicit user-data directory, used instead of the OS default

    Returns:
        Path to the existing user-data root

    Raises:
        BrowserNotInstalledError: If the directory does not exist
    """
    user_data_dir = Path(override).expanduser() if override else get_default_user_data_dir()

    if not user_data_dir.is_dir():
        raise BrowserNotInstalledError(f"user data directory {user_data_dir} does not exist")

    return user_data_dir


def find_chrome_executable(override: Optional[str] = None) -> Path:
    """Find the Chrome executable

    Args:
        override: Explicit executable path, checked instead of the candidates

    Returns:
        Path to the first candidate that exists

    Raises:
        BrowserNotInstalledError: If no candidate exists
    """
    candidates = [Path(override).expanduser()] if override else get_executable_candidates()

    for candidate in candidates:
        if candidate.exists():
            logger.debug(f"Using Chrome executable {candidate}")
            return candidate

    raise BrowserNotInstalledError("Chrome executable not found")


def _profiles_from_local_state(user_data_dir: Path) -> List[BrowserProfile]:
    """Read profiles from the profile.info_cache map of Local State"""
    local_state = user_data_dir / LOCAL_STATE_FILE
    if not local_state.is_file():
        return []

    try:
        with open(local_state, 'r', encoding='utf-8') as f:
            state = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read {local_state}: {e}")
        return []

    profile_section = state.get('profile') if isinstance(state, dict) else None
    info_cache = profile_section.get('info_cache') if isinstance(profile_section, dict) else None
    if not isinstance(info_cache, dict):
        return []

    profiles = []
    for profile_dir, info in info_cache.items():
        profile_path = user_data_dir / profile_dir
        if not profile_path.exists():
            continue

        name = info.get('name') if isinstance(info, dict) else None
        profiles.append(BrowserProfile(
            id=profile_dir,
            display_name=name if isinstance(name, str) else profile_dir,
            profile_path=profile_path
        ))

    return profiles


def _profiles_from_directory(user_data_dir: Path) -> List[BrowserProfile]:
    """Scan the user-data root for Default and 'Profile N' directories"""
    profiles = []

    default_path = user_data_dir / DEFAULT_PROFILE
    if default_path.exists():
        profiles.append(BrowserProfile(
            id=DEFAULT_PROFILE,
            display_name=DEFAULT_PROFILE,
            profile_path=default_path
        ))

    try:
        entries = sorted(user_data_dir.iterdir())
    except OSError as e:
        logger.warning(f"Could not scan {user_data_dir}: {e}")
        return profiles

    for path in entries:
        if path.name.startswith(PROFILE_DIR_PREFIX) and path.is_dir():
            profiles.append(BrowserProfile(
                id=path.name,
                display_name=path.name,
                profile_path=path
            ))

    return profiles


def list_profiles(user_data_dir: Optional[Path] = None) -> List[BrowserProfile]:
    """Find all Chrome profiles

    Args:
        user_data_dir: User-data root (default: resolved for the current OS)

    Returns:
        Profiles sorted by display name

    Raises:
        BrowserNotInstalledError: If the user-data root does not exist
    """
    if user_data_dir is None:
        user_data_dir = get_user_data_dir()
    elif not user_data_dir.is_dir():
        raise BrowserNotInstalledError(f"user data directory {user_data_dir} does not exist")

    profiles = _profiles_from_local_state(user_data_dir)
    if not profiles:
        logger.debug(f"No profiles in {LOCAL_STATE_FILE}, scanning {user_data_dir}")
        profiles = _profiles_from_directory(user_data_dir)

    profiles.sort(key=lambda p: p.display_name)

    logger.info(f"Found {len(profiles)} Chrome profiles")
    return profiles
