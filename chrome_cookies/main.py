import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import yaml
from dotenv import load_dotenv

from chrome_cookies.extractors.cookie_data import cookies_to_header
from chrome_cookies.extractors.cookie_reader import ChromeCookieReader
from chrome_cookies.extractors.errors import CookieError, NoCookiesFoundError
from chrome_cookies.services.cookie_manager import CookieManager
from chrome_cookies.utils.config_loader import ConfigType, ConfigurationError, load_config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"


def setup_logging(config: ConfigType, verbose: bool = False) -> None:
    """Configure root logging from the logging section"""
    level_name = "DEBUG" if verbose else str(config["logging"]["level"]).upper()
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if config["logging"].get("file"):
        os.makedirs(os.path.dirname(config["logging"]["file"]) or ".", exist_ok=True)
        handlers.append(logging.FileHandler(config["logging"]["file"]))

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chrome-cookies",
        description="Read cookies from a local Chrome profile via a headless browser",
    )
    parser.add_argument("-c", "--config", help=f"config file (default: {DEFAULT_CONFIG_PATH} if present)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("profiles", help="list Chrome profiles")

    read = sub.add_parser("read", help="read cookies for a domain")
    read.add_argument("domain", help="domain or URL, e.g. https://www.example.com")
    read.add_argument("-p", "--profile", help="profile directory name (default from config)")
    read.add_argument("--save", nargs="?", const="", metavar="FILENAME",
                      help="save the cookies as JSON in the cookie directory")
    read.add_argument("--header", action="store_true", help="print a Cookie header line only")
    return parser


def _list_profiles(config: ConfigType) -> None:
    for profile in ChromeCookieReader(config).list_profiles():
        print(f"{profile.id}\t{profile.display_name}\t{profile.profile_path}")


async def _read(config: ConfigType, args: argparse.Namespace) -> None:
    manager = CookieManager(config)
    cookies = await manager.refresh(args.domain, args.profile)

    if args.header:
        print(cookies_to_header(cookies))
    else:
        for cookie in cookies:
            print(f"{cookie.name}\t{cookie.domain}\t{cookie.path}\t{cookie.value}")

    if args.save is not None:
        path = await manager.save_cookies(args.domain, cookies, args.save or None)
        print(f"Saved {len(cookies)} cookies to {path}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    try:
        load_dotenv()
        config_path = args.config
        if config_path is None and os.path.exists(DEFAULT_CONFIG_PATH):
            config_path = DEFAULT_CONFIG_PATH
        config = load_config(config_path)
    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 2
    except FileNotFoundError as e:
        print(f"Configuration file not found: {e}", file=sys.stderr)
        return 2
    except yaml.YAMLError as e:
        print(f"Invalid YAML in configuration file: {e}", file=sys.stderr)
        return 2

    setup_logging(config, args.verbose)

    try:
        if args.command == "profiles":
            _list_profiles(config)
        else:
            asyncio.run(_read(config, args))
    except NoCookiesFoundError as e:
        print(e.user_message, file=sys.stderr)
        return 3
    except CookieError as e:
        logger.debug("Extraction failed", exc_info=True)
        print(e.user_message, file=sys.stderr)
        return 1

    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
