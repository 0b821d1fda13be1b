"""Headless Chrome session driven over the DevTools protocol"""
import asyncio
import itertools
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp

from .cookie_data import RawCookie
from .errors import BrowserLaunchError, ProtocolError

logger = logging.getLogger(__name__)

DEVTOOLS_URL_PATTERN = re.compile(rb'DevTools listening on (ws://\S+)')

DEFAULT_LAUNCH_TIMEOUT = 30.0
DEFAULT_COMMAND_TIMEOUT = 30.0
DEFAULT_CLOSE_TIMEOUT = 5.0
DEFAULT_CONNECT_ATTEMPTS = 3
DEFAULT_CONNECT_RETRY_DELAY = 0.5


@dataclass(frozen=True)
class LaunchConfig:
    """Command line switches for the headless browser"""
    headless: bool = True
    disable_gpu: bool = True
    no_first_run: bool = True
    disable_extensions: bool = True
    disable_logging: bool = True
    log_level: int = 3

    def to_args(self, executable: Path, user_data_dir: Path, profile_id: str) -> List[str]:
        """Build the full argument vector for one launch

        The debugging port is always 0 so concurrent sessions never collide;
        the browser reports the port it picked on stderr.
        """
        args = [
            str(executable),
            '--remote-debugging-port=0',
            f'--user-data-dir={user_data_dir}',
            f'--profile-directory={profile_id}',
        ]
        if self.headless:
            args.append('--headless=new')
        if self.disable_gpu:
            args.append('--disable-gpu')
        if self.no_first_run:
            args.append('--no-first-run')
        if self.disable_extensions:
            args.append('--disable-extensions')
        if self.disable_logging:
            args.append('--disable-logging')
        args.append(f'--log-level={self.log_level}')
        return args


class ChromeSession:
    """One headless browser process and its DevTools connection

    Use as an async context manager: entering launches the browser and
    performs the handshake, leaving shuts everything down. Leaving never
    raises, so it cannot mask the outcome of the body.
    """

    def __init__(self, executable_path: Path, user_data_dir: Path, profile_id: str,
                 launch_config: Optional[LaunchConfig] = None, *,
                 launch_timeout: float = DEFAULT_LAUNCH_TIMEOUT,
                 command_timeout: float = DEFAULT_COMMAND_TIMEOUT,
                 close_timeout: float = DEFAULT_CLOSE_TIMEOUT,
                 connect_attempts: int = DEFAULT_CONNECT_ATTEMPTS,
                 connect_retry_delay: float = DEFAULT_CONNECT_RETRY_DELAY):
        self.executable_path = Path(executable_path)
        self.user_data_dir = Path(user_data_dir)
        self.profile_id = profile_id
        self.launch_config = launch_config or LaunchConfig()
        self.launch_timeout = launch_timeout
        self.command_timeout = command_timeout
        self.close_timeout = close_timeout
        self.connect_attempts = max(1, connect_attempts)
        self.connect_retry_delay = connect_retry_delay

        self.process: Optional[asyncio.subprocess.Process] = None
        self.websocket_url: Optional[str] = None
        self._http: Optional[aiohttp.ClientSession] = None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._drain_task: Optional[asyncio.Task] = None
        self._stderr_task: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._message_ids = itertools.count(1)
        self._accepting = False
        self._closed = False
        self._close_requested = False

    async def __aenter__(self) -> 'ChromeSession':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def connected(self) -> bool:
        return self._accepting and self._ws is not None and not self._ws.closed

    async def start(self) -> None:
        """Launch the browser and connect to its DevTools endpoint

        Raises:
            BrowserLaunchError: If the process or the handshake fails
        """
        try:
            await asyncio.wait_for(self._launch(), self.launch_timeout)
        except asyncio.TimeoutError:
            await self.close()
            raise BrowserLaunchError(
                f"browser did not become ready within {self.launch_timeout:g}s"
            )
        except BaseException:
            await self.close()
            raise

        self._drain_task = asyncio.create_task(self._drain_events())
        self._accepting = True
        logger.debug(f"DevTools session ready for profile {self.profile_id}")

    async def _launch(self) -> None:
        args = self.launch_config.to_args(self.executable_path, self.user_data_dir, self.profile_id)
        logger.info(f"Launching headless Chrome for profile {self.profile_id}")

        try:
            self.process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            raise BrowserLaunchError(f"could not start {self.executable_path}: {e}", original_error=e)

        self.websocket_url = await self._read_websocket_url()
        self._stderr_task = asyncio.create_task(self._drain_stderr())
        await self._connect()

    async def _read_websocket_url(self) -> str:
        """Wait for the browser to announce its DevTools endpoint on stderr"""
        stderr = self.process.stderr
        while True:
            line = await stderr.readline()
            if not line:
                returncode = await self.process.wait()
                raise BrowserLaunchError(
                    f"browser exited with code {returncode} before opening a debugging endpoint"
                )
            match = DEVTOOLS_URL_PATTERN.search(line)
            if match:
                return match.group(1).decode()

    async def _drain_stderr(self) -> None:
        """Keep reading browser output so a full pipe never stalls the process"""
        stderr = self.process.stderr
        while True:
            try:
                line = await stderr.readline()
            except ValueError:
                continue
            if not line:
                return
            logger.debug(f"chrome: {line.decode(errors='replace').rstrip()}")

    async def _connect(self) -> None:
        self._http = aiohttp.ClientSession()
        last_error: Optional[BaseException] = None

        for attempt in range(1, self.connect_attempts + 1):
            try:
                self._ws = await self._http.ws_connect(self.websocket_url, max_msg_size=0)
                return
            except (aiohttp.ClientError, OSError) as e:
                last_error = e
                logger.debug(f"DevTools handshake attempt {attempt}/{self.connect_attempts} failed: {e}")
                if attempt < self.connect_attempts:
                    await asyncio.sleep(self.connect_retry_delay)

        raise BrowserLaunchError(f"DevTools handshake failed: {last_error}", original_error=last_error)

    async def _drain_events(self) -> None:
        """Consume every message until the socket closes or the task is cancelled

        Replies are handed to their waiting command; events are dropped.
        """
        try:
            async for message in self._ws:
                if message.type != aiohttp.WSMsgType.TEXT:
                    continue
                try:
                    data = message.json()
                except ValueError:
                    logger.debug("Ignoring malformed DevTools message")
                    continue
                future = self._pending.get(data.get('id')) if isinstance(data, dict) else None
                if future is not None and not future.done():
                    future.set_result(data)
        finally:
            for future in self._pending.values():
                if not future.done():
                    future.set_exception(ProtocolError("debugging connection closed"))

    async def execute(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send one DevTools command and return its result

        Raises:
            ProtocolError: If the session is closed or the command fails
        """
        if not self._accepting:
            raise ProtocolError(f"{method}: session is not connected")
        return await self._call(method, params, self.command_timeout)

    async def _call(self, method: str, params: Optional[Dict[str, Any]], timeout: float) -> Dict[str, Any]:
        if self._ws is None or self._ws.closed or self._drain_task is None or self._drain_task.done():
            raise ProtocolError(f"{method}: debugging connection closed")

        message_id = next(self._message_ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[message_id] = future
        try:
            await self._ws.send_json({'id': message_id, 'method': method, 'params': params or {}})
            response = await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            raise ProtocolError(f"{method} timed out after {timeout:g}s")
        except (aiohttp.ClientError, OSError) as e:
            raise ProtocolError(f"{method} could not be sent: {e}", original_error=e)
        finally:
            self._pending.pop(message_id, None)

        if 'error' in response:
            error = response['error']
            message = error.get('message', error) if isinstance(error, dict) else error
            raise ProtocolError(f"{method} failed: {message}")

        return response.get('result') or {}

    async def get_all_cookies(self) -> List[RawCookie]:
        """Enumerate every cookie in the profile's cookie jar"""
        result = await self.execute('Storage.getCookies')
        cookies = [RawCookie.from_cdp(item) for item in result.get('cookies', [])]
        logger.debug(f"Browser reported {len(cookies)} cookies")
        return cookies

    async def close(self) -> None:
        """Shut the browser down and release every resource

        Order: refuse new commands, ask the browser to close and drop the
        connection, cancel the background readers, then make sure the process
        is gone.
        """
        if self._closed:
            return
        self._closed = True
        self._accepting = False

        if self._ws is not None and not self._ws.closed:
            self._close_requested = True
            try:
                await self._call('Browser.close', None, self.close_timeout)
            except Exception as e:
                logger.debug(f"Browser.close failed: {e}")
            try:
                await asyncio.wait_for(self._ws.close(), self.close_timeout)
            except Exception as e:
                logger.debug(f"Closing DevTools connection failed: {e}")

        if self._http is not None:
            try:
                await self._http.close()
            except Exception as e:
                logger.debug(f"Closing HTTP session failed: {e}")

        if self._drain_task is not None:
            self._drain_task.cancel()
            try:
                await self._drain_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug(f"Event drain ended with error: {e}")

        if self._stderr_task is not None:
            self._stderr_task.cancel()
            try:
                await self._stderr_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug(f"Reading browser output failed: {e}")

        await self._reap_process()

    async def _reap_process(self) -> None:
        proc = self.process
        if proc is None or proc.returncode is not None:
            return

        # Without Browser.close there is no clean exit to wait for
        if self._close_requested:
            try:
                await asyncio.wait_for(proc.wait(), self.close_timeout)
                return
            except asyncio.TimeoutError:
                logger.warning(f"Chrome (pid {proc.pid}) did not exit, terminating")

        try:
            proc.terminate()
            await asyncio.wait_for(proc.wait(), self.close_timeout)
        except ProcessLookupError:
            return
        except asyncio.TimeoutError:
            logger.warning(f"Chrome (pid {proc.pid}) ignored terminate, killing")
            try:
                proc.kill()
                await proc.wait()
            except ProcessLookupError:
                pass


async def extract_all_cookies(executable_path: Path, user_data_dir: Path, profile_id: str,
                              launch_config: Optional[LaunchConfig] = None,
                              **options: Any) -> List[RawCookie]:
    """Launch a headless browser on a profile and return all of its cookies

    Args:
        executable_path: Chrome executable
        user_data_dir: Chrome user-data root
        profile_id: Profile directory name, e.g. 'Default' or 'Profile 1'
        launch_config: Browser switches (default: LaunchConfig())
        **options: Timeout and handshake settings passed to ChromeSession

    Raises:
        BrowserLaunchError: If the browser cannot be started or connected to
        ProtocolError: If cookie enumeration fails
    """
    async with ChromeSession(executable_path, user_data_dir, profile_id, launch_config, **options) as session:
        return await session.get_all_cookies()
