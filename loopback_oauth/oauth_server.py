import asyncio
import logging
import os
import socket
from http import HTTPStatus
from typing import Iterable, Optional, Tuple

from .constants import LOOPBACK_HOST, READ_BUFFER_SIZE, CONNECTION_READ_TIMEOUT
from .outcome import CallbackOutcome
from .pages import render_success, render_error
from .request_parser import parse_callback_request
from .utils import NoPortAvailable, BindError, CallbackTimeout, ChannelClosed


logger = logging.getLogger(__name__)

# Pause after a failed accept() so a persistent failure (EMFILE) does not spin.
_ACCEPT_ERROR_BACKOFF = 0.1


def reserve_port(host: str = LOOPBACK_HOST, preferred_ports: Optional[Iterable[int]] = None) -> int:
    """
    Find a free loopback port for the callback server without keeping it bound.

    Another process may grab the port before the listener binds it, in which
    case the listener reports an ordinary BindError.

    Args:
        host: Address to probe.
        preferred_ports: Ports to try in order, for providers that only accept
            whitelisted redirect URIs. When given, no other port is returned.

    Returns:
        The port number.

    Raises:
        NoPortAvailable: If no port could be found.
    """
    if preferred_ports:
        preferred_ports = list(preferred_ports)
        for port in preferred_ports:
            try:
                with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                    s.bind((host, port))
                    return port
            except OSError:
                # Port is in use, try next one
                continue
        raise NoPortAvailable(
            "All OAuth callback ports (%s) are currently in use" % (', '.join(str(p) for p in preferred_ports),)
        )

    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind((host, 0))
            return s.getsockname()[1]
    except OSError as e:
        raise NoPortAvailable(f"No available port found: {e}") from e


def build_http_response(outcome: CallbackOutcome, app_name: Optional[str] = None) -> bytes:
    """Build the full HTTP response sent back to the browser for an outcome."""
    if outcome.is_success:
        status = HTTPStatus.OK
        body = render_success(app_name=app_name)
    else:
        status = HTTPStatus.BAD_REQUEST
        body = render_error(outcome.error or "Unknown error",
                            description=outcome.error_description,
                            app_name=app_name)

    payload = body.encode('utf-8')
    headers = (
        f"HTTP/1.1 {status.value} {status.phrase}\r\n"
        f"Content-Type: text/html; charset=utf-8\r\n"
        f"Content-Length: {len(payload)}\r\n"
        f"Connection: close\r\n"
        f"\r\n"
    )
    return headers.encode('ascii') + payload


class ListenerSession:
    """
    One capture attempt on a bound loopback port.

    The session owns the listening socket and a background task that accepts
    connections until one of them yields a request. That request is answered,
    its outcome is handed over through a one-shot future, and the task exits.

    Usage:
        session = ListenerSession.bind(port, timeout)
        async with session:
            outcome = await session.wait()
    """

    def __init__(self, sock: socket.socket, timeout: float, app_name: Optional[str] = None):
        """
        Wrap an already bound and listening socket.

        Args:
            sock: Non-blocking listening socket, owned by the session from now on.
            timeout: Seconds to wait for the redirect, counted from now.
            app_name: Application named on the pages shown in the browser.
        """
        self._loop = asyncio.get_running_loop()
        self._sock = sock
        self.port = sock.getsockname()[1]
        self.timeout = timeout
        self.app_name = app_name
        self._deadline = self._loop.time() + timeout
        self._delivery = self._loop.create_future()
        self._task = None

    @classmethod
    def bind(cls, port: int, timeout: float, host: str = LOOPBACK_HOST,
             app_name: Optional[str] = None) -> 'ListenerSession':
        """
        Bind the loopback listener and create the session around it.

        Must be called with an event loop running.

        Raises:
            BindError: If the port cannot be bound. Not retried.
        """
        # Fails fast outside a loop, before any socket exists.
        asyncio.get_running_loop()

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            if os.name == 'posix':
                # Lets the port be bound again while answered connections sit in TIME_WAIT.
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((host, port))
            sock.listen()
            sock.setblocking(False)
        except (OSError, OverflowError) as e:
            # OverflowError is what bind() raises for a port outside 0-65535.
            sock.close()
            raise BindError(port, e, host=host) from e

        try:
            session = cls(sock, timeout, app_name=app_name)
        except BaseException:
            sock.close()
            raise

        logger.info("OAuth callback server listening on %s:%d", host, port)
        return session

    def start(self) -> None:
        """Start the background accept loop."""
        if self._task is None:
            self._task = self._loop.create_task(self._accept_loop())

    async def wait(self) -> CallbackOutcome:
        """
        Wait for the outcome, the end of the accept loop or the deadline.

        Returns:
            The outcome delivered by the accept loop.

        Raises:
            ChannelClosed: If the accept loop ended without delivering.
            CallbackTimeout: If the deadline elapsed first.
        """
        self.start()
        remaining = max(0.0, self._deadline - self._loop.time())
        await asyncio.wait({self._delivery, self._task},
                           timeout=remaining,
                           return_when=asyncio.FIRST_COMPLETED)

        if self._delivery.done():
            return self._delivery.result()

        if self._task.done():
            cause = None if self._task.cancelled() else self._task.exception()
            logger.error("OAuth callback accept loop ended without a result: %r", cause)
            raise ChannelClosed() from cause

        raise CallbackTimeout(self.timeout)

    async def close(self) -> None:
        """Stop the accept loop and release the port. Safe to call more than once."""
        try:
            if self._task is not None and not self._task.done():
                logger.debug("Cancelling OAuth callback accept loop on port %d", self.port)
                self._task.cancel()
                await asyncio.wait({self._task})
        finally:
            self._sock.close()

    async def __aenter__(self) -> 'ListenerSession':
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _accept_loop(self) -> None:
        while True:
            try:
                conn, peer = await self._loop.sock_accept(self._sock)
            except OSError as e:
                logger.error("Failed to accept connection: %s", e)
                await asyncio.sleep(_ACCEPT_ERROR_BACKOFF)
                continue

            with conn:
                request = await self._read_request(conn, peer)
                if request is None:
                    continue
                outcome = parse_callback_request(request)
                await self._send_response(conn, outcome)

            # Only once the response is out and the connection closed.
            if not self._delivery.done():
                self._delivery.set_result(outcome)
            return

    async def _read_request(self, conn: socket.socket, peer: Tuple[str, int]) -> Optional[bytes]:
        try:
            data = await asyncio.wait_for(self._loop.sock_recv(conn, READ_BUFFER_SIZE),
                                          CONNECTION_READ_TIMEOUT)
        except asyncio.TimeoutError:
            logger.error("Timed out reading from %s:%d", peer[0], peer[1])
            return None
        except OSError as e:
            logger.error("Failed to read from socket: %s", e)
            return None

        if not data:
            logger.error("Connection from %s:%d closed before sending a request", peer[0], peer[1])
            return None

        logger.debug("Received OAuth callback request (%d bytes)", len(data))
        return data

    async def _send_response(self, conn: socket.socket, outcome: CallbackOutcome) -> None:
        try:
            await self._loop.sock_sendall(conn, build_http_response(outcome, self.app_name))
            conn.shutdown(socket.SHUT_WR)
        except OSError as e:
            logger.error("Failed to write response: %s", e)


async def await_callback(port: int, timeout: float, host: str = LOOPBACK_HOST,
                         app_name: Optional[str] = None) -> CallbackOutcome:
    """
    Capture the browser redirect on a loopback port.

    Binds the port, answers the first request received with an HTML page and
    returns what it carried. The port is released before returning, whatever
    the result.

    Args:
        port: Port to listen on, normally from reserve_port().
        timeout: Maximum time to wait for the redirect (seconds).
        host: Loopback address to bind.
        app_name: Application named on the pages shown in the browser.

    Returns:
        The CallbackOutcome. A redirect carrying an error is an outcome, not
        an exception.

    Raises:
        BindError: If the port cannot be bound.
        CallbackTimeout: If nothing arrived in time.
        ChannelClosed: If the accept loop failed without an outcome.
    """
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")

    session = ListenerSession.bind(port, timeout, host=host, app_name=app_name)
    async with session:
        outcome = await session.wait()

    if outcome.is_success:
        logger.info("OAuth callback received an authorization code")
    else:
        logger.info("OAuth callback received an error: %s", outcome.error)
    return outcome


def wait_for_callback(port: int, timeout: float, host: str = LOOPBACK_HOST,
                      app_name: Optional[str] = None) -> CallbackOutcome:
    """Blocking version of await_callback() for callers without an event loop."""
    return asyncio.run(await_callback(port, timeout, host=host, app_name=app_name))
