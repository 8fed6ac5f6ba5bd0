import socket
import ssl
import logging
import threading
import time
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple, Union

from app.services.routeros_protocol import (
    REPLY_DATA,
    REPLY_DONE,
    REPLY_EMPTY,
    REPLY_FATAL,
    REPLY_TRAP,
    decode_length,
    encode_sentence,
    format_args,
    length_prefix_size,
    md5_challenge_response,
    parse_reply,
)

logger = logging.getLogger("mikrotik_api")

_SECRET_WORD_PREFIXES = ("=password=", "=response=")


class RouterOSError(Exception):
    """Base class for every failure talking to a router."""


class RouterOSConnectionError(RouterOSError):
    """Socket-level failure: refused, reset, closed by peer, TLS error."""


class RouterOSTimeoutError(RouterOSConnectionError):
    """Connect, login or a read did not finish within the configured timeout."""


class RouterOSProtocolError(RouterOSError):
    """The router answered !trap or !fatal."""

    def __init__(self, message: str, category: str = ""):
        super().__init__(message)
        self.category = category


class RouterOSLoginError(RouterOSProtocolError):
    pass


def _redact(words: List[str]) -> List[str]:
    redacted = []
    for word in words:
        if word.startswith(_SECRET_WORD_PREFIXES):
            word = "=" + word.split("=", 2)[1] + "=***"
        redacted.append(word)
    return redacted


class MikroTikAPI:
    """
    Blocking RouterOS API client. One instance owns one socket.

    Usage:
        api = MikroTikAPI("10.0.0.2", "admin", "secret")
        api.connect()
        try:
            rows = api.write("/ppp/secret/print")
        finally:
            api.close()

    Commands are issued strictly one at a time; concurrent callers on the
    same instance wait on an internal lock.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        port: int = 8728,
        timeout: float = 15,
        connect_timeout: float = 5,
        use_ssl: bool = False,
    ):
        self.host = host
        self.username = username
        self.password = password
        self.port = port
        self.timeout = timeout
        self.connect_timeout = connect_timeout
        self.use_ssl = use_ssl
        self.sock = None
        self.connected = False
        self._lock = threading.Lock()
        self._deadline = None

    def __repr__(self):
        return f"<MikroTikAPI {self.username}@{self.host}:{self.port} connected={self.connected}>"

    def __enter__(self):
        if not self.connected:
            self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        if self.connected:
            return
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.connect_timeout)
        except socket.timeout as e:
            raise RouterOSTimeoutError(
                f"Timed out connecting to {self.host}:{self.port} after {self.connect_timeout}s"
            ) from e
        except OSError as e:
            raise RouterOSConnectionError(f"Cannot connect to {self.host}:{self.port}: {e}") from e

        if self.use_ssl:
            # RouterOS ships self-signed certificates for api-ssl
            ctx = ssl.create_default_context()
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            try:
                sock = ctx.wrap_socket(sock, server_hostname=self.host)
            except (socket.timeout, OSError) as e:
                sock.close()
                raise RouterOSConnectionError(f"TLS handshake with {self.host}:{self.port} failed: {e}") from e

        self.sock = sock
        try:
            self._login()
        except Exception:
            self.close()
            raise
        self.connected = True
        logger.info(f"Successfully logged in to {self.host}:{self.port}")

    def close(self) -> None:
        """Close the socket. Safe to call any number of times."""
        sock, self.sock = self.sock, None
        self.connected = False
        if sock is None:
            return
        try:
            sock.close()
        except OSError as e:
            logger.debug(f"Error closing socket to {self.host}: {e}")

    def _login(self) -> None:
        # both login round-trips share the connect timeout
        deadline = time.monotonic() + self.connect_timeout
        try:
            _, done = self._execute(
                ["/login", f"=name={self.username}", f"=password={self.password}"], deadline
            )
            challenge = done.get("ret")
            if challenge:
                # Pre-6.43 firmware answers with an MD5 challenge instead of logging in
                try:
                    response = md5_challenge_response(self.password, challenge)
                except ValueError as e:
                    raise RouterOSLoginError(
                        f"Login failed for {self.username}@{self.host}: malformed challenge {challenge!r}"
                    ) from e
                self._execute(
                    ["/login", f"=name={self.username}", f"=response={response}"], deadline
                )
        except RouterOSLoginError:
            raise
        except RouterOSProtocolError as e:
            raise RouterOSLoginError(
                f"Login failed for {self.username}@{self.host}: {e}", e.category
            ) from e

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def write(
        self,
        command: str,
        args: Union[List[str], Dict[str, object], None] = None,
    ) -> List[Dict[str, str]]:
        """
        Run one command and return its rows.

        args is a list of raw words ("=name=bob", "?disabled=no", "=once=")
        or a mapping that is turned into "=key=value" words. Attributes on
        the closing !done (the ".id" returned by an add, for example) are
        appended as a last row.
        """
        if isinstance(args, dict):
            args = format_args(args)
        words = [command] + list(args or [])
        with self._lock:
            if not self.connected or self.sock is None:
                raise RouterOSConnectionError(f"Not connected to {self.host}")
            rows, done = self._execute(words, time.monotonic() + self.timeout)
        if done:
            rows.append(done)
        return rows

    def _execute(self, words: List[str], deadline: float) -> Tuple[List[Dict[str, str]], Dict[str, str]]:
        """Send one sentence and read replies until !done or the deadline passes."""
        self._deadline = deadline
        self._send_sentence(words)
        rows: List[Dict[str, str]] = []
        trap: Optional[Dict[str, str]] = None
        while True:
            sentence = self._read_sentence()
            reply_type, attrs = parse_reply(sentence)
            if reply_type == REPLY_DATA:
                rows.append(attrs)
            elif reply_type == REPLY_TRAP:
                # !trap is followed by !done; keep reading so the socket stays in sync
                if trap is None:
                    trap = attrs
            elif reply_type == REPLY_DONE:
                if trap is not None:
                    raise RouterOSProtocolError(
                        trap.get("message", "Command failed"), trap.get("category", "")
                    )
                return rows, attrs
            elif reply_type == REPLY_FATAL:
                reason = " ".join(sentence[1:]) or "fatal error"
                self.close()
                raise RouterOSProtocolError(reason, "fatal")
            elif reply_type == REPLY_EMPTY:
                continue
            else:
                logger.debug(f"Ignoring unexpected sentence from {self.host}: {sentence}")

    # ------------------------------------------------------------------
    # Socket I/O
    # ------------------------------------------------------------------

    @contextmanager
    def _socket_errors(self, action: str):
        try:
            yield
        except socket.timeout as e:
            self.close()
            raise RouterOSTimeoutError(f"Timed out {action} {self.host}") from e
        except OSError as e:
            self.close()
            raise RouterOSConnectionError(f"Error {action} {self.host}: {e}") from e

    def _apply_deadline(self, action: str) -> None:
        """Bound the next socket call by what is left of the command deadline."""
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise socket.timeout(f"deadline passed while {action} {self.host}")
        self.sock.settimeout(remaining)

    def _send_sentence(self, words: List[str]) -> None:
        if self.sock is None:
            raise RouterOSConnectionError(f"Not connected to {self.host}")
        logger.debug(f"Sending sentence to {self.host}: {_redact(words)}")
        with self._socket_errors("writing to"):
            self._apply_deadline("writing to")
            self.sock.sendall(encode_sentence(words))

    def _recv_exact(self, count: int) -> bytes:
        chunks = []
        remaining = count
        while remaining > 0:
            if self.sock is None:
                raise RouterOSConnectionError(f"Connection to {self.host} is closed")
            with self._socket_errors("reading from"):
                self._apply_deadline("reading from")
                chunk = self.sock.recv(remaining)
            if not chunk:
                self.close()
                raise RouterOSConnectionError(f"Connection closed by {self.host}")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def _read_sentence(self) -> List[str]:
        words = []
        while True:
            first = self._recv_exact(1)
            try:
                size = length_prefix_size(first[0])
            except ValueError as e:
                self.close()
                raise RouterOSProtocolError(str(e)) from e
            prefix = first + self._recv_exact(size - 1) if size > 1 else first
            length = decode_length(prefix)
            if length == 0:
                logger.debug(f"Raw sentence received from {self.host}: {words}")
                return words
            words.append(self._recv_exact(length).decode("utf-8", errors="replace"))
