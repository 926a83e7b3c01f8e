"""A small threaded redis protocol server with pluggable commands."""

from __future__ import annotations

import contextlib
import socket
import threading
from typing import BinaryIO, Callable

from miniredis.proto import ProtocolError, read_array

_ACCEPT_POLL = 0.1
_MAX_ARGS_IN_ERROR = 20
# Characters Python treats as whitespace that the wire format keeps as is.
_NOT_SPACE = frozenset("\x1c\x1d\x1e\x1f")


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _to_inline(text: str) -> str:
    return "".join(
        " " if ch.isspace() and ch not in _NOT_SPACE else ch for ch in text
    )


def _unknown_command(cmd: str, args: list[str]) -> str:
    listed = "".join(f"`{arg}`, " for arg in args[:_MAX_ARGS_IN_ERROR])
    return f"ERR unknown command `{cmd}`, with args beginning with: {listed}"


def _shutdown(conn: socket.socket) -> None:
    with contextlib.suppress(OSError):
        conn.shutdown(socket.SHUT_RDWR)


def _listen(addr: str) -> socket.socket:
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"address needs a port: {addr!r}")
    host = host.strip("[]")
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    return socket.create_server((host, int(port)), family=family)


class CommandAlreadyRegistered(ValueError):
    """A command with that name is registered already."""


class Writer:
    """Writes replies to a binary stream."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def _emit(self, text: str) -> None:
        self._stream.write(_encode(text))

    def write_error(self, message: str) -> None:
        """Write an error reply."""
        self._emit(f"-{_to_inline(message)}\r\n")

    def write_len(self, n: int) -> None:
        """Start an array of n elements."""
        self._emit(f"*{int(n)}\r\n")

    def write_bulk(self, s: str) -> None:
        """Write a bulk string."""
        data = _encode(s)
        self._stream.write(b"$%d\r\n%s\r\n" % (len(data), data))

    def write_int(self, i: int) -> None:
        """Write an integer."""
        self._emit(f":{int(i)}\r\n")

    def write_null(self) -> None:
        """Write a nil element."""
        self._stream.write(b"$-1\r\n")

    def write_inline(self, s: str) -> None:
        """Write a simple (inline) string."""
        self._emit(f"+{_to_inline(s)}\r\n")

    def flush(self) -> None:
        """Send out whatever is buffered."""
        with contextlib.suppress(OSError, ValueError):
            self._stream.flush()


Handler = Callable[["Peer", str, "list[str]"], None]


class Peer:
    """A client connected to the server."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._lock = threading.Lock()
        self._closed = False
        self._disconnect_callbacks: list[Callable[[], None]] = []
        self.ctx: object = None  # free for command handlers to use

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def flush(self) -> None:
        """Flush the write buffer; done after every command."""
        with self._lock:
            Writer(self._stream).flush()

    def close(self) -> None:
        """Close the connection once the current command is done."""
        with self._lock:
            self._closed = True

    def on_disconnect(self, callback: Callable[[], None]) -> None:
        """Run callback when the client goes away; may be called many times."""
        self._disconnect_callbacks.append(callback)

    def block(self, fn: Callable[[Writer], None]) -> None:
        """Run fn with a Writer, holding the peer's lock."""
        with self._lock:
            fn(Writer(self._stream))

    def write_error(self, message: str) -> None:
        self.block(lambda w: w.write_error(message))

    def write_inline(self, s: str) -> None:
        self.block(lambda w: w.write_inline(s))

    def write_ok(self) -> None:
        self.write_inline("OK")

    def write_bulk(self, s: str) -> None:
        self.block(lambda w: w.write_bulk(s))

    def write_null(self) -> None:
        self.block(lambda w: w.write_null())

    def write_len(self, n: int) -> None:
        self.block(lambda w: w.write_len(n))

    def write_int(self, i: int) -> None:
        self.block(lambda w: w.write_int(i))

    def _disconnected(self) -> None:
        for callback in self._disconnect_callbacks:
            callback()


class Server:
    """A redis protocol server listening on a TCP address."""

    def __init__(self, addr: str = "127.0.0.1:0") -> None:
        self._lock = threading.Lock()
        self._commands: dict[str, Handler] = {}
        self._peers: set[socket.socket] = set()
        self._threads: list[threading.Thread] = []
        self._info_conns = 0
        self._info_cmds = 0
        self._closing = threading.Event()
        listener = _listen(addr)
        listener.settimeout(_ACCEPT_POLL)
        self._listener: socket.socket | None = listener
        self._accept_thread = threading.Thread(
            target=self._serve, args=(listener,), daemon=True
        )
        self._accept_thread.start()

    def __enter__(self) -> Server:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _serve(self, listener: socket.socket) -> None:
        while not self._closing.is_set():
            try:
                conn, _ = listener.accept()
            except TimeoutError:
                continue
            except OSError:
                return
            conn.settimeout(None)
            self.serve_conn(conn)

    def addr(self) -> tuple[str, int] | None:
        """The (host, port) the server listens on, or None once closed."""
        with self._lock:
            if self._listener is None:
                return None
            host, port = self._listener.getsockname()[:2]
            return host, port

    def serve_conn(self, conn: socket.socket) -> None:
        """Serve a connected socket in the background."""
        with self._lock:
            self._peers.add(conn)
            self._info_conns += 1
            closing = self._closing.is_set()
            thread = threading.Thread(target=self._handle_conn, args=(conn,), daemon=True)
            self._threads.append(thread)
        if closing:
            _shutdown(conn)
        thread.start()

    def _handle_conn(self, conn: socket.socket) -> None:
        try:
            self._serve_peer(conn)
        finally:
            with self._lock:
                self._peers.discard(conn)
            conn.close()

    def _serve_peer(self, conn: socket.socket) -> None:
        reader = conn.makefile("rb")
        stream = conn.makefile("wb")
        peer = Peer(stream)
        try:
            while True:
                try:
                    args = read_array(reader)
                except (EOFError, ProtocolError, OSError):
                    return
                if not args:
                    continue
                self._dispatch(peer, args)
                peer.flush()
                if peer.closed:
                    return
        finally:
            peer._disconnected()
            with contextlib.suppress(OSError):
                reader.close()
            with contextlib.suppress(OSError):
                stream.close()

    def _dispatch(self, peer: Peer, args: list[str]) -> None:
        cmd, *rest = args
        upper = cmd.upper()
        with self._lock:
            handler = self._commands.get(upper)
        if handler is None:
            peer.write_error(_unknown_command(cmd, rest))
            return
        with self._lock:
            self._info_cmds += 1
        handler(peer, upper, rest)

    def close(self) -> None:
        """Stop listening, disconnect every client and wait for them."""
        with self._lock:
            listener = self._listener
            self._listener = None
            self._closing.set()
        if listener is not None:
            listener.close()
        self._accept_thread.join()
        with self._lock:
            for conn in self._peers:
                _shutdown(conn)
            threads = list(self._threads)
        for thread in threads:
            thread.join()

    def register(self, cmd: str, handler: Handler) -> None:
        """Register a command handler; names are case insensitive."""
        name = cmd.upper()
        with self._lock:
            if name in self._commands:
                raise CommandAlreadyRegistered(f"command already registered: {name}")
            self._commands[name] = handler

    def total_commands(self) -> int:
        """Number of known commands handled since the server started."""
        with self._lock:
            return self._info_cmds

    def clients_len(self) -> int:
        """Number of clients connected right now."""
        with self._lock:
            return len(self._peers)

    def total_connections(self) -> int:
        """Number of clients connected since the server started."""
        with self._lock:
            return self._info_conns