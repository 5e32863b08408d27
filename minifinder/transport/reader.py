"""SentenceReader: yields MiniFinder sentences from a device connection.

The reader wraps an already accepted device socket. Devices write
semicolon-terminated sentences with no particular alignment to TCP segments,
so received bytes are buffered and split with ``split_frames``; one ``read``
returns exactly one sentence regardless of how the bytes arrived.

Reading strategy:
    The socket is given a short timeout so that a blocked ``recv`` wakes up
    periodically and notices ``cancel()``. A timeout with no cancellation is
    simply retried. End of stream and socket errors are reported as
    ``EOFError``, the single signal the connection handler waits for.
"""

import contextlib
import socket
from collections import deque
from collections.abc import Iterator
from types import TracebackType

from minifinder.protocol.framing import MAX_FRAME_LENGTH, split_frames

__all__ = ["SentenceReader"]

_TIMEOUT = 2.0  # socket read timeout; determines maximum cancel() latency
_RECV_SIZE = 4096


class SentenceReader:
    """Context manager for reading sentences from a connected socket.

    Two consumption patterns are supported:

    Continuous iteration (connection handlers)::

        with SentenceReader(conn) as reader:
            for sentence in reader:
                decoder.decode(sentence, context)

    Single read::

        with SentenceReader(conn) as reader:
            sentence = reader.read()

    Leaving the ``with`` block closes the socket.

    Args:
        sock: A connected stream socket. The reader takes ownership of it.
        timeout: Socket read timeout in seconds.
        max_frame_length: Sentences longer than this are discarded.
    """

    def __init__(
        self,
        sock: socket.socket,
        timeout: float = _TIMEOUT,
        max_frame_length: int = MAX_FRAME_LENGTH,
    ) -> None:
        """Store the socket; it is configured in ``__enter__``."""
        self._sock: socket.socket | None = sock
        self._timeout = timeout
        self._max_frame_length = max_frame_length
        self._entered = False
        self._cancelled = False
        self._buffer = b""
        self._discarding = False
        self._pending: deque[str] = deque()

    def __enter__(self) -> "SentenceReader":
        """Apply the read timeout and reset the receive buffer.

        A ``cancel()`` issued before entry is kept: the first read raises
        ``EOFError``.
        """
        if self._sock is None:
            raise RuntimeError("SentenceReader socket is already closed.")
        self._sock.settimeout(self._timeout)
        self._entered = True
        self._buffer = b""
        self._discarding = False
        self._pending.clear()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Close the device socket."""
        self._entered = False
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def cancel(self) -> None:
        """Cancel pending blocking reads gracefully.

        Sets the cancellation flag and shuts down the socket so that any
        in-progress ``recv`` returns immediately and ``read`` raises
        ``EOFError``.
        """
        self._cancelled = True
        if self._sock is not None:
            with contextlib.suppress(OSError):
                self._sock.shutdown(socket.SHUT_RDWR)

    def _recv_raw(self, sock: socket.socket) -> bytes | None:
        """Receive one chunk; returns ``None`` on timeout retry.

        Raises:
            EOFError: If the peer closed the connection or it failed.
        """
        try:
            chunk = sock.recv(_RECV_SIZE)
        except TimeoutError:
            return None
        except OSError as e:
            raise EOFError("Device connection closed.") from e
        if not chunk:
            raise EOFError("Device stream ended.")
        return chunk

    def _fill(self) -> None:
        """Receive once and queue every sentence completed by the new bytes.

        Raises:
            RuntimeError: If called outside a ``with`` block.
            EOFError: If cancelled, or the stream ended or was closed.
        """
        if self._sock is None or not self._entered:
            raise RuntimeError("SentenceReader must be used as a context manager.")
        if self._cancelled:
            raise EOFError("Sentence read cancelled.")
        chunk = self._recv_raw(self._sock)
        if chunk is None:
            return
        sentences, self._buffer, self._discarding = split_frames(
            self._buffer + chunk,
            self._max_frame_length,
            self._discarding,
        )
        self._pending.extend(sentences)

    def read(self) -> str:
        """Block until the next complete sentence and return it.

        The returned sentence is stripped of whitespace and its delimiter.

        Raises:
            RuntimeError: If called outside a ``with`` block.
            EOFError: If the read is cancelled or the stream ends.
        """
        while not self._pending:
            self._fill()
        return self._pending.popleft()

    def __iter__(self) -> Iterator[str]:
        """Yield sentences until the stream ends.

        Unlike ``read``, iteration ends quietly when the connection closes or
        is cancelled: the ``EOFError`` is absorbed and the iterator finishes.
        A trailing partial sentence without its delimiter is discarded.

        Yields:
            One stripped sentence per delimiter received.
        """
        while True:
            try:
                yield self.read()
            except EOFError:
                return
