"""TCP listener for device connections.

One worker thread runs the accept loop and each accepted connection gets its
own worker thread, which reads sentences, decodes them, and hands every
decoded record to the broadcaster. Decoding is synchronous and shares nothing
between connections except the decoder's registry.
"""

import itertools
import logging
import socket
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from minifinder.decoder import MiniFinderDecoder
from minifinder.session import ConnectionContext, DeviceRegistry
from minifinder.transport import SentenceReader
from server.formatters import format_position_message

__all__ = ["DeviceListener", "handle_connection"]

logger = logging.getLogger(__name__)

_ACCEPT_TIMEOUT = 0.5  # determines maximum close() latency of the accept loop


def handle_connection(
    reader: SentenceReader,
    context: ConnectionContext,
    decoder: MiniFinderDecoder,
    registry: DeviceRegistry,
    publish: Callable[[str], None],
) -> None:
    """Decode sentences from one device connection until it closes.

    The connection's session binding is released on the way out, whatever
    ended the connection.

    Args:
        reader: Reader over the connection; entered and closed here.
        context: Context identifying this connection to the registry.
        decoder: Shared sentence decoder.
        registry: Registry the decoder resolves identities with.
        publish: Receives one JSON message per decoded record.
    """
    logger.info("Device connected: %s", context.remote_address)
    try:
        with reader:
            for sentence in reader:
                position = decoder.decode(sentence, context)
                if position is not None:
                    publish(format_position_message(position))
    finally:
        registry.release(context)
        logger.info("Device disconnected: %s", context.remote_address)


class DeviceListener:
    """Accepts device connections and serves each one on a worker thread.

    The listening socket is bound on construction so ``address`` is known
    (and port 0 resolved) before ``serve_forever`` starts.

    Args:
        decoder: Shared sentence decoder.
        registry: Registry the decoder resolves identities with.
        publish: Receives one JSON message per decoded record.
        host: Address to listen on.
        port: TCP port; 0 picks a free port.
        max_connections: Size of the connection worker pool.
        read_timeout: Socket read timeout for each connection.
        max_frame_length: Longest accepted sentence in bytes.
    """

    def __init__(
        self,
        decoder: MiniFinderDecoder,
        registry: DeviceRegistry,
        publish: Callable[[str], None],
        host: str,
        port: int,
        max_connections: int = 64,
        read_timeout: float = 2.0,
        max_frame_length: int = 1024,
    ) -> None:
        self._decoder = decoder
        self._registry = registry
        self._publish = publish
        self._read_timeout = read_timeout
        self._max_frame_length = max_frame_length
        self._connection_ids = itertools.count(1)
        self._executor = ThreadPoolExecutor(
            max_workers=max_connections,
            thread_name_prefix="minifinder-conn",
        )
        self._readers: set[SentenceReader] = set()
        self._lock = threading.Lock()
        self._closed = threading.Event()
        self._sock = socket.create_server((host, port))
        self._sock.settimeout(_ACCEPT_TIMEOUT)

    @property
    def address(self) -> tuple[str, int]:
        host, port = self._sock.getsockname()[:2]
        return host, port

    def _serve(self, reader: SentenceReader, context: ConnectionContext) -> None:
        try:
            handle_connection(reader, context, self._decoder, self._registry, self._publish)
        except Exception:
            logger.exception("Connection %d failed", context.connection_id)
        finally:
            with self._lock:
                self._readers.discard(reader)

    def _accept(self) -> None:
        try:
            conn, address = self._sock.accept()
        except TimeoutError:
            return
        context = ConnectionContext(
            connection_id=next(self._connection_ids),
            remote_address=address[:2],
        )
        reader = SentenceReader(conn, self._read_timeout, self._max_frame_length)
        with self._lock:
            self._readers.add(reader)
        try:
            self._executor.submit(self._serve, reader, context)
        except RuntimeError:
            # Pool already shut down by close()
            conn.close()
            return
        if self._closed.is_set():
            # Accepted after close() collected the readers to cancel
            reader.cancel()

    def serve_forever(self) -> None:
        """Accept connections until ``close()`` is called."""
        logger.info("Listening for devices on %s:%d", *self.address)
        try:
            while not self._closed.is_set():
                self._accept()
        except OSError:
            if not self._closed.is_set():
                raise

    def close(self) -> None:
        """Stop accepting, cancel every open connection, and wait for them."""
        self._closed.set()
        self._sock.close()
        with self._lock:
            readers = list(self._readers)
        for reader in readers:
            reader.cancel()
        self._executor.shutdown(wait=True)
