"""Reading delimited sentences from device connections."""

from minifinder.transport.reader import SentenceReader

__all__ = ["SentenceReader"]
