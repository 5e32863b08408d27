"""MiniFinder sentence framing.

MiniFinder devices send ASCII sentences terminated by a semicolon. Each
sentence starts with '!' followed by a one- or two-character type marker and
comma-separated fields:

Example stream:
    !1,860719020212696;!D,22/2/17,13:40:2,56.899393,14.815748,0,0,b0001,179.3,78,8,10,1.3;
    ^ ^                ^
    | marker           next sentence
    lead character

Frames longer than the device transport allows are discarded rather than
buffered without bound, so a peer that never sends a delimiter cannot grow
memory indefinitely.
"""

import logging

logger = logging.getLogger(__name__)

LEAD_CHARACTER = "!"
DELIMITER = b";"

# Longest frame the device transport accepts, excluding the delimiter
MAX_FRAME_LENGTH = 1024

_MAX_MARKER_LENGTH = 2


def strip_frame(sentence: str) -> str:
    """Remove surrounding whitespace and a trailing delimiter from a sentence.

    Example:
        >>> strip_frame("!3,ok;\\r\\n")
        '!3,ok'
    """
    return sentence.strip().removesuffix(DELIMITER.decode()).strip()


def extract_marker(sentence: str) -> str | None:
    """Extract the type marker from a stripped sentence.

    The marker is everything between the lead character and the first comma
    (or the end of the sentence when there is no comma).

    Args:
        sentence: Sentence already passed through ``strip_frame``.

    Returns:
        The marker string, or None if:
        - The lead character is missing
        - The marker is empty or longer than two characters

    Example:
        >>> extract_marker("!A,12/05/20,14:33:10,37.1234,-122.4567")
        'A'
        >>> extract_marker("$GPGGA,...") is None
        True
    """
    if not sentence.startswith(LEAD_CHARACTER):
        return None

    end = sentence.find(",")
    if end < 0:
        end = len(sentence)
    marker = sentence[len(LEAD_CHARACTER) : end]

    if not marker or len(marker) > _MAX_MARKER_LENGTH:
        return None

    return marker


def split_frames(
    buffer: bytes,
    max_frame_length: int = MAX_FRAME_LENGTH,
    discarding: bool = False,
) -> tuple[list[str], bytes, bool]:
    """Split complete sentences off the front of a receive buffer.

    An oversize partial frame is dropped as soon as it exceeds
    ``max_frame_length``, but its tail is still to come. The returned
    ``discarding`` flag tracks that state across calls: while it is set,
    everything up to and including the next delimiter is dropped as well.

    Args:
        buffer: Bytes received so far, possibly ending mid-sentence.
        max_frame_length: Frames longer than this are dropped.
        discarding: Flag returned by the previous call for the same stream.

    Returns:
        A tuple of (sentences, remainder, discarding). Sentences are decoded
        as ASCII with undecodable bytes replaced by U+FFFD, so a corrupted
        frame fails its pattern instead of decoding as different data. They
        are stripped and never empty. The remainder is the incomplete tail
        to prepend to the next read.

    Example:
        >>> split_frames(b"!3,ok;!5,2")
        (['!3,ok'], b'!5,2', False)
    """
    *complete, remainder = buffer.split(DELIMITER)

    if discarding and not complete:
        return [], b"", True

    sentences = []
    for raw in complete:
        if discarding:
            # Tail of a frame whose head was already dropped
            discarding = False
            continue
        if len(raw) > max_frame_length:
            logger.warning("Discarding oversize frame (%d bytes)", len(raw))
            continue
        sentence = strip_frame(raw.decode("ascii", errors="replace"))
        if sentence:
            sentences.append(sentence)

    if len(remainder) > max_frame_length:
        logger.warning("Discarding oversize partial frame (%d bytes)", len(remainder))
        return sentences, b"", True

    return sentences, remainder, False
