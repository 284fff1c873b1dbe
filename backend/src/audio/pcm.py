"""Raw PCM decoding — 16-bit signed little-endian bytes to int16 samples."""

import logging
import struct
import sys

import numpy as np

from errors import InputUnreadable, InvalidLength

logger = logging.getLogger(__name__)

SAMPLE_WIDTH = 2  # bytes per s16le sample

_S16LE = struct.Struct("<h")


def read_input(source: str) -> bytes:
    """Read the whole input into memory.

    Args:
        source: File path, or ``-`` for standard input.

    Returns:
        Raw bytes of the input.

    Raises:
        InputUnreadable: The source could not be opened or read.
    """
    try:
        if source == "-":
            data = sys.stdin.buffer.read()
        else:
            with open(source, "rb") as f:
                data = f.read()
    except OSError as e:
        raise InputUnreadable(f"cannot read input '{source}': {e.strerror or e}") from e

    logger.debug("Read %d bytes from %s", len(data), "stdin" if source == "-" else source)
    return data


def decode(data: bytes) -> np.ndarray:
    """Decode raw PCM s16le bytes into a read-only int16 sample array.

    Each byte pair (lo, hi) becomes sign-extend(lo | hi << 8). Bytes are
    unpacked pair by pair rather than reinterpreted in place.

    Args:
        data: Raw PCM bytes. Length must be even.

    Returns:
        np.ndarray of shape (len(data) // 2,), dtype int16.

    Raises:
        InvalidLength: ``data`` has an odd number of bytes.
    """
    if len(data) % SAMPLE_WIDTH:
        raise InvalidLength(
            f"input is {len(data)} bytes; an even byte count is required for 16-bit samples"
        )

    count = len(data) // SAMPLE_WIDTH
    samples = np.fromiter(
        (value for (value,) in _S16LE.iter_unpack(data)),
        dtype=np.int16,
        count=count,
    )
    samples.flags.writeable = False
    return samples
