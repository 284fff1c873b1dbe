"""Text encoding of peak pairs — one ``min max`` line per window."""

import logging
import sys
from collections.abc import Iterable, Iterator
from enum import Enum

from errors import OutputUnwritable

logger = logging.getLogger(__name__)

# Both divisors span the full unsigned 16-bit range.
BYTE_DIVISOR = 65535 // 255
FLOAT_DIVISOR = 65535.0

MAX_PRECISION = 7


class OutputType(str, Enum):
    BYTE = "byte"
    SHORT = "short"
    FLOAT = "float"


def _truncating_divide(value: int, divisor: int) -> int:
    quotient = abs(value) // divisor
    return -quotient if value < 0 else quotient


def encode(
    peak,
    output_type: OutputType = OutputType.SHORT,
    precision: int = MAX_PRECISION,
) -> str:
    """Render one (min, max) peak as a newline-terminated record.

    Args:
        peak: Pair of int16 values (min, max).
        output_type: BYTE divides by 257 toward zero, SHORT emits the raw
            values, FLOAT divides by 65535.0.
        precision: Digits after the decimal point for FLOAT output.
    """
    low, high = int(peak[0]), int(peak[1])

    if output_type is OutputType.BYTE:
        low = _truncating_divide(low, BYTE_DIVISOR)
        high = _truncating_divide(high, BYTE_DIVISOR)
    elif output_type is OutputType.FLOAT:
        return f"{low / FLOAT_DIVISOR:.{precision}f} {high / FLOAT_DIVISOR:.{precision}f}\n"

    return f"{low} {high}\n"


def encode_peaks(
    peaks: Iterable,
    output_type: OutputType = OutputType.SHORT,
    precision: int = MAX_PRECISION,
) -> Iterator[str]:
    """Yield one record per peak, in window order."""
    for peak in peaks:
        yield encode(peak, output_type, precision)


def _emit(sink, peaks: Iterable, output_type: OutputType, precision: int) -> int:
    written = 0
    for line in encode_peaks(peaks, output_type, precision):
        sink.write(line)
        written += 1
    return written


def write_records(
    peaks: Iterable,
    target: str,
    output_type: OutputType = OutputType.SHORT,
    precision: int = MAX_PRECISION,
) -> int:
    """Write encoded records to a file path, or stdout when ``target`` is ``-``.

    Returns:
        Number of records written.

    Raises:
        OutputUnwritable: The sink could not be created or written.
    """
    try:
        if target == "-":
            written = _emit(sys.stdout, peaks, output_type, precision)
            sys.stdout.flush()
        else:
            with open(target, "w", encoding="ascii", newline="\n") as sink:
                written = _emit(sink, peaks, output_type, precision)
    except OSError as e:
        raise OutputUnwritable(f"cannot write output '{target}': {e.strerror or e}") from e

    logger.debug("Wrote %d records to %s", written, "stdout" if target == "-" else target)
    return written
