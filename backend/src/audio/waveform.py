"""Waveform peak computation from PCM audio data."""

import logging

import numpy as np

from errors import InsufficientData

logger = logging.getLogger(__name__)


def _truncating_divide(totals: np.ndarray, divisor: int) -> np.ndarray:
    """Integer division rounding toward zero (numpy ``//`` floors)."""
    return np.sign(totals) * (np.abs(totals) // divisor)


def downsample(samples: np.ndarray, output_count: int) -> np.ndarray:
    """Downsample int16 PCM to running-extrema peak pairs for waveform display.

    The samples are split into ``output_count`` windows of
    ``W = len(samples) // output_count`` samples; trailing samples that do not
    fill a window are dropped. Within a window a running (min, max) pair starts
    at (0, 0) and only ever widens: a sample below the running min replaces
    it, otherwise a sample above the running max replaces that. The running
    pair is summed after every sample and the sums are divided by W, rounding
    toward zero. Late extremes therefore weigh less than early ones.

    Since the running min never rises above 0 and the running max never drops
    below 0, the pair after sample j is (min(0, cummin), max(0, cummax)), which
    lets the whole window be evaluated with cumulative reductions.

    Args:
        samples: int16 array of shape (num_samples,).
        output_count: Number of output windows.

    Returns:
        np.ndarray of shape (output_count, 2), dtype int16, where [:, 0] = min
        and [:, 1] = max.

    Raises:
        InsufficientData: Fewer samples than windows.
    """
    if output_count < 0:
        raise ValueError(f"output_count must be >= 0, got {output_count}")
    if output_count == 0:
        return np.empty((0, 2), dtype=np.int16)

    num_samples = len(samples)
    window = num_samples // output_count
    if window == 0:
        raise InsufficientData(
            f"{num_samples} samples cannot fill {output_count} windows"
        )

    used = output_count * window
    logger.debug(
        "Downsampling %d samples into %d windows of %d (%d discarded)",
        num_samples,
        output_count,
        window,
        num_samples - used,
    )

    # int16 extrema cannot overflow; only the sums need widening
    windows = np.asarray(samples[:used], dtype=np.int16).reshape(output_count, window)
    running_min = np.minimum(np.minimum.accumulate(windows, axis=1), 0)
    running_max = np.maximum(np.maximum.accumulate(windows, axis=1), 0)

    peaks = np.empty((output_count, 2), dtype=np.int16)
    peaks[:, 0] = _truncating_divide(running_min.sum(axis=1, dtype=np.int64), window)
    peaks[:, 1] = _truncating_divide(running_max.sum(axis=1, dtype=np.int64), window)
    return peaks
