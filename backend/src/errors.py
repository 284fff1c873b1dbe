"""Error taxonomy for wavedown.

Every failure is terminal: the run aborts before any record is written for
that failure class. ``main`` maps each error to its ``exit_code``.
"""


class WavedownError(Exception):
    """Base class for all expected wavedown failures."""

    exit_code = 1


class InputUnreadable(WavedownError, OSError):
    """Input source could not be opened or read."""


class OutputUnwritable(WavedownError, OSError):
    """Output sink could not be created or written."""


class InvalidLength(WavedownError, ValueError):
    """Byte count is odd and cannot be paired into 16-bit samples."""


class InsufficientData(WavedownError, ValueError):
    """Fewer samples than requested windows."""


class InvalidConfiguration(WavedownError, ValueError):
    """Malformed command-line arguments."""

    exit_code = 2

    def __init__(self, message: str, usage: str = "") -> None:
        super().__init__(message)
        self.usage = usage
