"""wavedown — raw PCM s16le in, fixed-count waveform peak records out."""

import logging
import os
import sys
from pathlib import Path

import sentry_sdk

from _version import __version__
from audio.encoder import write_records
from audio.pcm import decode, read_input
from audio.waveform import downsample
from command import Command, parse_command
from diagnostics import init_diagnostics
from errors import InvalidConfiguration, WavedownError
from security import strip_pii

# Consent-gated Sentry init
_consent_path = os.path.expanduser("~/.wavedown/telemetry_consent")
_dsn = ""
if os.path.exists(_consent_path) and Path(_consent_path).read_text().strip() == "yes":
    _dsn = os.environ.get("SENTRY_DSN", "")

sentry_sdk.init(
    dsn=_dsn,
    release=f"wavedown@{__version__}",
    environment=os.environ.get("SENTRY_ENV", "development"),
    before_send=strip_pii,
    max_breadcrumbs=50,
)

logger = logging.getLogger(__name__)


def run(command: Command) -> int:
    """Read, decode, downsample and write. Returns the number of records written.

    The output sink is only opened once downsampling has succeeded, so a
    failed run never leaves a partial output file behind.
    """
    samples = decode(read_input(command.input))
    peaks = downsample(samples, command.samples)
    written = write_records(peaks, command.output, command.output_type, command.precision)
    logger.info(
        "Wrote %d %s records from %d samples",
        written,
        command.output_type.value,
        len(samples),
    )
    return written


def main(argv: list[str] | None = None) -> int:
    try:
        command = parse_command(argv)
    except InvalidConfiguration as e:
        sys.stderr.write(e.usage)
        print(f"wavedown: error: {e}", file=sys.stderr)
        return e.exit_code

    init_diagnostics()
    logger.debug("Running %s", command)

    try:
        run(command)
    except WavedownError as e:
        logger.error("Run failed (%s): %s", type(e).__name__, e)
        print(f"wavedown: error: {e}", file=sys.stderr)
        return e.exit_code
    return 0


if __name__ == "__main__":
    sys.exit(main())
