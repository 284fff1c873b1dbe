"""Command-line parsing into an immutable run configuration."""

import argparse
from dataclasses import dataclass

from _version import __version__
from audio.encoder import MAX_PRECISION, OutputType
from errors import InvalidConfiguration


@dataclass(frozen=True)
class Command:
    """Everything one wavedown run needs, built once at startup."""

    input: str = "-"
    output: str = "-"
    samples: int = 0
    output_type: OutputType = OutputType.SHORT
    precision: int = MAX_PRECISION


def clamp_precision(value: int) -> int:
    """Clamp float precision to [0, MAX_PRECISION]."""
    return max(0, min(MAX_PRECISION, value))


def _non_negative_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        value = -1
    if value < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got '{text}'")
    return value


def _output_type(text: str) -> OutputType:
    try:
        return OutputType(text.lower())
    except ValueError:
        names = ", ".join(t.value for t in OutputType)
        raise argparse.ArgumentTypeError(
            f"unknown output type '{text}' (choose from {names})"
        ) from None


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises InvalidConfiguration instead of exiting."""

    def error(self, message):
        raise InvalidConfiguration(message, usage=self.format_usage())


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="wavedown",
        description=(
            "Transforms a stream of raw PCM 16bit LE data into "
            "a fixed-width waveform representation."
        ),
    )
    parser.add_argument(
        "input_path",
        nargs="?",
        metavar="INPUT",
        help="Sets the input file ('-' reads standard input)",
    )
    parser.add_argument(
        "-i", "--input", dest="input_option", help="Sets the input file (default: '-')"
    )
    parser.add_argument(
        "-o", "--output", default="-", help="Sets the output file (default: '-')"
    )
    parser.add_argument(
        "-s",
        "--samples",
        type=_non_negative_int,
        required=True,
        help="Sets the number of samples to output",
    )
    parser.add_argument(
        "-t",
        "--type",
        dest="output_type",
        type=_output_type,
        default=OutputType.SHORT,
        metavar="{byte,short,float}",
        help="Sets the output type (default: short)",
    )
    parser.add_argument(
        "-p",
        "--precision",
        type=_non_negative_int,
        default=MAX_PRECISION,
        help=f"Sets the float precision, clamped to [0, {MAX_PRECISION}] (default: {MAX_PRECISION})",
    )
    parser.add_argument(
        "-V", "--version", action="version", version=f"wavedown {__version__}"
    )
    return parser


def parse_command(argv: list[str] | None = None) -> Command:
    """Parse argv into a Command.

    Raises:
        InvalidConfiguration: Arguments are missing or malformed.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if (
        args.input_path is not None
        and args.input_option is not None
        and args.input_path != args.input_option
    ):
        parser.error("input given both as INPUT and --input")

    return Command(
        input=args.input_option or args.input_path or "-",
        output=args.output,
        samples=args.samples,
        output_type=args.output_type,
        precision=clamp_precision(args.precision),
    )
