"""
Command-line entry point.

    ebm-native-build [-32bit]

``-32bit`` adds the x86 Linux targets.  Any other argument is ignored
with a warning.  Paths, tool names and the log level come from the
environment (or a .env file), see config.Settings.
"""
import argparse
import logging
from typing import List, Optional

from ebm_native_build.config import Settings
from ebm_native_build.runner import run_matrix

logger = logging.getLogger("ebm_native_build")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ebm-native-build",
        add_help=False,
        description="Build ebm_native for every target of the host platform",
    )
    parser.add_argument(
        "-32bit", "--32bit",
        dest="build_32_bit",
        action="store_true",
        help="Also build the 32-bit (x86) Linux targets",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args, ignored = create_parser().parse_known_args(argv)

    settings = Settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )
    if ignored:
        logger.warning(f"Ignoring unrecognized arguments: {' '.join(ignored)}")

    return run_matrix(settings, include_32bit=args.build_32_bit)
