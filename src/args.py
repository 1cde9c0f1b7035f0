"""Argument parsing functionality for NewGet."""

import argparse
from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="newget",
        description=(
            "NewGet - resolve a NuGet package into the full set of packages to download"
        ),
        add_help=True,
    )

    parser.add_argument("-p", "--package",
                        dest="PACKAGE",
                        help="Package id, i.e: Newtonsoft.Json",
                        action="store", type=str,
                        required=True)
    parser.add_argument("-v", "--version",
                        dest="VERSION",
                        help="Exact package version, i.e: 13.0.1",
                        action="store", type=str,
                        required=True)
    parser.add_argument("-f", "--framework",
                        dest="FRAMEWORK",
                        help=f"Target framework (default: {Constants.DEFAULT_TARGET_FRAMEWORK})",
                        action="store", type=str)
    parser.add_argument("-s", "--service-index",
                        dest="SERVICE_INDEX",
                        help=f"NuGet V3 service index URL (default: {Constants.SERVICE_INDEX_URL})",
                        action="store", type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to a YAML configuration file",
                        action="store", type=str)
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help="Write the package URLs to this file instead of stdout",
                        action="store", type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="Overall deadline for the resolution, in seconds",
                        action="store", type=float)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)

    return parser.parse_args(argv)
