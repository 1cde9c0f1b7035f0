"""NewGet - resolve a NuGet package into the packages that must be downloaded.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import os
import sys

from constants import Constants, ExitCodes, load_config
from common.errors import (
    RegistrationUnavailable,
    ServiceIndexUnavailable,
    VersionNotFound,
    RegistryFormatError,
)
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from resolver.installer import PackageInstaller
from versioning.nuget_version import InvalidVersion

logger = logging.getLogger(__name__)


def write_output(urls, path=None):
    """Writes one URL per line to ``path`` or stdout.

    Args:
        urls (list): Content URLs to emit.
        path (str, optional): Output file path.
    """
    text = "\n".join(urls)
    if not path:
        print(text)
        return
    try:
        with open(path, "w", encoding="utf-8") as file:
            file.write(text + "\n" if text else "")
    except OSError as e:
        logger.error("IO error: %s, aborting", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    logger.info("Wrote %d URL(s) to %s", len(urls), path)


def run(args):
    """Resolve the requested package and return an exit code."""
    try:
        load_config(args.CONFIG)
    except (OSError, ValueError) as e:
        logger.error("Configuration error: %s", e)
        return ExitCodes.FILE_ERROR.value

    installer = PackageInstaller(
        service_index_url=args.SERVICE_INDEX or os.environ.get("NEWGET_SERVICE_INDEX"),
        target_framework=args.FRAMEWORK,
    )
    try:
        urls = installer.install_package_sync(args.PACKAGE, args.VERSION, deadline=args.TIMEOUT)
    except (ServiceIndexUnavailable, RegistrationUnavailable, RegistryFormatError) as e:
        logger.error("%s", e)
        return ExitCodes.CONNECTION_ERROR.value
    except asyncio.TimeoutError:
        logger.error("Resolution did not finish within %s seconds", args.TIMEOUT)
        return ExitCodes.CONNECTION_ERROR.value
    except (VersionNotFound, InvalidVersion) as e:
        logger.error("%s", e)
        return ExitCodes.RESOLUTION_ERROR.value

    write_output(urls, args.OUTPUT)
    return ExitCodes.SUCCESS.value


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action="main",
                                target=args.PACKAGE, service_index=Constants.SERVICE_INDEX_URL)
        )
    sys.exit(run(args))


if __name__ == "__main__":
    main()
