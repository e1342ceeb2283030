"""
📄 checksumly.py

Purpose:
    CLI entry point and main controller for update and check.

Key Features:
    - Argument parsing (see cli_utils.build_parser).
    - Logging setup, optional side log file.
    - Dispatch to the orchestrator and mapping of errors to exit codes.

Usage:
    checksumly -U ./MyFolder
    checksumly -C ./MyFolder/SubFolder
    checksumly -U --force -T jpg,png -B ./MyFolder
"""

import logging
import sys

from .cli_utils import build_parser, config_from_args, log_file_from_args
from .config import ChecksumConfig
from .errors import ChecksumError, ScanError
from .license_utils import print_version
from .log_utils import LOGGER_NAME, log_invocation, setup_logging, shutdown_logging
from .orchestrator import check, update
from .output_utils import print_check_result, print_update_result

logger = logging.getLogger(LOGGER_NAME)

EXIT_OK = 0
EXIT_CHANGED = 1
EXIT_INTERRUPTED = 130


def handle_update(config: ChecksumConfig) -> int:
    result = update(config)
    print_update_result(result, config.hash_file)
    return EXIT_OK


def handle_check(config: ChecksumConfig) -> int:
    result = check(config)
    print_check_result(result)
    if result.changed:
        return EXIT_CHANGED
    # unreadable entries collected with --keep-going
    return ScanError.exit_code if result.errors else EXIT_OK


def run(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print_version()
        return EXIT_OK

    if not (args.update or args.check):
        parser.print_usage()
        return EXIT_OK

    action = "update" if args.update else "check"
    setup_logging(verbose=args.verbose, log_file=log_file_from_args(args))

    try:
        config = config_from_args(args)
        log_invocation(config, action)
        handler = handle_update if args.update else handle_check
        code = handler(config)
    except ChecksumError as e:
        logger.error(str(e))
        code = e.exit_code

    logger.debug(f"Exit status code: {code}")
    shutdown_logging()
    return code


def main():
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        print("\n🛑 Operation cancelled by user.")
        sys.exit(EXIT_INTERRUPTED)


if __name__ == "__main__":
    main()
