"""
cli_utils.py — Argument parsing for the checksumly command line.
"""

import argparse
import textwrap
from pathlib import Path

from .config import (
    DEFAULT_FOLDER,
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_HASH_FILE,
    DEFAULT_LOG_FILE,
    ChecksumConfig,
)
from .scanner import HASHERS

EXAMPLES = textwrap.dedent(
    """\
    examples:
      checksumly -U -T trivial,tpce ./MyFolder
      checksumly -U ./MyFolder/SubFolder
      checksumly -C "./MyFolder/Yet Another Sub Folder"
      checksumly -H checksum_File_CSV.check -C -B MyFolder ./MyFolder/SubFolder
    """
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="checksumly",
        description=(
            "Checksum files and folders. Keeps a hash table of relative folder, "
            "file name, last modified time and hash, and checks file integrity "
            "against it, for the whole base folder or per sub-folder."
        ),
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("-U", "--update", action="store_true", help="Update the hash table, entire -or- per folder.")
    mode.add_argument("-C", "--check", action="store_true", help="Integrity check, entire -or- per folder.")

    parser.add_argument(
        "-H", "--hash-file", default=DEFAULT_HASH_FILE,
        help=f"Hash table file to use. Default: {DEFAULT_HASH_FILE}",
    )
    parser.add_argument(
        "-B", "--base-folder", default=DEFAULT_FOLDER,
        help=f"Base folder all relative paths are computed against. Default: {DEFAULT_FOLDER}",
    )
    parser.add_argument(
        "-T", "--file-types", default=None,
        help="File types to include, by extension (comma separated). "
             "Default: * or the types already recorded in the hash table.",
    )
    parser.add_argument(
        "--hash-algorithm", choices=sorted(HASHERS), default=DEFAULT_HASH_ALGORITHM,
        help=f"Content hash. Must stay the same for a given table. Default: {DEFAULT_HASH_ALGORITHM}",
    )
    parser.add_argument("--force", action="store_true", help="Force update without diff -or- check using diff.")
    parser.add_argument(
        "--keep-going", action="store_true",
        help="On check, report unreadable files and continue instead of aborting.",
    )
    parser.add_argument("--log", action="store_true", help=f"Write to a log file ({DEFAULT_LOG_FILE}).")
    parser.add_argument("-V", "--verbose", action="store_true", help="Output more information.")
    parser.add_argument("-v", "--version", action="store_true", help="Output version information.")
    parser.add_argument("folder", nargs="?", default=None, help="Folder to update or check. Default: base folder.")

    return parser


def log_file_from_args(args) -> Path | None:
    return Path.cwd() / DEFAULT_LOG_FILE if getattr(args, "log", False) else None


def config_from_args(args) -> ChecksumConfig:
    return ChecksumConfig.from_paths(
        args.folder,
        base_folder=args.base_folder,
        hash_file=args.hash_file,
        file_types=args.file_types,
        force=args.force,
        keep_going=args.keep_going,
        hash_algorithm=args.hash_algorithm,
        log_file=log_file_from_args(args),
    )
