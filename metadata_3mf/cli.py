# Command-line tool to add metadata to 3MF files.
# Copyright (C) 2020 Ghostkeeper
# Copyright (C) 2025 Jack
# This program is free software; you can redistribute it and/or modify it under the terms of the GNU General Public
# License as published by the Free Software Foundation; either version 2 of the License, or (at your option) any later
# version.
# This program is distributed in the hope that it will be useful, but WITHOUT ANY WARRANTY; without even the implied
# warranty of MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU General Public License for more details.
# You should have received a copy of the GNU General Public License along with this program; if not, write to the Free
# Software Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA 02110-1301 USA.

# <pep8 compliant>

"""
Command line interface.

::

    metadata-3mf add [-s SUFFIX] [-m METADATA] [-k] [-t] [-f] FILE...
    metadata-3mf show FILE...

Exit status is 0 on success and 1 when any file failed.  Usage errors exit
with status 2, as usual for ``argparse``.
"""

import argparse
from typing import List, Optional

from . import __version__
from .api import add_metadata, show
from .common.constants import DEFAULT_METADATA_FILE, DEFAULT_SUFFIX
from .common.logging import set_debug

__all__ = ["build_parser", "main"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metadata-3mf",
        description="Add metadata to 3MF files, or show the metadata they contain.",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND", required=True)

    add = subparsers.add_parser("add", help="Add metadata to 3MF files")
    add.add_argument(
        "-s", "--suffix",
        default=DEFAULT_SUFFIX,
        help="Suffix for the output file names (default: %(default)s)",
    )
    add.add_argument(
        "-m", "--metadata",
        default=DEFAULT_METADATA_FILE,
        help="File containing the metadata to be added to the 3MF (default: %(default)s)",
    )
    add.add_argument(
        "-k", "--keep-existing",
        action="store_true",
        help="Keep existing metadata tags when one of the same name is found in the metadata file",
    )
    add.add_argument("-t", "--title", action="store_true", help="Set Title to the output file name")
    add.add_argument("-f", "--force", action="store_true", help="Force overwrite of existing files")
    add.add_argument("-v", "--verbose", action="store_true", help="Print debugging output")
    add.add_argument("input_files", nargs="+", metavar="FILE", help="Input file(s)")

    show_parser = subparsers.add_parser("show", help="Show metadata in 3MF files")
    show_parser.add_argument("-v", "--verbose", action="store_true", help="Print debugging output")
    show_parser.add_argument("input_files", nargs="+", metavar="FILE", help="Input file(s)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the command line tool and return its exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)
    set_debug(args.verbose)

    if any(name == "" for name in args.input_files):
        parser.error("input file names must not be empty")

    if args.command == "add":
        result = add_metadata(
            args.input_files,
            metadata_path=args.metadata,
            suffix=args.suffix,
            keep_existing=args.keep_existing,
            title=args.title,
            force=args.force,
        )
        return 0 if result.status == "FINISHED" else 1

    result = show(args.input_files)
    return 0 if result.status == "OK" else 1
