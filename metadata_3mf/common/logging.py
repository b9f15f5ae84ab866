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

"""
Logging utilities for the 3MF metadata tool.

All console output goes through the functions here.  They print to
``stderr`` so that ``show`` can write metadata fragments to ``stdout``
without interleaving diagnostics.

Usage::

    from ..common import debug, info, warn, error

    debug(f"Copied {count} entries")     # Silent unless DEBUG_MODE is True
    info(f"Processing {path}")           # Always prints
    warn(f"Duplicate key {name}")        # Always prints  WARNING: ...
    error(f"Failed to write: {e}")       # Always prints  ERROR: ...
"""

import sys

__all__ = ["DEBUG_MODE", "debug", "info", "warn", "error", "set_debug"]


DEBUG_MODE = False
"""Set to True to enable verbose console output. The ``--verbose`` flag does this."""


def _print(*args, **kwargs):
    # Look up stderr on every call, tests swap it out.
    kwargs.setdefault("file", sys.stderr)
    print(*args, **kwargs)


def set_debug(enabled: bool) -> None:
    """Switch verbose output on or off for the rest of the process."""
    global DEBUG_MODE
    DEBUG_MODE = bool(enabled)


def debug(*args, **kwargs):
    """Print to console only when DEBUG_MODE is enabled."""
    if DEBUG_MODE:
        _print(*args, **kwargs)


def info(*args, **kwargs):
    """Always print a progress message to the console."""
    _print(*args, **kwargs)


def warn(*args, **kwargs):
    """Always print a warning message to the console."""
    _print("WARNING:", *args, **kwargs)


def error(*args, **kwargs):
    """Always print an error message to the console."""
    _print("ERROR:", *args, **kwargs)
