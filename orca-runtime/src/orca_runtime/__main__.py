"""
Entry point for ``python -m orca_runtime``.

Delegates to the command-line interface in ``orca_runtime.cli``; see
``python -m orca_runtime dispatch --help`` for usage.
"""
from __future__ import annotations

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
