"""Run the hooksync CLI with ``python -m hooksync``."""

from __future__ import annotations

import sys

from hooksync.cli import main

sys.exit(main())
