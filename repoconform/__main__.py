"""Allow ``python -m repoconform``."""

from __future__ import annotations

import sys

from repoconform.cli import main

sys.exit(main())
