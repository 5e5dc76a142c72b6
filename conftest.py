# SPDX-License-Identifier: MIT
# Copyright (c) 2025 azurekv contributors

"""Root conftest.py so that the tests/ helpers and azurekv import without installation."""

import sys
from pathlib import Path

# Add repo root to sys.path so tests.fixtures can be imported
_repo_root = Path(__file__).parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))
