"""Ensure src/ is on sys.path so ``import agentteam`` resolves to
``src/agentteam/`` when the package is not installed.
"""

import sys
from pathlib import Path

_src = str(Path(__file__).resolve().parent.parent / "src")
if _src not in sys.path:
    sys.path.insert(0, _src)
