import sys
from pathlib import Path

# Tests live at <repo>/tests/ so repo root is 1 parent above.
REPO_ROOT = Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
