import sys
from pathlib import Path

# Allow running pytest from a source checkout without installing the package
SRC_DIR = Path(__file__).resolve().parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

pytest_plugins = ["tests.fixtures.archives"]
