"""
Root conftest.py - fixtures shared across all tests.
"""

from pathlib import Path
import sys

import pytest
import yaml

SRC_DIR = Path(__file__).parent.parent.resolve() / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture
def write_config(tmp_path):
    """Write a configuration mapping to ``tmp_path`` as YAML and return its path."""
    def _write(data, name="config.yaml"):
        path = tmp_path / name
        with open(path, "w") as f:
            yaml.safe_dump(data, f)
        return path
    return _write
