from __future__ import annotations

import os
from pathlib import Path

import pytest

from boxcsg.boxes import Box


def pytest_configure():
    os.environ.setdefault("PYVISTA_OFF_SCREEN", "true")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep user config reads and writes inside the test's temp directory."""
    home = tmp_path / "boxcsg-home"
    monkeypatch.setenv("BOXCSG_HOME", str(home))
    return home


@pytest.fixture
def box_a() -> Box:
    return Box(from_=(0.0, 0.0, 0.0), to=(2.0, 2.0, 2.0))


@pytest.fixture
def box_b() -> Box:
    return Box(from_=(1.0, 1.0, 1.0), to=(3.0, 3.0, 3.0))
