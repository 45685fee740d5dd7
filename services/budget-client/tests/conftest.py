"""Pytest configuration for budget-client tests.

Puts the client's src directory and the services root (for `shared`) on
sys.path so modules import the same way the Streamlit app imports them.
"""

import sys
from pathlib import Path

import pytest

SERVICES_ROOT = Path(__file__).resolve().parents[2]
CLIENT_SRC = Path(__file__).resolve().parents[1] / "src"

for path in (CLIENT_SRC, SERVICES_ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


class RecordingSleep:
    """Stands in for asyncio.sleep and remembers every requested delay."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
