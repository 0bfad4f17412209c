from pathlib import Path
import sys

# Add repository root to sys.path so tests can import local modules without installation.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from agents.squad_agent.config import SquadConfig
from agents.squad_agent.state import SquadState


@pytest.fixture
def config() -> SquadConfig:
    return SquadConfig()


@pytest.fixture
def state() -> SquadState:
    return SquadState()
