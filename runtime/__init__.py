"""
Headless match driver: tick loop, frames and the recording executor.
"""

from .executor import RecordingExecutor
from .frame import Frame, OrderFailure
from .runner import GameRunner

__all__ = ["GameRunner", "Frame", "OrderFailure", "RecordingExecutor"]
