"""
ZenFlow Engines.

Stateful, I/O-free components:
    - PomodoroEngine: work/break countdown state machine
    - SchulteExercise: 5x5 attention grid
    - Ticker: asyncio driver for the one-second Pomodoro tick
"""

from zenflow_mcp.engine.pomodoro import PomodoroEngine
from zenflow_mcp.engine.schulte import SchulteExercise
from zenflow_mcp.engine.ticker import Ticker

__all__ = ["PomodoroEngine", "SchulteExercise", "Ticker"]
