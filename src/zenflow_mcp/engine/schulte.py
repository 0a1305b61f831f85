"""
Schulte Grid Exercise.

A 5x5 grid of the numbers 1..25 in random order, clicked in ascending
order as fast as possible. Status goes idle -> playing (on 1) -> finished
(on 25); wrong numbers are silently ignored.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Optional, Sequence

from zenflow_mcp.constants import SCHULTE_CELL_COUNT, SCHULTE_GRID_SIZE, SchulteStatus
from zenflow_mcp.exceptions import ZenFlowValidationError
from zenflow_mcp.models import SchulteResult

logger = logging.getLogger(__name__)


class SchulteExercise:
    """
    One Schulte grid and its click sequence.

    Args:
        clock: Wall-clock seconds (defaults to time.time)
        rng: Random source used for shuffling
        on_finish: Called with the SchulteResult when 25 is reached
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
        on_finish: Optional[Callable[[SchulteResult], Any]] = None,
    ) -> None:
        self._clock = clock
        self._rng = rng or random.Random()
        self._on_finish = on_finish
        self.grid: list[int] = []
        self.next_number = 1
        self.status = SchulteStatus.IDLE
        self.start_time: float | None = None
        self._finished_elapsed = 0.0
        self.new_grid()

    def new_grid(self, grid: Sequence[int] | None = None) -> list[int]:
        """
        Start over with a fresh permutation of 1..25.

        Args:
            grid: Explicit layout to use instead of a random shuffle
        """
        if grid is None:
            numbers = list(range(1, SCHULTE_CELL_COUNT + 1))
            self._rng.shuffle(numbers)
        else:
            numbers = list(grid)
            if sorted(numbers) != list(range(1, SCHULTE_CELL_COUNT + 1)):
                raise ZenFlowValidationError(f"Grid must be a permutation of 1..{SCHULTE_CELL_COUNT}")

        self.grid = numbers
        self.next_number = 1
        self.status = SchulteStatus.IDLE
        self.start_time = None
        self._finished_elapsed = 0.0
        return self.grid

    @property
    def rows(self) -> list[list[int]]:
        return [self.grid[i : i + SCHULTE_GRID_SIZE] for i in range(0, len(self.grid), SCHULTE_GRID_SIZE)]

    @property
    def elapsed(self) -> float:
        """Seconds since the first click; frozen once finished."""
        if self.status is SchulteStatus.FINISHED:
            return self._finished_elapsed
        if self.status is SchulteStatus.PLAYING and self.start_time is not None:
            return self._clock() - self.start_time
        return 0.0

    def click(self, number: int) -> SchulteResult | None:
        """
        Register a click on `number`.

        Returns:
            The result when this click finishes the grid, else None
        """
        if self.status is SchulteStatus.FINISHED or number != self.next_number:
            return None

        if number == 1:
            self.status = SchulteStatus.PLAYING
            self.start_time = self._clock()

        if number == SCHULTE_CELL_COUNT:
            end_time = self._clock()
            taken = end_time - self.start_time if self.start_time is not None else 0.0
            self.status = SchulteStatus.FINISHED
            self._finished_elapsed = taken
            result = SchulteResult(timestamp=int(end_time * 1000), time_taken=round(taken, 2))
            logger.info("Schulte grid finished in %.2fs", result.time_taken)
            if self._on_finish is not None:
                self._on_finish(result)
            return result

        self.next_number += 1
        return None
