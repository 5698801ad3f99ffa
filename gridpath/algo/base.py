import random
from abc import ABC, abstractmethod
from typing import Generator as GenType, Iterator, List, Optional, Set

from gridpath.core.grid import Grid, CellType, Coord
from gridpath.core.events import EVT_CARVE, StepStatus

# Two-step moves over the odd-cell lattice
LATTICE_DIRECTIONS = ((-2, 0), (2, 0), (0, -2), (0, 2))


class MazeGenerator(ABC):
    """
    Carves a perfect maze into a grid that is entirely walls.

    `visited` is shared with the caller: the border is pre-visited before
    run() starts so generators never select it.
    """
    def __init__(self, grid: Grid, visited: Set[Coord], rng: random.Random = None,
                 start: Optional[Coord] = None):
        self.grid = grid
        self.visited = visited
        self.rng = rng or random.Random()
        self.start = start
        self.step_count = 0

    @abstractmethod
    def run(self) -> Iterator[str]:
        """
        Yields one event after each carved cell or connecting wall.
        The actual grid modifications happen in-place on self.grid.
        """
        pass

    def run_all(self):
        """Batch form: run the generator to completion without observation."""
        for _ in self.run():
            pass

    # Lattice helpers

    def odd_cells(self) -> List[Coord]:
        size = self.grid.size
        return [(r, c) for r in range(1, size - 1, 2) for c in range(1, size - 1, 2)]

    def is_lattice_cell(self, row: int, col: int) -> bool:
        size = self.grid.size
        return 0 < row < size - 1 and 0 < col < size - 1 and row % 2 == 1 and col % 2 == 1

    def lattice_neighbors(self, row: int, col: int) -> List[Coord]:
        return [
            (row + dr, col + dc) for dr, dc in LATTICE_DIRECTIONS
            if self.is_lattice_cell(row + dr, col + dc)
        ]

    def carve(self, row: int, col: int) -> str:
        self.grid.set_cell(row, col, CellType.EMPTY)
        self.visited.add((row, col))
        self.step_count += 1
        return EVT_CARVE

    def carve_between(self, a: Coord, b: Coord) -> Optional[str]:
        """Carves the single wall cell between two lattice cells, if interior."""
        size = self.grid.size
        wall_row = a[0] + (b[0] - a[0]) // 2
        wall_col = a[1] + (b[1] - a[1]) // 2
        if 0 < wall_row < size - 1 and 0 < wall_col < size - 1:
            return self.carve(wall_row, wall_col)
        return None


class StepProcess:
    """
    Drives a stepwise generator one mutation at a time.

    step() returns CONTINUE while the process still has work; the final
    call reports FOUND/NOT_FOUND (or GRID_ENCODED when the answer is
    written into the grid instead of returned).
    """
    def __init__(self, steps: GenType, grid_encoded: bool = False):
        self._steps = steps
        self._grid_encoded = grid_encoded
        self._done = False
        self._status = StepStatus.CONTINUE
        self.result: Optional[List[Coord]] = None
        self.last_event: Optional[str] = None

    def step(self) -> StepStatus:
        if self._done:
            return self._status
        try:
            self.last_event = next(self._steps)
            return StepStatus.CONTINUE
        except StopIteration as stop:
            self._done = True
            self.result = stop.value
            if self._grid_encoded:
                self._status = StepStatus.GRID_ENCODED
            elif self.result:
                self._status = StepStatus.FOUND
            else:
                self._status = StepStatus.NOT_FOUND
            return self._status

    def is_done(self) -> bool:
        return self._done

    def run_to_end(self) -> StepStatus:
        status = self.step()
        while status is StepStatus.CONTINUE:
            status = self.step()
        return status

    def close(self):
        """Abandons the process; no further steps are taken."""
        self._steps.close()
        self._done = True
        self._status = StepStatus.NOT_FOUND
