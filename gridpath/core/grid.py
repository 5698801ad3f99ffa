import random
from array import array
from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Tuple

import numpy as np

Coord = Tuple[int, int]


class CellType(IntEnum):
    EMPTY = 0
    WALL = 1
    START = 2
    END = 3
    VISITED = 4
    PATH = 5
    FILLED_DEAD_END = 6


CORNERS = ("top-left", "top-right", "bottom-left", "bottom-right")

# Characters used by Grid.to_text()
CELL_CHARS = {
    CellType.EMPTY: " ",
    CellType.WALL: "#",
    CellType.START: "S",
    CellType.END: "E",
    CellType.VISITED: ".",
    CellType.PATH: "*",
    CellType.FILLED_DEAD_END: "x",
}


def corner_cells(size: int, corner: str) -> List[Coord]:
    """All cells of the 3x3 block in the given corner (clipped to the grid)."""
    if corner == "top-left":
        rows = range(0, min(2, size - 1) + 1)
        cols = range(0, min(2, size - 1) + 1)
    elif corner == "top-right":
        rows = range(0, min(2, size - 1) + 1)
        cols = range(max(0, size - 3), size)
    elif corner == "bottom-left":
        rows = range(max(0, size - 3), size)
        cols = range(0, min(2, size - 1) + 1)
    elif corner == "bottom-right":
        rows = range(max(0, size - 3), size)
        cols = range(max(0, size - 3), size)
    else:
        raise ValueError(f"Unknown corner: {corner}")
    return [(r, c) for r in rows for c in cols]


class Grid:
    # Up, Down, Left, Right. Every search depends on this order.
    DIRECTIONS = ((-1, 0), (1, 0), (0, -1), (0, 1))

    __slots__ = ('size', 'cells', 'visit_counts')

    def __init__(self, size: int):
        self.size = size
        # 'B' (unsigned char) -> 1 byte per cell, row-major
        self.cells = array('B', [CellType.EMPTY] * (size * size))
        self.visit_counts: Dict[Coord, int] = {}

    def is_valid(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def get_cell(self, row: int, col: int) -> Optional[CellType]:
        if not self.is_valid(row, col):
            return None
        return CellType(self.cells[row * self.size + col])

    def set_cell(self, row: int, col: int, cell_type: CellType):
        if self.is_valid(row, col):
            self.cells[row * self.size + col] = cell_type

    def fill(self, cell_type: CellType):
        for i in range(len(self.cells)):
            self.cells[i] = cell_type

    def get_neighbors(self, row: int, col: int) -> List[Coord]:
        """
        In-bounds orthogonal neighbours that are not walls, in the fixed
        order up, down, left, right.
        """
        neighbors = []
        for dr, dc in self.DIRECTIONS:
            nr, nc = row + dr, col + dc
            if self.is_valid(nr, nc) and self.cells[nr * self.size + nc] != CellType.WALL:
                neighbors.append((nr, nc))
        return neighbors

    def iter_cells(self) -> Iterator[Tuple[int, int, CellType]]:
        for idx, val in enumerate(self.cells):
            yield idx // self.size, idx % self.size, CellType(val)

    def reset(self):
        self.fill(CellType.EMPTY)
        self.visit_counts.clear()

    # Visit counts (display weighting only)

    def get_visit_count(self, row: int, col: int) -> int:
        return self.visit_counts.get((row, col), 0)

    def increment_visit_count(self, row: int, col: int):
        if self.is_valid(row, col):
            self.visit_counts[(row, col)] = self.visit_counts.get((row, col), 0) + 1

    def reset_visit_counts(self):
        self.visit_counts.clear()

    def get_visit_counts(self) -> List[List[int]]:
        counts = [[0] * self.size for _ in range(self.size)]
        for (row, col), count in self.visit_counts.items():
            counts[row][col] = count
        return counts

    # Copies / snapshots

    def clone(self) -> "Grid":
        other = Grid(self.size)
        other.cells = array('B', self.cells)
        other.visit_counts = dict(self.visit_counts)
        return other

    def to_rows(self) -> List[List[CellType]]:
        return [
            [CellType(v) for v in self.cells[r * self.size:(r + 1) * self.size]]
            for r in range(self.size)
        ]

    def to_numpy(self) -> np.ndarray:
        return np.frombuffer(self.cells.tobytes(), dtype=np.uint8).reshape(self.size, self.size).copy()

    def to_text(self) -> str:
        lines = []
        for row in self.to_rows():
            lines.append("".join(CELL_CHARS[cell] for cell in row))
        return "\n".join(lines)

    # Layout generation

    def generate_walls(self, wall_density: float = 0.3, rng: random.Random = None):
        rng = rng or random.Random()
        for i, val in enumerate(self.cells):
            if val == CellType.START or val == CellType.END:
                continue
            if rng.random() < wall_density:
                self.cells[i] = CellType.WALL

    def generate_open_grid(self):
        self.reset()

    def generate_random_start_end(self, rng: random.Random = None) -> Tuple[Coord, Coord]:
        """
        Picks Start and End inside two different corners. Currently empty
        interior cells are preferred; if a corner has none, any of its
        interior cells is used.
        """
        rng = rng or random.Random()

        start_idx = rng.randrange(len(CORNERS))
        start_corner = CORNERS[start_idx]
        end_corner = rng.choice([c for i, c in enumerate(CORNERS) if i != start_idx])

        def interior(corner):
            return [
                (r, c) for r, c in corner_cells(self.size, corner)
                if 0 < r < self.size - 1 and 0 < c < self.size - 1
            ]

        def pick(cells, exclude=None):
            cells = [cell for cell in cells if cell != exclude]
            empty = [(r, c) for r, c in cells if self.get_cell(r, c) == CellType.EMPTY]
            return rng.choice(empty or cells)

        start = pick(interior(start_corner))
        # Corner blocks overlap on very small grids
        end = pick(interior(end_corner), exclude=start)
        return start, end

    def is_solvable(self, start: Coord, end: Coord) -> bool:
        from gridpath.algo.repair import is_solvable
        return is_solvable(self, start, end)
