from typing import Iterator, List, Tuple

from gridpath.core.grid import CellType
from gridpath.algo.base import MazeGenerator


class RecursiveBacktracker(MazeGenerator):
    def run(self) -> Iterator[str]:
        if self.start is None:
            cells = self.odd_cells()
            if not cells:
                return
            self.start = self.rng.choice(cells)

        start_row, start_col = self.start
        if not self.is_lattice_cell(start_row, start_col) or self.start in self.visited:
            return

        yield self.carve(start_row, start_col)

        # Stack of (row, col, remaining shuffled candidates). Popping a
        # candidate and pushing its frame replays the recursive carve order.
        stack: List[Tuple[int, int, list]] = [(start_row, start_col, self._candidates(start_row, start_col))]

        while stack:
            cr, cc, candidates = stack[-1]

            if not candidates:
                # Backtrack
                stack.pop()
                continue

            nr, nc = candidates.pop()
            if (nr, nc) in self.visited:
                continue

            # Carve the single wall between the two cells first
            event = self.carve_between((cr, cc), (nr, nc))
            if event:
                yield event

            yield self.carve(nr, nc)
            stack.append((nr, nc, self._candidates(nr, nc)))

    def _candidates(self, row: int, col: int) -> list:
        neighbors = [
            (nr, nc) for nr, nc in self.lattice_neighbors(row, col)
            if (nr, nc) not in self.visited and self.grid.get_cell(nr, nc) == CellType.WALL
        ]
        self.rng.shuffle(neighbors)
        return neighbors
