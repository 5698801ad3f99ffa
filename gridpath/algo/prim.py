from typing import Iterator, List, Set

from gridpath.core.grid import CellType, Coord
from gridpath.algo.base import MazeGenerator


class PrimsAlgorithm(MazeGenerator):
    def run(self) -> Iterator[str]:
        cells = self.odd_cells()
        if not cells:
            return

        # Prim's grows from a random lattice cell; self.start is ignored.
        start_row, start_col = self.rng.choice(cells)
        yield self.carve(start_row, start_col)

        # Frontier: unvisited lattice cells two steps from the maze.
        # The list gives O(1) random choice, the set O(1) membership.
        frontier_list: List[Coord] = []
        frontier_set: Set[Coord] = set()
        self._add_frontier(start_row, start_col, frontier_list, frontier_set)

        while frontier_list:
            # Pick random cell from frontier, swap remove for O(1)
            idx = self.rng.randrange(len(frontier_list))
            cx, cy = frontier_list[idx]
            frontier_list[idx] = frontier_list[-1]
            frontier_list.pop()
            frontier_set.discard((cx, cy))

            connected = [n for n in self.lattice_neighbors(cx, cy) if n in self.visited]
            if not connected:
                continue

            target = self.rng.choice(connected)

            yield self.carve(cx, cy)

            event = self.carve_between((cx, cy), target)
            if event:
                yield event

            self._add_frontier(cx, cy, frontier_list, frontier_set)

    def _add_frontier(self, row: int, col: int, frontier_list: List[Coord], frontier_set: Set[Coord]):
        for nx, ny in self.lattice_neighbors(row, col):
            if (nx, ny) in self.visited or (nx, ny) in frontier_set:
                continue
            if self.grid.get_cell(nx, ny) != CellType.WALL:
                continue
            frontier_set.add((nx, ny))
            frontier_list.append((nx, ny))
