from typing import Dict, Iterator, List, Set

from gridpath.core.grid import CellType, Coord
from gridpath.algo.base import MazeGenerator


class WilsonsAlgorithm(MazeGenerator):
    """
    Loop-erased random walks. Produces a uniform spanning tree over the
    odd-cell lattice, unlike the DFS and Prim's biases.
    """
    def run(self) -> Iterator[str]:
        cells = self.odd_cells()
        if not cells:
            return

        # Kept as a list as well so random choice stays reproducible under a seed
        unvisited_list: List[Coord] = list(cells)
        unvisited: Set[Coord] = set(cells)

        first = self.rng.choice(unvisited_list)
        yield self.carve(*first)
        self._remove(first, unvisited, unvisited_list)

        while unvisited_list:
            walk_start = self.rng.choice(unvisited_list)

            path = [walk_start]
            # Cell -> index in path, for O(1) loop erasure lookups
            position: Dict[Coord, int] = {walk_start: 0}
            current = walk_start

            while current in unvisited:
                neighbors = self.lattice_neighbors(*current)
                if not neighbors:
                    break

                nxt = self.rng.choice(neighbors)
                if nxt in position:
                    # Erase the loop back to the first visit of nxt
                    loop_start = position[nxt]
                    for cell in path[loop_start + 1:]:
                        del position[cell]
                    del path[loop_start + 1:]
                else:
                    position[nxt] = len(path)
                    path.append(nxt)

                current = nxt
                if self.grid.get_cell(*current) == CellType.EMPTY:
                    break

            # Carve the walk into the maze
            for i, cell in enumerate(path):
                # The final cell of a walk is already part of the maze
                if self.grid.get_cell(*cell) != CellType.EMPTY:
                    yield self.carve(*cell)
                self._remove(cell, unvisited, unvisited_list)

                if i < len(path) - 1:
                    event = self.carve_between(cell, path[i + 1])
                    if event:
                        yield event

    @staticmethod
    def _remove(cell: Coord, unvisited: Set[Coord], unvisited_list: List[Coord]):
        if cell in unvisited:
            unvisited.remove(cell)
            unvisited_list.remove(cell)
