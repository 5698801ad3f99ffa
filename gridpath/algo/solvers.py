import heapq
import itertools
from abc import ABC, abstractmethod
from collections import deque
from typing import Dict, Generator, List, Optional, Set, Tuple

from gridpath.core.grid import Grid, CellType, Coord
from gridpath.core.events import EVT_FILL, EVT_PATH_ADD, EVT_VISIT
from gridpath.algo.base import StepProcess

Path = List[Coord]
SolverSteps = Generator[str, None, Optional[Path]]


class Solver(ABC):
    # False when the answer is written into the grid rather than returned
    returns_path = True

    def __init__(self, grid: Grid):
        self.grid = grid
        self.path: Optional[Path] = None
        self.visited_count = 0

    @abstractmethod
    def run(self, start: Coord, end: Coord) -> SolverSteps:
        """
        Yields one event after each grid mutation. The generator's return
        value (also stored on self.path) is the start->end path or None.
        """
        pass

    def process(self, start: Coord, end: Coord) -> StepProcess:
        return StepProcess(self.run(start, end), grid_encoded=not self.returns_path)

    def solve(self, start: Coord, end: Coord) -> Optional[Path]:
        """Batch form: runs to completion and returns the result."""
        for _ in self.run(start, end):
            pass
        return self.path

    def is_marker(self, row: int, col: int) -> bool:
        cell = self.grid.get_cell(row, col)
        return cell == CellType.START or cell == CellType.END

    def mark_visited(self, row: int, col: int) -> bool:
        """Marks an expanded cell. Returns True if the grid changed."""
        self.visited_count += 1
        if self.is_marker(row, col):
            return False
        self.grid.set_cell(row, col, CellType.VISITED)
        return True

    def mark_path(self, path: Path) -> SolverSteps:
        # Start and end keep their markers
        for row, col in path[1:-1]:
            if not self.is_marker(row, col):
                self.grid.set_cell(row, col, CellType.PATH)
                yield EVT_PATH_ADD


class BFS(Solver):
    def run(self, start: Coord, end: Coord) -> SolverSteps:
        # Queue of partial paths
        queue = deque([[start]])
        seen: Set[Coord] = {start}

        while queue:
            path = queue.popleft()
            row, col = path[-1]

            if self.mark_visited(row, col):
                yield EVT_VISIT

            if (row, col) == end:
                yield from self.mark_path(path)
                self.path = path
                return path

            for neighbor in self.grid.get_neighbors(row, col):
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(path + [neighbor])

        return None


class DFS(Solver):
    """
    Depth-first search with a global visited set. Every pop bumps the
    cell's visit count so the viewer can shade backtracking.
    """
    def run(self, start: Coord, end: Coord) -> SolverSteps:
        stack = [[start]]
        seen: Set[Coord] = {start}

        while stack:
            path = stack.pop()
            row, col = path[-1]

            self.grid.increment_visit_count(row, col)

            if self.mark_visited(row, col):
                yield EVT_VISIT

            if (row, col) == end:
                yield from self.mark_path(path)
                self.path = path
                return path

            # Reverse push so the first neighbour (up) is explored first
            for neighbor in reversed(self.grid.get_neighbors(row, col)):
                if neighbor not in seen:
                    seen.add(neighbor)
                    stack.append(path + [neighbor])

        return None


class AStar(Solver):
    def heuristic(self, a: Coord, b: Coord) -> int:
        return abs(a[0] - b[0]) + abs(a[1] - b[1])

    def run(self, start: Coord, end: Coord) -> SolverSteps:
        # Priority Queue: (f_score, insertion order, g_score, path).
        # The counter keeps equal priorities in FIFO order.
        counter = itertools.count()
        open_set: List[Tuple[int, int, int, Path]] = []
        heapq.heappush(open_set, (self.heuristic(start, end), next(counter), 0, [start]))

        g_score: Dict[Coord, int] = {start: 0}
        closed: Set[Coord] = set()

        while open_set:
            _, _, g_current, path = heapq.heappop(open_set)
            current = path[-1]

            # Stale entry: a cheaper route to this cell was queued later
            if current in closed or g_current > g_score.get(current, g_current):
                continue
            closed.add(current)

            if self.mark_visited(*current):
                yield EVT_VISIT

            if current == end:
                yield from self.mark_path(path)
                self.path = path
                return path

            for neighbor in self.grid.get_neighbors(*current):
                new_g = g_current + 1
                old_g = g_score.get(neighbor)
                if old_g is None or new_g < old_g:
                    g_score[neighbor] = new_g
                    priority = new_g + self.heuristic(neighbor, end)
                    heapq.heappush(open_set, (priority, next(counter), new_g, path + [neighbor]))

        return None


class Dijkstra(AStar):
    """ Unweighted Dijkstra is A* with h(n) = 0; it expands like BFS. """
    def heuristic(self, a: Coord, b: Coord) -> int:
        return 0


class FloodFill(Solver):
    """
    BFS that keeps going after reaching the end so the whole reachable
    region is painted, then marks the first path that reached the end.
    """
    def run(self, start: Coord, end: Coord) -> SolverSteps:
        queue = deque([[start]])
        seen: Set[Coord] = {start}
        found: Optional[Path] = None

        while queue:
            path = queue.popleft()
            row, col = path[-1]

            if self.mark_visited(row, col):
                yield EVT_VISIT

            if (row, col) == end and found is None:
                found = path

            for neighbor in self.grid.get_neighbors(row, col):
                if neighbor not in seen:
                    seen.add(neighbor)
                    queue.append(path + [neighbor])

        if found is None:
            return None

        yield from self.mark_path(found)
        self.path = found
        return found


class DeadEndFiller(Solver):
    """
    Repeatedly fills every open cell with exactly one open neighbour until
    a full scan finds none; whatever Empty is left becomes the solution.
    The result is read from the grid: run() always returns None.
    """
    returns_path = False

    def run(self, start: Coord, end: Coord) -> SolverSteps:
        size = self.grid.size
        changed = True

        while changed:
            changed = False
            dead_ends = []

            for row, col, cell in self.grid.iter_cells():
                if cell in (CellType.WALL, CellType.FILLED_DEAD_END, CellType.START, CellType.END):
                    continue
                if self._open_neighbor_count(row, col) == 1:
                    dead_ends.append((row, col))

            # Fill the whole pass found in this scan
            for row, col in dead_ends:
                self.grid.set_cell(row, col, CellType.FILLED_DEAD_END)
                self.visited_count += 1
                changed = True
                yield EVT_FILL

        for idx in range(size * size):
            if self.grid.cells[idx] == CellType.EMPTY:
                self.grid.cells[idx] = CellType.PATH
                yield EVT_PATH_ADD

        return None

    def _open_neighbor_count(self, row: int, col: int) -> int:
        return sum(
            1 for r, c in self.grid.get_neighbors(row, col)
            if self.grid.get_cell(r, c) != CellType.FILLED_DEAD_END
        )


SOLVERS = {
    "BFS": BFS,
    "DFS": DFS,
    "Dijkstra": Dijkstra,
    "A*": AStar,
    "Flood-Fill": FloodFill,
    "Dead-End Filling": DeadEndFiller,
}

SEARCH_ALGORITHMS = tuple(SOLVERS)


def get_solver(name: str, grid: Grid) -> Solver:
    try:
        return SOLVERS[name](grid)
    except KeyError:
        raise ValueError(
            f"Unknown search algorithm {name!r}; expected one of {', '.join(SOLVERS)}"
        ) from None
