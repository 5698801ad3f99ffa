import logging
import random
from typing import Iterator, Optional, Set, Tuple

from gridpath.core.config import (
    DEFAULT_WALL_DENSITY, MODE_MULTIPLE_PATHS, MODE_OPEN_GRID, MODE_PERFECT_MAZE,
    validate_grid_size, validate_maze_mode,
)
from gridpath.core.events import EVT_INIT, EVT_MARK, EVT_REPAIR
from gridpath.core.grid import Grid, CellType, Coord
from gridpath.algo.backtracker import RecursiveBacktracker
from gridpath.algo.prim import PrimsAlgorithm
from gridpath.algo.wilson import WilsonsAlgorithm
from gridpath.algo.density import generate_solvable_maze
from gridpath.algo.repair import (
    carve_guaranteed_path, clear_protected_region, ensure_end_connected, is_solvable,
)

logger = logging.getLogger(__name__)

GENERATORS = {
    "recursive-backtracking": RecursiveBacktracker,
    "prims": PrimsAlgorithm,
    "wilsons": WilsonsAlgorithm,
}

GENERATOR_LABELS = {
    "recursive-backtracking": "Recursive Backtracking",
    "prims": "Prim's Algorithm",
    "wilsons": "Wilson's Algorithm",
}


def get_generator_class(algorithm: str):
    try:
        return GENERATORS[algorithm]
    except KeyError:
        raise ValueError(
            f"Unknown maze algorithm {algorithm!r}; expected one of {', '.join(GENERATORS)}"
        ) from None


def _clamp_start(size: int, start: Optional[Coord], rng: random.Random) -> Coord:
    """Moves a requested start onto the odd lattice, or picks a random lattice cell."""
    if start and 0 < start[0] < size - 1 and 0 < start[1] < size - 1:
        row, col = start
        if row % 2 == 0: row = max(1, row - 1)
        if col % 2 == 0: col = max(1, col - 1)
        return row, col

    odd = list(range(1, size - 1, 2))
    return rng.choice(odd), rng.choice(odd)


def _place_markers(grid: Grid, start: Optional[Coord], end: Optional[Coord]):
    if start:
        grid.set_cell(start[0], start[1], CellType.START)
    if end:
        grid.set_cell(end[0], end[1], CellType.END)


def perfect_maze_steps(grid: Grid, start: Optional[Coord] = None, end: Optional[Coord] = None,
                       algorithm: str = "recursive-backtracking",
                       rng: random.Random = None) -> Iterator[str]:
    """
    Stepwise perfect-maze pipeline: wall fill, border, carve, repair.
    Yields one event per observable mutation.
    """
    generator_cls = get_generator_class(algorithm)
    rng = rng or random.Random()
    size = grid.size

    grid.reset()
    grid.fill(CellType.WALL)
    yield EVT_INIT

    # Border is wall and never selectable by the generators
    visited: Set[Coord] = set()
    for i in range(size):
        visited.update(((i, 0), (i, size - 1), (0, i), (size - 1, i)))
    yield EVT_INIT

    seed_cell = _clamp_start(size, start, rng)
    generator = generator_cls(grid, visited, rng=rng, start=seed_cell)
    yield from generator.run()
    logger.debug("%s carved %d cells", generator_cls.__name__, generator.step_count)

    if start:
        clear_protected_region(grid, start)
        yield EVT_REPAIR
    if end:
        clear_protected_region(grid, end)
        yield EVT_REPAIR

    if start:
        grid.set_cell(start[0], start[1], CellType.START)
        yield EVT_MARK
    if end:
        grid.set_cell(end[0], end[1], CellType.END)
        ensure_end_connected(grid, end)
        _place_markers(grid, start, end)
        yield EVT_MARK

    if start and end and not is_solvable(grid, start, end):
        logger.debug("Maze unsolvable after repair, carving guaranteed path %s -> %s", start, end)
        carve_guaranteed_path(grid, start, end, rng)
        _place_markers(grid, start, end)
        yield EVT_REPAIR


def generate_perfect_maze(grid: Grid, start: Optional[Coord] = None, end: Optional[Coord] = None,
                          algorithm: str = "recursive-backtracking", rng: random.Random = None):
    """Batch form of perfect_maze_steps()."""
    for _ in perfect_maze_steps(grid, start, end, algorithm, rng):
        pass


def create_new_grid(size: int, maze_mode: str = MODE_MULTIPLE_PATHS,
                    maze_algorithm: str = "recursive-backtracking",
                    wall_density: float = DEFAULT_WALL_DENSITY,
                    rng: random.Random = None) -> Tuple[Grid, Coord, Coord]:
    validate_grid_size(size)
    validate_maze_mode(maze_mode)
    rng = rng or random.Random()

    grid = Grid(size)
    start, end = grid.generate_random_start_end(rng)

    if maze_mode == MODE_PERFECT_MAZE:
        generate_perfect_maze(grid, start, end, maze_algorithm, rng)
    elif maze_mode == MODE_OPEN_GRID:
        grid.generate_open_grid()
    else:
        generate_solvable_maze(grid, wall_density, True, start, end, rng)

    _place_markers(grid, start, end)
    logger.debug("Created %dx%d %s grid, start=%s end=%s", size, size, maze_mode, start, end)
    return grid, start, end
