import logging
import math
import random
from typing import List, Optional, Set

from gridpath.core.grid import Grid, CellType, Coord
from gridpath.algo.repair import (
    carve_guaranteed_path, count_cells, ensure_end_connected, is_in_protected_region, is_solvable,
)

logger = logging.getLogger(__name__)

MIN_DENSITY = 0.1
MAX_DENSITY = 0.9
EXTRA_PATH_PROBABILITY = 0.05


def generate_solvable_maze(grid: Grid, wall_density: float = 0.5, allow_multiple_paths: bool = True,
                           start: Optional[Coord] = None, end: Optional[Coord] = None,
                           rng: random.Random = None):
    """
    Builds a solvable maze with roughly `wall_density` walls.

    wall_density: clamped to [0.1, 0.9]. Higher = more walls, harder maze.
    allow_multiple_paths: reopen a few walls afterwards to create loops.
    start / end: kept connected, and their 3x3 regions never receive walls.
    """
    rng = rng or random.Random()
    density = max(MIN_DENSITY, min(MAX_DENSITY, wall_density))
    size = grid.size

    grid.reset()
    grid.fill(CellType.WALL)

    if start:
        grid.set_cell(start[0], start[1], CellType.EMPTY)
    if end:
        grid.set_cell(end[0], end[1], CellType.EMPTY)

    if start:
        seed_cell = start
    else:
        # Seed near a corner
        def near_edge():
            if rng.random() > 0.5:
                return rng.randrange(3)
            return max(0, size - 3) + rng.randrange(3)
        seed_cell = (min(near_edge(), size - 1), min(near_edge(), size - 1))

    _carve_depth_first(grid, seed_cell, rng)

    if end:
        ensure_end_connected(grid, end)

    target_walls = math.floor(size * size * density)
    walls_to_add = max(0, target_walls - count_cells(grid, CellType.WALL))
    added = _add_walls_to_reach_density(grid, walls_to_add, density, start, end, rng)
    logger.debug("Density %.2f: added %d/%d walls", density, added, walls_to_add)

    _repair(grid, start, end, rng)

    if allow_multiple_paths:
        _add_extra_paths(grid, rng)

    _repair(grid, start, end, rng)


def _repair(grid: Grid, start: Optional[Coord], end: Optional[Coord], rng: random.Random):
    if start and end and not is_solvable(grid, start, end):
        logger.debug("Density maze unsolvable, carving guaranteed path")
        carve_guaranteed_path(grid, start, end, rng)


def _carve_depth_first(grid: Grid, seed_cell: Coord, rng: random.Random):
    """
    Depth-first carve over unit steps, descending into every unvisited wall
    neighbour in shuffled order. Iterative so large grids stay within the
    recursion limit.
    """
    if not grid.is_valid(*seed_cell):
        return

    visited: Set[Coord] = {seed_cell}
    grid.set_cell(seed_cell[0], seed_cell[1], CellType.EMPTY)
    stack = [_shuffled_wall_neighbors(grid, seed_cell, visited, rng)]

    while stack:
        candidates = stack[-1]
        if not candidates:
            stack.pop()
            continue
        cell = candidates.pop()
        if cell in visited:
            continue
        visited.add(cell)
        grid.set_cell(cell[0], cell[1], CellType.EMPTY)
        stack.append(_shuffled_wall_neighbors(grid, cell, visited, rng))


def _shuffled_wall_neighbors(grid: Grid, cell: Coord, visited: Set[Coord], rng: random.Random) -> List[Coord]:
    neighbors = []
    for dr, dc in Grid.DIRECTIONS:
        nr, nc = cell[0] + dr, cell[1] + dc
        if grid.is_valid(nr, nc) and (nr, nc) not in visited and grid.get_cell(nr, nc) == CellType.WALL:
            neighbors.append((nr, nc))
    rng.shuffle(neighbors)
    return neighbors


def _empty_neighbor_count(grid: Grid, row: int, col: int) -> int:
    count = 0
    for dr, dc in Grid.DIRECTIONS:
        if grid.get_cell(row + dr, col + dc) == CellType.EMPTY:
            count += 1
    return count


def _add_walls_to_reach_density(grid: Grid, walls_to_add: int, density: float,
                                start: Optional[Coord], end: Optional[Coord],
                                rng: random.Random) -> int:
    size = grid.size
    max_attempts = walls_to_add * 10
    added = 0
    attempts = 0

    # Every empty cell, edges included, outside the protected 3x3 regions
    candidates = [
        (row, col) for row, col, cell in grid.iter_cells()
        if cell == CellType.EMPTY
        and not is_in_protected_region(row, col, start)
        and not is_in_protected_region(row, col, end)
    ]
    rng.shuffle(candidates)

    dense = density > 0.6
    min_empty = math.floor(size * size * (1 - density) * 0.8)

    for row, col in candidates:
        if added >= walls_to_add or attempts >= max_attempts:
            break

        # Edge cells have fewer neighbours, so they get a lower bar
        is_edge = row == 0 or row == size - 1 or col == 0 or col == size - 1
        if is_edge:
            threshold = 1 if dense else 2
            probability = 0.9 if dense else 0.7
        else:
            threshold = 2 if dense else 3
            probability = 0.8 if dense else 0.5

        if _empty_neighbor_count(grid, row, col) >= threshold and rng.random() < probability:
            grid.set_cell(row, col, CellType.WALL)

            if start and end:
                keep = is_solvable(grid, start, end)
            else:
                keep = count_cells(grid, CellType.EMPTY) >= min_empty

            if keep:
                added += 1
            else:
                grid.set_cell(row, col, CellType.EMPTY)

        attempts += 1

    return added


def _add_extra_paths(grid: Grid, rng: random.Random):
    """Reopens ~5% of interior walls that touch an empty cell."""
    size = grid.size
    for row in range(1, size - 1):
        for col in range(1, size - 1):
            if grid.get_cell(row, col) != CellType.WALL:
                continue
            if _empty_neighbor_count(grid, row, col) > 0 and rng.random() < EXTRA_PATH_PROBABILITY:
                grid.set_cell(row, col, CellType.EMPTY)
