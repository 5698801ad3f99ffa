import random
from collections import deque
from typing import Dict, Optional

from gridpath.core.grid import Grid, CellType, Coord


def is_solvable(grid: Grid, start: Coord, end: Coord) -> bool:
    """True iff end is reachable from start through non-wall cells."""
    if not grid.is_valid(*start) or not grid.is_valid(*end):
        return False

    queue = deque([start])
    seen = {start}

    while queue:
        current = queue.popleft()
        if current == end:
            return True
        for neighbor in grid.get_neighbors(*current):
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append(neighbor)

    return False


def find_nearest_empty_cell(grid: Grid, row: int, col: int) -> Optional[Coord]:
    """
    BFS outward from (row, col). Walls are walked through (this is the only
    search where they are), anything else that is not Empty stops the ray.
    """
    queue = deque([(row, col)])
    seen = {(row, col)}

    while queue:
        cr, cc = queue.popleft()
        for dr, dc in Grid.DIRECTIONS:
            nr, nc = cr + dr, cc + dc
            if not grid.is_valid(nr, nc) or (nr, nc) in seen:
                continue
            seen.add((nr, nc))

            cell = grid.get_cell(nr, nc)
            if cell == CellType.EMPTY:
                return (nr, nc)
            if cell == CellType.WALL:
                queue.append((nr, nc))

    return None


def carve_path_between(grid: Grid, start: Coord, end: Coord):
    """Straight carve: close the row delta first, then the column delta."""
    row, col = start
    end_row, end_col = end

    while (row, col) != (end_row, end_col):
        grid.set_cell(row, col, CellType.EMPTY)
        if row < end_row: row += 1
        elif row > end_row: row -= 1
        elif col < end_col: col += 1
        elif col > end_col: col -= 1

    grid.set_cell(end_row, end_col, CellType.EMPTY)


def carve_guaranteed_path(grid: Grid, start: Coord, end: Coord, rng: random.Random = None):
    """
    Greedy random walk from start to end, carving every cell it touches.
    Connectivity guarantee only: the route is neither minimal nor loop-free.
    """
    rng = rng or random.Random()
    row, col = start
    end_row, end_col = end

    while (row, col) != (end_row, end_col):
        grid.set_cell(row, col, CellType.EMPTY)

        if rng.random() > 0.3:
            if row < end_row: row += 1
            elif row > end_row: row -= 1
            elif col < end_col: col += 1
            elif col > end_col: col -= 1
        else:
            dr, dc = rng.choice(Grid.DIRECTIONS)
            if grid.is_valid(row + dr, col + dc):
                row, col = row + dr, col + dc

    grid.set_cell(end_row, end_col, CellType.EMPTY)


def ensure_end_connected(grid: Grid, end: Coord):
    end_row, end_col = end

    for nr, nc in grid.get_neighbors(end_row, end_col):
        if grid.get_cell(nr, nc) == CellType.EMPTY:
            return

    grid.set_cell(end_row, end_col, CellType.EMPTY)
    nearest = find_nearest_empty_cell(grid, end_row, end_col)
    if nearest:
        carve_path_between(grid, end, nearest)


def is_in_protected_region(row: int, col: int, center: Optional[Coord]) -> bool:
    if center is None:
        return False
    return abs(row - center[0]) <= 1 and abs(col - center[1]) <= 1


def clear_protected_region(grid: Grid, center: Coord):
    """Opens walls in the 3x3 block around center. The outer border is kept."""
    size = grid.size
    for row in range(center[0] - 1, center[0] + 2):
        for col in range(center[1] - 1, center[1] + 2):
            if 0 < row < size - 1 and 0 < col < size - 1:
                if grid.get_cell(row, col) == CellType.WALL:
                    grid.set_cell(row, col, CellType.EMPTY)


def count_cells(grid: Grid, cell_type: CellType) -> int:
    return grid.cells.count(cell_type)


def calculate_stats(grid: Grid) -> Dict[str, float]:
    total = grid.size * grid.size
    stats = {cell_type.name.lower(): count_cells(grid, cell_type) for cell_type in CellType}
    stats["wall_density"] = stats["wall"] / total if total > 0 else 0
    return stats
