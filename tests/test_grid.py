import unittest
import random
import sys
import os

# Add project root to path so we can import gridpath
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gridpath.core.grid import Grid, CellType, CORNERS, corner_cells


def corners_containing(size, cell):
    return [c for c in CORNERS if cell in corner_cells(size, c)]


class TestGrid(unittest.TestCase):
    def test_initialization(self):
        grid = Grid(10)
        self.assertEqual(len(grid.cells), 100, f"Grid initialization size mismatch. Expected 100, got {len(grid.cells)}")
        for val in grid.cells:
            self.assertEqual(val, CellType.EMPTY)
        self.assertEqual(grid.visit_counts, {})

    def test_bounds(self):
        grid = Grid(5)
        self.assertTrue(grid.is_valid(4, 4))
        self.assertFalse(grid.is_valid(-1, 0))
        self.assertFalse(grid.is_valid(0, 5))

        self.assertIsNone(grid.get_cell(-1, 0))
        self.assertIsNone(grid.get_cell(5, 5))

        # Out of bounds writes are ignored
        grid.set_cell(5, 0, CellType.WALL)
        grid.set_cell(0, -1, CellType.WALL)
        self.assertEqual(grid.cells.count(CellType.WALL), 0)

    def test_set_get(self):
        grid = Grid(5)
        grid.set_cell(2, 3, CellType.WALL)
        self.assertEqual(grid.get_cell(2, 3), CellType.WALL)
        self.assertEqual(grid.cells[2 * 5 + 3], CellType.WALL)

    def test_neighbors(self):
        grid = Grid(3)
        # Order is up, down, left, right
        self.assertEqual(grid.get_neighbors(1, 1), [(0, 1), (2, 1), (1, 0), (1, 2)])

        # Corner cell (0,0) has 2 neighbours
        self.assertEqual(grid.get_neighbors(0, 0), [(1, 0), (0, 1)])

        # Walls are never neighbours; other cell types are
        grid.set_cell(0, 1, CellType.WALL)
        grid.set_cell(1, 0, CellType.VISITED)
        grid.set_cell(1, 2, CellType.END)
        self.assertEqual(grid.get_neighbors(1, 1), [(2, 1), (1, 0), (1, 2)])

    def test_clone_isolation(self):
        grid = Grid(6)
        grid.set_cell(1, 1, CellType.WALL)
        grid.increment_visit_count(2, 2)

        clone = grid.clone()
        self.assertEqual(clone.cells.tobytes(), grid.cells.tobytes())
        self.assertEqual(clone.get_visit_count(2, 2), 1)

        clone.set_cell(1, 1, CellType.EMPTY)
        clone.set_cell(3, 3, CellType.PATH)
        clone.increment_visit_count(2, 2)
        clone.increment_visit_count(4, 4)

        self.assertEqual(grid.get_cell(1, 1), CellType.WALL)
        self.assertEqual(grid.get_cell(3, 3), CellType.EMPTY)
        self.assertEqual(grid.get_visit_count(2, 2), 1)
        self.assertEqual(grid.get_visit_count(4, 4), 0)

    def test_reset(self):
        grid = Grid(5)
        grid.fill(CellType.WALL)
        grid.increment_visit_count(0, 0)
        grid.reset()
        self.assertEqual(grid.cells.count(CellType.EMPTY), 25)
        self.assertEqual(grid.get_visit_count(0, 0), 0)

    def test_visit_counts(self):
        grid = Grid(4)
        grid.increment_visit_count(1, 2)
        grid.increment_visit_count(1, 2)
        grid.increment_visit_count(9, 9)  # ignored
        counts = grid.get_visit_counts()
        self.assertEqual(counts[1][2], 2)
        self.assertEqual(sum(map(sum, counts)), 2)

        grid.reset_visit_counts()
        self.assertEqual(grid.get_visit_count(1, 2), 0)

    def test_random_start_end(self):
        for seed in range(100):
            grid = Grid(10)
            start, end = grid.generate_random_start_end(random.Random(seed))

            self.assertNotEqual(start, end)
            for r, c in (start, end):
                self.assertTrue(0 < r < 9 and 0 < c < 9, f"{(r, c)} is on the border (seed {seed})")

            start_corners = corners_containing(10, start)
            end_corners = corners_containing(10, end)
            self.assertEqual(len(start_corners), 1)
            self.assertEqual(len(end_corners), 1)
            self.assertNotEqual(start_corners, end_corners)

    def test_random_start_end_small_grid(self):
        # Corner blocks overlap on a 5x5 grid
        for seed in range(100):
            start, end = Grid(5).generate_random_start_end(random.Random(seed))
            self.assertNotEqual(start, end)

    def test_random_start_end_prefers_empty(self):
        grid = Grid(10)
        grid.fill(CellType.WALL)
        grid.set_cell(1, 1, CellType.EMPTY)
        grid.set_cell(1, 8, CellType.EMPTY)
        grid.set_cell(8, 1, CellType.EMPTY)
        grid.set_cell(8, 8, CellType.EMPTY)
        for seed in range(20):
            start, end = grid.generate_random_start_end(random.Random(seed))
            self.assertIn(start, [(1, 1), (1, 8), (8, 1), (8, 8)])
            self.assertIn(end, [(1, 1), (1, 8), (8, 1), (8, 8)])

    def test_generate_walls(self):
        grid = Grid(20)
        grid.set_cell(0, 0, CellType.START)
        grid.set_cell(19, 19, CellType.END)
        grid.generate_walls(1.0, random.Random(1))
        self.assertEqual(grid.get_cell(0, 0), CellType.START)
        self.assertEqual(grid.get_cell(19, 19), CellType.END)
        self.assertEqual(grid.cells.count(CellType.WALL), 398)

        grid.generate_open_grid()
        self.assertEqual(grid.cells.count(CellType.EMPTY), 400)

    def test_exports(self):
        grid = Grid(3)
        grid.set_cell(0, 0, CellType.START)
        grid.set_cell(1, 1, CellType.WALL)
        grid.set_cell(2, 2, CellType.END)

        self.assertEqual(grid.to_text(), "S  \n # \n  E")

        arr = grid.to_numpy()
        self.assertEqual(arr.shape, (3, 3))
        self.assertEqual(arr[1, 1], CellType.WALL)
        self.assertEqual(grid.to_rows()[2][2], CellType.END)

    def test_memory_sanity(self):
        # One byte per cell
        grid = Grid(50)
        size_bytes = grid.cells.buffer_info()[1] * grid.cells.itemsize
        self.assertEqual(size_bytes, 2500)


if __name__ == '__main__':
    unittest.main()
