import unittest
import asyncio
import random
import sys
import os
from unittest import mock

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gridpath.core.grid import Grid, CellType
from gridpath.core.config import DriverConfig, MODE_PERFECT_MAZE
from gridpath.core.driver import (
    AlgorithmRun, RunControl, RunState, generate_maze, run_comparison, run_maze_comparison,
    run_single_algorithm,
)
from gridpath.algo import solvers
from gridpath.algo.mazes import GENERATOR_LABELS, create_new_grid
from gridpath.algo.solvers import SEARCH_ALGORITHMS

FAST = DriverConfig(step_delay=0, pause_poll_interval=0)


def open_grid(size=8):
    grid = Grid(size)
    start, end = (1, 1), (size - 2, size - 2)
    grid.set_cell(*start, CellType.START)
    grid.set_cell(*end, CellType.END)
    return grid, start, end


class TestSingleRun(unittest.IsolatedAsyncioTestCase):
    async def test_completes(self):
        grid, start, end = open_grid()
        before = grid.cells.tobytes()
        steps, updates = [], []

        run = await run_single_algorithm(
            grid, start, end, "BFS", config=FAST,
            on_step=lambda name, n: steps.append(n),
            on_update=lambda name, g, n: updates.append(n))

        self.assertIs(run.state, RunState.COMPLETED)
        self.assertTrue(run.solved)
        self.assertEqual(len(run.path), 11)  # Manhattan 10 + 1
        self.assertEqual(run.path_length, 11)
        self.assertIsNotNone(run.completed_at)

        self.assertEqual(steps, list(range(1, run.step_count + 1)))
        # One snapshot per step plus the final one
        self.assertEqual(len(updates), run.step_count + 1)

        # The caller's grid is never painted
        self.assertEqual(grid.cells.tobytes(), before)

    async def test_snapshots_are_independent(self):
        grid, start, end = open_grid(6)
        snapshots = []
        run = await run_single_algorithm(grid, start, end, "A*", config=FAST,
                                         on_update=lambda name, g, n: snapshots.append(g))
        self.assertIsNot(snapshots[-1], run.grid)
        visited = [s.cells.count(CellType.VISITED) + s.cells.count(CellType.PATH) for s in snapshots]
        self.assertEqual(visited, sorted(visited))

    async def test_no_path(self):
        grid, start, end = open_grid()
        for c in range(8):
            grid.set_cell(4, c, CellType.WALL)
        run = await run_single_algorithm(grid, start, end, "DFS", config=FAST)
        self.assertIs(run.state, RunState.COMPLETED)
        self.assertFalse(run.solved)
        self.assertIsNone(run.path)

    async def test_dead_end_filling_solved_from_grid(self):
        grid, start, end = create_new_grid(15, MODE_PERFECT_MAZE, rng=random.Random(1))
        run = await run_single_algorithm(grid, start, end, "Dead-End Filling", config=FAST)
        self.assertIs(run.state, RunState.COMPLETED)
        self.assertIsNone(run.path)
        self.assertTrue(run.solved)
        self.assertEqual(run.path_length, run.grid.cells.count(CellType.PATH))

    async def test_cancel(self):
        grid, start, end = open_grid()
        control = RunControl()

        def on_step(name, n):
            if n == 3:
                control.cancel()

        run = await run_single_algorithm(grid, start, end, "BFS", control, FAST, on_step=on_step)
        self.assertIs(run.state, RunState.CANCELLED)
        self.assertEqual(run.step_count, 3)
        self.assertIsNone(run.path)
        self.assertFalse(run.solved)
        self.assertTrue(run.process.is_done())

    async def test_pause_and_resume(self):
        grid, start, end = open_grid()
        control = RunControl()
        run = AlgorithmRun("BFS", grid.clone(), start, end)
        observed = []

        def resume():
            observed.append(run.state)
            control.resume()

        def on_step(name, n):
            if n == 2:
                control.pause()
                asyncio.get_running_loop().call_later(0.02, resume)

        await run.run(control, FAST, on_step=on_step)
        self.assertEqual(observed, [RunState.PAUSED])
        self.assertIs(run.state, RunState.COMPLETED)
        self.assertTrue(run.solved)

    async def test_cancel_while_paused(self):
        grid, start, end = open_grid()
        control = RunControl()

        def on_step(name, n):
            if n == 1:
                control.pause()
                asyncio.get_running_loop().call_later(0.02, control.cancel)

        run = await run_single_algorithm(grid, start, end, "Dijkstra", control, FAST, on_step=on_step)
        self.assertIs(run.state, RunState.CANCELLED)
        self.assertEqual(run.step_count, 1)

    async def test_run_once(self):
        grid, start, end = open_grid()
        run = AlgorithmRun("BFS", grid.clone(), start, end)
        await run.run(RunControl(), FAST)
        with self.assertRaises(RuntimeError):
            await run.run(RunControl(), FAST)

    async def test_unknown_algorithm(self):
        grid, start, end = open_grid()
        with self.assertRaises(ValueError):
            await run_single_algorithm(grid, start, end, "Greedy", config=FAST)


class TestComparison(unittest.IsolatedAsyncioTestCase):
    async def test_all_algorithms(self):
        grid, start, end = create_new_grid(15, MODE_PERFECT_MAZE, rng=random.Random(4))
        completed = []

        result = await run_comparison(grid, start, end, config=FAST,
                                      on_complete=lambda run, res: completed.append(run.name))

        self.assertEqual(sorted(result.completion_order), sorted(SEARCH_ALGORITHMS))
        self.assertEqual(completed, result.completion_order)
        self.assertTrue(all(result.solved.values()))

        # Earliest valid completion wins
        self.assertEqual(result.winner, result.completion_order[0])

        grids = [run.grid for run in result.runs.values()]
        self.assertEqual(len({id(g) for g in grids}), len(grids))
        self.assertEqual(grid.cells.count(CellType.VISITED), 0)

        lengths = {name: len(result.paths[name]) for name in ("BFS", "Dijkstra", "A*", "Flood-Fill")}
        self.assertEqual(len(set(lengths.values())), 1)

    async def test_steps_reported(self):
        grid, start, end = open_grid()
        for c in range(8):
            grid.set_cell(4, c, CellType.WALL)
        grid.set_cell(4, 1, CellType.EMPTY)

        result = await run_comparison(grid, start, end, ["BFS", "A*"], config=FAST)
        self.assertIn(result.winner, ("BFS", "A*"))
        self.assertEqual(result.steps["BFS"], result.runs["BFS"].step_count)

    async def test_no_winner_when_unsolvable(self):
        grid, start, end = open_grid()
        for c in range(8):
            grid.set_cell(4, c, CellType.WALL)
        result = await run_comparison(grid, start, end, ["BFS", "DFS", "A*"], config=FAST)
        self.assertIsNone(result.winner)
        self.assertEqual(len(result.completion_order), 3)

    async def test_failure_isolated(self):
        def broken(self, start, end):
            yield "visit"
            raise RuntimeError("boom")

        grid, start, end = open_grid()
        with mock.patch.object(solvers.DFS, "run", broken):
            with self.assertLogs("gridpath.core.driver", level="ERROR"):
                result = await run_comparison(grid, start, end, ["BFS", "DFS", "A*"], config=FAST)

        self.assertIs(result.runs["DFS"].state, RunState.FAILED)
        self.assertNotIn("DFS", result.completion_order)
        self.assertIs(result.runs["BFS"].state, RunState.COMPLETED)
        self.assertIs(result.runs["A*"].state, RunState.COMPLETED)
        self.assertIn(result.winner, ("BFS", "A*"))

    async def test_shared_cancel(self):
        grid, start, end = open_grid(12)
        control = RunControl()

        def on_step(name, n):
            if n == 5:
                control.cancel()

        result = await run_comparison(grid, start, end, ["BFS", "Dijkstra", "Flood-Fill"],
                                      control, FAST, on_step=on_step)
        for run in result.runs.values():
            self.assertIs(run.state, RunState.CANCELLED)
        self.assertIsNone(result.winner)
        self.assertEqual(result.completion_order, [])

    async def test_invalid_selection(self):
        grid, start, end = open_grid()
        with self.assertRaises(ValueError):
            await run_comparison(grid, start, end, ["BFS", "BFS"], config=FAST)
        with self.assertRaises(ValueError):
            await run_comparison(grid, start, end, [], config=FAST)
        with self.assertRaises(ValueError):
            await run_comparison(grid, start, end, list(SEARCH_ALGORITHMS) + ["BFS"], config=FAST)


class TestMazeDriver(unittest.IsolatedAsyncioTestCase):
    async def test_generate_maze(self):
        updates = []
        grid, start, end = await generate_maze(15, "wilsons", config=FAST, rng=random.Random(6),
                                               on_update=lambda name, g, n: updates.append(n))
        self.assertTrue(grid.is_solvable(start, end))
        self.assertEqual(grid.get_cell(*start), CellType.START)
        self.assertEqual(grid.get_cell(*end), CellType.END)
        self.assertEqual(updates, list(range(1, len(updates) + 1)))

    async def test_generate_maze_update_every(self):
        updates = []
        await generate_maze(15, "prims", config=FAST, update_every=3, rng=random.Random(6),
                            on_update=lambda name, g, n: updates.append(n))
        self.assertTrue(updates)
        self.assertTrue(all(n % 3 == 0 for n in updates))

    async def test_generate_maze_cancelled(self):
        control = RunControl()
        control.cancel()
        completed = []
        grid, start, end = await generate_maze(15, control=control, config=FAST, rng=random.Random(6),
                                               on_complete=lambda g, s, e: completed.append((s, e)))
        self.assertEqual(completed, [(start, end)])
        self.assertEqual(grid.get_cell(*start), CellType.START)

    async def test_generate_maze_invalid(self):
        with self.assertRaises(ValueError):
            await generate_maze(3, config=FAST)
        with self.assertRaises(ValueError):
            await generate_maze(10, "kruskal", config=FAST)

    async def test_maze_comparison(self):
        seen = set()
        done = []
        grids, start, end = await run_maze_comparison(
            15, config=FAST, rng=random.Random(11),
            on_update=lambda name, g, n: seen.add(name),
            on_complete=lambda s, e: done.append((s, e)))

        self.assertEqual(set(grids), set(GENERATOR_LABELS.values()))
        self.assertEqual(seen, set(GENERATOR_LABELS.values()))
        self.assertEqual(done, [(start, end)])
        for label, grid in grids.items():
            self.assertEqual(grid.get_cell(*start), CellType.START, label)
            self.assertEqual(grid.get_cell(*end), CellType.END, label)
            self.assertTrue(grid.is_solvable(start, end), label)

    async def test_maze_comparison_reproducible(self):
        first, s1, e1 = await run_maze_comparison(13, config=FAST, rng=random.Random(99))
        second, s2, e2 = await run_maze_comparison(13, config=FAST, rng=random.Random(99))
        self.assertEqual((s1, e1), (s2, e2))
        for label in first:
            self.assertEqual(first[label].cells.tobytes(), second[label].cells.tobytes(), label)


class TestDriverConfig(unittest.TestCase):
    def test_defaults(self):
        config = DriverConfig()
        self.assertEqual(config.step_delay, 0.03)
        self.assertEqual(config.pause_poll_interval, 0.1)
        self.assertEqual(config.maze_update_every, 3)

    def test_invalid(self):
        with self.assertRaises(ValueError):
            DriverConfig(step_delay=-1)
        with self.assertRaises(ValueError):
            DriverConfig(maze_update_every=0)

    def test_control(self):
        control = RunControl()
        control.toggle_pause()
        self.assertTrue(control.paused)
        control.toggle_pause()
        self.assertFalse(control.paused)
        control.cancel()
        control.reset()
        self.assertFalse(control.cancelled)


if __name__ == '__main__':
    unittest.main()
