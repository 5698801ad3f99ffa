import sys
import os
import time
import random
import argparse

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gridpath.core.config import MAZE_MODES, MODE_PERFECT_MAZE
from gridpath.core.grid import CellType
from gridpath.algo.mazes import GENERATORS, create_new_grid
from gridpath.algo.repair import count_cells
from gridpath.algo.solvers import SEARCH_ALGORITHMS, get_solver

# ==========================================
# GLOBAL CONFIGURATION
# Add or remove solver names here to include/exclude them from the race.
# ==========================================
ENABLED_SOLVERS = list(SEARCH_ALGORITHMS)


def run_benchmark():
    parser = argparse.ArgumentParser(description="Solver Benchmark")
    parser.add_argument("--size", type=int, default=50, help="Grid size (5-50)")
    parser.add_argument("--mode", type=str, default=MODE_PERFECT_MAZE, choices=MAZE_MODES, help="Maze mode")
    parser.add_argument("--maze-algo", type=str, default="recursive-backtracking", choices=list(GENERATORS))
    parser.add_argument("--density", type=float, default=0.3, help="Wall density (multiple-paths mode)")
    parser.add_argument("--repeat", type=int, default=20, help="Runs per solver")
    parser.add_argument("--seed", type=int, default=None, help="Random Seed")
    args = parser.parse_args()

    print(f"=== GRID SOLVER BENCHMARK ===")
    print(f"Size: {args.size}x{args.size} | Mode: {args.mode} | Repeat: {args.repeat}")
    print(f"Solvers: {', '.join(ENABLED_SOLVERS)}")
    print("-" * 50)

    # 1. Generate Grid
    t0 = time.time()
    grid, start, end = create_new_grid(args.size, args.mode, args.maze_algo, args.density, random.Random(args.seed))
    print(f"Generation Complete in {time.time() - t0:.4f}s. Start {start} -> End {end}")
    print("-" * 50)

    # 2. Race Loop
    results = []

    for name in ENABLED_SOLVERS:
        print(f"Running {name}...", end="", flush=True)

        total = 0.0
        steps = 0
        solver = None
        for _ in range(args.repeat):
            # Solvers paint the grid, every run gets a fresh copy
            solver = get_solver(name, grid.clone())

            t_start = time.time()
            steps = sum(1 for _ in solver.run(start, end))
            total += time.time() - t_start

        if solver.returns_path:
            path_len = len(solver.path) if solver.path else 0
        else:
            path_len = count_cells(solver.grid, CellType.PATH)

        print(f" Done ({total / args.repeat:.6f}s) | Path: {path_len}")

        results.append({
            "name": name,
            "time": total / args.repeat,
            "steps": steps,
            "path": path_len,
            "visited": solver.visited_count,
        })

    # 3. Leaderboard
    print("=" * 70)
    print(f"{'RANK':<5} | {'ALGORITHM':<18} | {'TIME (s)':<10} | {'STEPS':<7} | {'PATH':<6} | {'VISITED':<8}")
    print("-" * 70)

    # Sort by Time
    results.sort(key=lambda x: x['time'])

    for i, res in enumerate(results):
        print(f"{i+1:<5} | {res['name']:<18} | {res['time']:<10.6f} | {res['steps']:<7} | {res['path']:<6} | {res['visited']:<8}")
    print("=" * 70)


if __name__ == "__main__":
    run_benchmark()
