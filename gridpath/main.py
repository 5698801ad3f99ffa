import argparse
import asyncio
import logging
import os
import random
import sys

# Ensure project root is in path so we can import 'gridpath' package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from gridpath.core.config import (
    DEFAULT_GRID_SIZE, DEFAULT_WALL_DENSITY, MAZE_MODES, MODE_MULTIPLE_PATHS, MODE_PERFECT_MAZE,
    DriverConfig, validate_grid_size,
)
from gridpath.algo.mazes import GENERATORS, create_new_grid
from gridpath.algo.repair import calculate_stats
from gridpath.algo.solvers import SEARCH_ALGORITHMS

logger = logging.getLogger("gridpath")


def setup_logging(verbose: bool):
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="gridpath: stepwise pathfinding and maze generation visualizer")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    # Flags shared by every command
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--size", type=int, default=DEFAULT_GRID_SIZE, help="Grid size (5-50)")
    common.add_argument("--seed", type=int, default=None, help="Random Seed")
    common.add_argument("--delay", type=float, default=None,
                        help="Seconds between steps (default 0.03 with --visual, 0 headless)")
    common.add_argument("--visual", action="store_true", help="Show visualization")
    common.add_argument("--record", action="store_true", help="Record video of the viewer")

    # Flags that describe how the grid is built
    layout = argparse.ArgumentParser(add_help=False)
    layout.add_argument("--mode", type=str, default=MODE_MULTIPLE_PATHS, choices=MAZE_MODES, help="Maze mode")
    layout.add_argument("--maze-algo", type=str, default="recursive-backtracking", choices=list(GENERATORS),
                        help="Perfect maze generator")
    layout.add_argument("--density", type=float, default=DEFAULT_WALL_DENSITY,
                        help="Wall density for multiple-paths mode (0.1 - 0.9)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("generate", parents=[common, layout], help="Generate a grid")

    solve_parser = subparsers.add_parser("solve", parents=[common, layout], help="Run one search algorithm")
    solve_parser.add_argument("--algo", type=str, default="BFS", choices=SEARCH_ALGORITHMS, help="Search algorithm")

    compare_parser = subparsers.add_parser("compare", parents=[common, layout], help="Race search algorithms")
    compare_parser.add_argument("--algos", type=str, nargs="+", default=list(SEARCH_ALGORITHMS),
                                help="Algorithms to race (at most 6)")

    subparsers.add_parser("maze-compare", parents=[common], help="Race the three maze generators")

    return parser


def make_config(args) -> DriverConfig:
    delay = args.delay
    if delay is None:
        delay = 0.03 if (args.visual or args.record) else 0.0
    return DriverConfig(step_delay=delay)


def make_renderer(args, control, title):
    from gridpath.viz.renderer import Renderer
    from gridpath.viz.recorder import default_output_file

    record_file = None
    if args.record:
        if not os.path.exists("recordings"):
            os.makedirs("recordings")
        record_file = default_output_file(f"{args.command}_{args.size}")
        logger.info(f"Recording video to {record_file}")

    renderer = Renderer(control=control, record=args.record, record_file=record_file, title=title)
    renderer.init_window()
    return renderer


async def with_viewer(renderer, coro):
    """Awaits `coro` while the viewer keeps servicing window events."""
    if renderer is None:
        return await coro
    pump = asyncio.ensure_future(renderer.keep_alive())
    try:
        return await coro
    finally:
        pump.cancel()


def print_grid(grid, title=None):
    if title:
        print(f"== {title} ==")
    print(grid.to_text())
    stats = calculate_stats(grid)
    print(", ".join(f"{k}={v:.2f}" if isinstance(v, float) else f"{k}={v}" for k, v in stats.items()))


def cmd_generate(args, rng, config):
    from gridpath.core.driver import RunControl, generate_maze

    visual = args.visual or args.record

    if args.mode == MODE_PERFECT_MAZE and visual:
        control = RunControl()
        renderer = make_renderer(args, control, f"gridpath - {args.maze_algo}")
        grid, start, end = asyncio.run(with_viewer(renderer, generate_maze(
            args.size, args.maze_algo, control, config, rng=rng, on_update=renderer.on_update)))
        renderer.on_update(args.maze_algo, grid.clone(), 0)
        renderer.set_status(f"start={start} end={end}")
        renderer.wait_for_close()
        renderer.close()
    else:
        grid, start, end = create_new_grid(args.size, args.mode, args.maze_algo, args.density, rng)
        if visual:
            renderer = make_renderer(args, None, f"gridpath - {args.mode}")
            renderer.on_update(args.mode, grid, 0)
            renderer.wait_for_close()
            renderer.close()

    logger.info(f"Generated {args.size}x{args.size} {args.mode} grid, start={start} end={end}")
    if not visual:
        print_grid(grid)


def cmd_solve(args, rng, config):
    from gridpath.core.driver import RunControl, run_single_algorithm

    grid, start, end = create_new_grid(args.size, args.mode, args.maze_algo, args.density, rng)
    logger.info(f"Solving with {args.algo} from {start} to {end}...")

    control = RunControl()
    renderer = None
    if args.visual or args.record:
        renderer = make_renderer(args, control, f"gridpath - {args.algo}")
        renderer.on_update(args.algo, grid, 0)

    on_update = renderer.on_update if renderer else None
    run = asyncio.run(with_viewer(renderer, run_single_algorithm(
        grid, start, end, args.algo, control, config, on_update=on_update)))

    if run.solved:
        logger.info(f"{args.algo}: {run.path_length} path cells, {run.step_count} steps")
    else:
        logger.info(f"{args.algo}: no solution ({run.state.value}, {run.step_count} steps)")

    if renderer:
        renderer.set_status(f"{run.state.value}  path: {run.path_length}")
        renderer.wait_for_close()
        renderer.close()
    else:
        print_grid(run.grid, args.algo)


def cmd_compare(args, rng, config):
    from gridpath.core.driver import RunControl, run_comparison

    grid, start, end = create_new_grid(args.size, args.mode, args.maze_algo, args.density, rng)
    logger.info(f"Racing {', '.join(args.algos)} from {start} to {end}...")

    control = RunControl()
    renderer = None
    if args.visual or args.record:
        renderer = make_renderer(args, control, "gridpath - comparison")
        for name in args.algos:
            renderer.panels[name] = (grid, 0)

    def on_complete(run, result):
        logger.info(f"{run.name} finished ({'solved' if run.solved else 'no path'}, {run.step_count} steps)")
        if renderer:
            renderer.highlight = result.winner

    on_update = renderer.on_update if renderer else None
    result = asyncio.run(with_viewer(renderer, run_comparison(
        grid, start, end, args.algos, control, config, on_update=on_update, on_complete=on_complete)))

    print(f"\n{'ALGORITHM':<20} | {'STATE':<10} | {'STEPS':<8} | {'PATH':<8}")
    print("-" * 55)
    for name in result.completion_order + [n for n in result.runs if n not in result.completion_order]:
        run = result.runs[name]
        print(f"{name:<20} | {run.state.value:<10} | {run.step_count:<8} | {run.path_length:<8}")
    print(f"Winner: {result.winner or 'none'}")

    if renderer:
        renderer.set_status(f"Winner: {result.winner or 'none'}")
        renderer.wait_for_close()
        renderer.close()


def cmd_maze_compare(args, rng, config):
    from gridpath.core.driver import RunControl, run_maze_comparison

    control = RunControl()
    renderer = None
    if args.visual or args.record:
        renderer = make_renderer(args, control, "gridpath - maze comparison")

    on_update = renderer.on_update if renderer else None
    grids, start, end = asyncio.run(with_viewer(renderer, run_maze_comparison(
        args.size, control, config, rng, on_update=on_update)))
    logger.info(f"Maze comparison finished, start={start} end={end}")

    if renderer:
        renderer.set_status(f"start={start} end={end}")
        renderer.wait_for_close()
        renderer.close()
    else:
        for label, grid in grids.items():
            print_grid(grid, label)


COMMANDS = {
    "generate": cmd_generate,
    "solve": cmd_solve,
    "compare": cmd_compare,
    "maze-compare": cmd_maze_compare,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return

    logger.info(f"Running command: {args.command}")

    try:
        validate_grid_size(args.size)
        config = make_config(args)
        if args.command == "compare":
            from gridpath.core.driver import check_comparison_names
            check_comparison_names(args.algos)
            unknown = [name for name in args.algos if name not in SEARCH_ALGORITHMS]
            if unknown:
                raise ValueError(f"Unknown search algorithm(s): {', '.join(unknown)}")
    except ValueError as e:
        parser.error(str(e))

    rng = random.Random(args.seed)
    COMMANDS[args.command](args, rng, config)


if __name__ == "__main__":
    main()
