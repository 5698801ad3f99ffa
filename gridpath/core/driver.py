import asyncio
import logging
import random
import time
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from gridpath.core.config import DriverConfig, MAX_COMPARISON_RUNS, validate_grid_size
from gridpath.core.events import StepStatus
from gridpath.core.grid import Grid, CellType, Coord
from gridpath.algo.mazes import GENERATOR_LABELS, get_generator_class, perfect_maze_steps
from gridpath.algo.repair import count_cells
from gridpath.algo.solvers import SEARCH_ALGORITHMS, get_solver

logger = logging.getLogger(__name__)

StepCallback = Callable[[str, int], None]
UpdateCallback = Callable[[str, Grid, int], None]


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class RunControl:
    """
    Pause/cancel signal pair shared by every run it is handed to. Flags are
    honoured at the next step boundary of each run.
    """
    def __init__(self):
        self.paused = False
        self.cancelled = False

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    def toggle_pause(self):
        self.paused = not self.paused

    def cancel(self):
        self.cancelled = True

    def reset(self):
        self.paused = False
        self.cancelled = False


async def _wait_while_paused(control: RunControl, config: DriverConfig) -> bool:
    """Polls until resumed. Returns False if cancelled meanwhile."""
    while control.paused and not control.cancelled:
        await asyncio.sleep(config.pause_poll_interval)
    return not control.cancelled


class AlgorithmRun:
    """One search process bound to its own private grid."""

    def __init__(self, name: str, grid: Grid, start: Coord, end: Coord):
        self.name = name
        self.grid = grid
        self.start = start
        self.end = end
        self.solver = get_solver(name, grid)
        self.process = self.solver.process(start, end)
        self.state = RunState.IDLE
        self.step_count = 0
        self.status: Optional[StepStatus] = None
        self.path: Optional[List[Coord]] = None
        self.completed_at: Optional[float] = None

    @property
    def solved(self) -> bool:
        if self.state is not RunState.COMPLETED:
            return False
        if self.status is StepStatus.GRID_ENCODED:
            return count_cells(self.grid, CellType.PATH) > 0
        return self.path is not None

    @property
    def path_length(self) -> int:
        """Path cells; grid-encoded results are counted from the grid."""
        if self.status is StepStatus.GRID_ENCODED:
            return count_cells(self.grid, CellType.PATH)
        return len(self.path) if self.path else 0

    def _cancel(self):
        self.process.close()
        self.path = None
        self.state = RunState.CANCELLED
        logger.debug("%s cancelled after %d steps", self.name, self.step_count)

    async def run(self, control: RunControl, config: DriverConfig,
                  on_step: Optional[StepCallback] = None,
                  on_update: Optional[UpdateCallback] = None,
                  on_complete: Optional[Callable[["AlgorithmRun"], None]] = None) -> "AlgorithmRun":
        if self.state is not RunState.IDLE:
            raise RuntimeError(f"{self.name} run already started ({self.state.value})")
        self.state = RunState.RUNNING

        while True:
            status = self.process.step()

            if status.finished:
                self.status = status
                self.path = self.process.result
                self.completed_at = time.monotonic()
                self.state = RunState.COMPLETED
                logger.debug("%s completed in %d steps (%s)", self.name, self.step_count, status.value)
                if on_update:
                    on_update(self.name, self.grid.clone(), self.step_count)
                if on_complete:
                    on_complete(self)
                return self

            self.step_count += 1
            if on_step:
                on_step(self.name, self.step_count)

            if control.cancelled:
                self._cancel()
                return self

            if control.paused:
                self.state = RunState.PAUSED
                if not await _wait_while_paused(control, config):
                    self._cancel()
                    return self
                self.state = RunState.RUNNING

            if on_update:
                on_update(self.name, self.grid.clone(), self.step_count)
            await asyncio.sleep(config.step_delay)


async def run_single_algorithm(grid: Grid, start: Coord, end: Coord, algorithm: str,
                               control: RunControl = None, config: DriverConfig = None,
                               on_step: Optional[StepCallback] = None,
                               on_update: Optional[UpdateCallback] = None,
                               on_complete: Optional[Callable[[AlgorithmRun], None]] = None) -> AlgorithmRun:
    """Runs one search on a clone of `grid`; the caller's grid is never touched."""
    working = grid.clone()
    working.reset_visit_counts()
    run = AlgorithmRun(algorithm, working, start, end)
    return await run.run(control or RunControl(), config or DriverConfig(), on_step, on_update, on_complete)


class ComparisonResult:
    def __init__(self, runs: Dict[str, AlgorithmRun]):
        self.runs = runs
        self.completion_order: List[str] = []
        self.winner: Optional[str] = None

    @property
    def paths(self) -> Dict[str, Optional[List[Coord]]]:
        return {name: run.path for name, run in self.runs.items()}

    @property
    def solved(self) -> Dict[str, bool]:
        return {name: run.solved for name, run in self.runs.items()}

    @property
    def steps(self) -> Dict[str, int]:
        return {name: run.step_count for name, run in self.runs.items()}

    def record_completion(self, run: AlgorithmRun):
        self.completion_order.append(run.name)
        # Earliest valid completion wins; later finishers never replace it
        if run.solved:
            current = self.runs.get(self.winner)
            if current is None or run.completed_at < current.completed_at:
                self.winner = run.name


def check_comparison_names(algorithms: Iterable[str]) -> List[str]:
    names = list(algorithms)
    if not names:
        raise ValueError("Comparison needs at least one algorithm")
    if len(names) > MAX_COMPARISON_RUNS:
        raise ValueError(f"At most {MAX_COMPARISON_RUNS} algorithms can be compared, got {len(names)}")
    if len(set(names)) != len(names):
        raise ValueError("Comparison algorithms must be distinct")
    return names


async def run_comparison(grid: Grid, start: Coord, end: Coord,
                         algorithms: Iterable[str] = SEARCH_ALGORITHMS,
                         control: RunControl = None, config: DriverConfig = None,
                         on_step: Optional[StepCallback] = None,
                         on_update: Optional[UpdateCallback] = None,
                         on_complete: Optional[Callable[[AlgorithmRun, ComparisonResult], None]] = None
                         ) -> ComparisonResult:
    """
    Races several searches on independent clones of `grid`. All runs share
    one pause/cancel pair and interleave at their step delays.
    """
    names = check_comparison_names(algorithms)
    control = control or RunControl()
    config = config or DriverConfig()

    base = grid.clone()
    runs: Dict[str, AlgorithmRun] = {}
    for name in names:
        clone = base.clone()
        clone.reset_visit_counts()
        runs[name] = AlgorithmRun(name, clone, start, end)

    result = ComparisonResult(runs)

    def finished(run: AlgorithmRun):
        result.record_completion(run)
        if on_complete:
            on_complete(run, result)

    async def race(run: AlgorithmRun):
        try:
            await run.run(control, config, on_step, on_update, finished)
        except Exception:
            # One broken run must not take its siblings down
            logger.exception("%s failed during comparison", run.name)
            run.state = RunState.FAILED
            run.path = None

    await asyncio.gather(*(race(run) for run in runs.values()))
    logger.info("Comparison finished: order=%s winner=%s", result.completion_order, result.winner)
    return result


async def _drive_maze(name: str, grid: Grid, steps, control: RunControl, config: DriverConfig,
                      update_every: int, on_update: Optional[UpdateCallback]) -> Tuple[int, bool]:
    """Steps a maze pipeline, emitting every `update_every` steps. Returns (steps, finished)."""
    step_count = 0
    for _ in steps:
        if control.cancelled:
            return step_count, False
        if control.paused and not await _wait_while_paused(control, config):
            return step_count, False

        step_count += 1
        if step_count % update_every == 0:
            if on_update:
                on_update(name, grid.clone(), step_count)
            await asyncio.sleep(config.step_delay)
        else:
            await asyncio.sleep(config.step_delay / update_every)

    return step_count, True


async def generate_maze(size: int, algorithm: str = "recursive-backtracking",
                        control: RunControl = None, config: DriverConfig = None,
                        update_every: int = 1, rng: random.Random = None,
                        on_update: Optional[UpdateCallback] = None,
                        on_complete: Optional[Callable[[Grid, Coord, Coord], None]] = None
                        ) -> Tuple[Grid, Coord, Coord]:
    """
    Stepwise perfect-maze generation for a single view. Use update_every=3
    when the result seeds a comparison, to bound snapshot overhead.
    """
    validate_grid_size(size)
    get_generator_class(algorithm)
    control = control or RunControl()
    config = config or DriverConfig()
    rng = rng or random.Random()

    grid = Grid(size)
    start, end = grid.generate_random_start_end(rng)
    steps = perfect_maze_steps(grid, start, end, algorithm, rng)
    step_count, finished = await _drive_maze(algorithm, grid, steps, control, config, update_every, on_update)
    if not finished:
        logger.debug("Maze generation (%s) stopped after %d steps", algorithm, step_count)

    grid.set_cell(start[0], start[1], CellType.START)
    grid.set_cell(end[0], end[1], CellType.END)
    if on_complete:
        on_complete(grid.clone(), start, end)
    return grid, start, end


async def run_maze_comparison(size: int, control: RunControl = None, config: DriverConfig = None,
                              rng: random.Random = None,
                              on_update: Optional[UpdateCallback] = None,
                              on_complete: Optional[Callable[[Coord, Coord], None]] = None
                              ) -> Tuple[Dict[str, Grid], Coord, Coord]:
    """Generates the same start/end with all three generators side by side."""
    validate_grid_size(size)
    control = control or RunControl()
    config = config or DriverConfig()
    rng = rng or random.Random()

    start, end = Grid(size).generate_random_start_end(rng)
    grids = {label: Grid(size) for label in GENERATOR_LABELS.values()}

    # Independent streams keep each maze reproducible whatever the interleaving
    seeds = {label: rng.getrandbits(32) for label in grids}

    async def build(algorithm: str, label: str):
        grid = grids[label]
        steps = perfect_maze_steps(grid, start, end, algorithm, random.Random(seeds[label]))
        try:
            step_count, finished = await _drive_maze(label, grid, steps, control, config,
                                                     config.maze_update_every, on_update)
        except Exception:
            logger.exception("%s failed during maze comparison", label)
            return
        if not finished:
            return

        if on_update:
            on_update(label, grid.clone(), step_count)
        grid.set_cell(start[0], start[1], CellType.START)
        grid.set_cell(end[0], end[1], CellType.END)
        if on_update:
            on_update(label, grid.clone(), step_count)

    await asyncio.gather(*(build(algorithm, label) for algorithm, label in GENERATOR_LABELS.items()))

    if on_complete:
        on_complete(start, end)
    return grids, start, end
