MIN_GRID_SIZE = 5
MAX_GRID_SIZE = 50
DEFAULT_GRID_SIZE = 25

DEFAULT_WALL_DENSITY = 0.3

MODE_MULTIPLE_PATHS = "multiple-paths"
MODE_PERFECT_MAZE = "perfect-maze"
MODE_OPEN_GRID = "open-grid"
MAZE_MODES = (MODE_MULTIPLE_PATHS, MODE_PERFECT_MAZE, MODE_OPEN_GRID)

# Comparison view never races more than this many searches at once
MAX_COMPARISON_RUNS = 6


class DriverConfig:
    """
    Pacing for the execution driver.

    step_delay: seconds slept after each emitted step.
    pause_poll_interval: seconds between checks of the pause flag.
    maze_update_every: maze comparison emits a snapshot every N steps.
    """
    __slots__ = ('step_delay', 'pause_poll_interval', 'maze_update_every')

    def __init__(self, step_delay: float = 0.03, pause_poll_interval: float = 0.1,
                 maze_update_every: int = 3):
        if step_delay < 0 or pause_poll_interval < 0:
            raise ValueError("Delays must be non-negative")
        if maze_update_every < 1:
            raise ValueError("maze_update_every must be at least 1")
        self.step_delay = step_delay
        self.pause_poll_interval = pause_poll_interval
        self.maze_update_every = maze_update_every

    def __repr__(self):
        return (f"DriverConfig(step_delay={self.step_delay}, "
                f"pause_poll_interval={self.pause_poll_interval}, "
                f"maze_update_every={self.maze_update_every})")


def validate_grid_size(size: int) -> int:
    if not isinstance(size, int) or not (MIN_GRID_SIZE <= size <= MAX_GRID_SIZE):
        raise ValueError(f"Grid size must be an integer in [{MIN_GRID_SIZE}, {MAX_GRID_SIZE}], got {size!r}")
    return size


def validate_maze_mode(mode: str) -> str:
    if mode not in MAZE_MODES:
        raise ValueError(f"Unknown maze mode {mode!r}; expected one of {', '.join(MAZE_MODES)}")
    return mode
