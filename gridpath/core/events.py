from enum import Enum

# Step event kinds. Every stepwise process yields exactly one of these
# after each atomic grid mutation.
EVT_INIT = "init"          # whole-grid setup (fill, border marking)
EVT_CARVE = "carve"        # maze generator opened a cell or connecting wall
EVT_REPAIR = "repair"      # post-generation repair pass touched the grid
EVT_MARK = "mark"          # Start/End markers placed
EVT_VISIT = "visit"        # search expanded a cell
EVT_PATH_ADD = "path"      # search marked a solution cell
EVT_FILL = "fill"          # dead-end filling closed a cell


class StepStatus(Enum):
    """Outcome of advancing a StepProcess by one step."""
    CONTINUE = "continue"
    FOUND = "found"
    NOT_FOUND = "not_found"
    # Process finished and its answer lives in the grid, not in a path value.
    GRID_ENCODED = "grid_encoded"

    @property
    def finished(self) -> bool:
        return self is not StepStatus.CONTINUE
