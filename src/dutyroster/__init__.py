from .config import Config, cfg
from .input_data import InputSnapshot, Period, build_input
from .main import run_solver
from .result_types import RunResult
from .service import PlanningService
from .store import PlanningStore

__all__ = [
    "Config",
    "cfg",
    "InputSnapshot",
    "Period",
    "build_input",
    "run_solver",
    "RunResult",
    "PlanningService",
    "PlanningStore",
]
