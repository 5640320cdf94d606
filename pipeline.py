"""Build -> solve -> decode, with the solver scoped to a single with-block."""
from typing import Optional, Sequence

from config import RunConfig
from data_loader import load_input_data
from data_structures import InputData, Variant
from model_builder import ModelBuilder
from solution_processor import SolutionReport, SolutionReporter
from solver_adapter import GurobiAdapter
from cflp_utils.decorators import log_and_time
import cflp_utils.logging as logging
logger = logging.getLogger(__name__)


def solve_instance(data: InputData, variant: Variant, config: Optional[RunConfig] = None, solver_factory=GurobiAdapter) -> SolutionReport:
    """
    Acquires the solver right before model construction and releases it on
    every exit path. solver_factory(config) must return a SolverAdapter.
    """
    config = config or RunConfig()
    builder = ModelBuilder(data, variant)
    with solver_factory(config) as solver:
        model = builder.build(solver)
        status = solver.optimize()
        return SolutionReporter(config).decode(model, status)


@log_and_time("run")
def run(paths: Sequence[str], p: int, variant: Variant, config: Optional[RunConfig] = None, solver_factory=GurobiAdapter) -> SolutionReport:
    data = load_input_data(paths, p)
    return solve_instance(data, variant, config, solver_factory)
