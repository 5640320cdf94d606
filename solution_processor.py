"""Decodes solved variable values into a SolutionReport."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config import RunConfig
from data_structures import Variant
from model_builder import CflpModel
from solver_adapter import SolveStatus
import cflp_utils.logging as logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FlowRecord:
    product: int
    plant: int
    facility: int
    customer: int
    amount: float


@dataclass
class SolutionReport:
    status: SolveStatus
    variant: Variant
    total_cost: Optional[float] = None
    facility_open: List[bool] = field(default_factory=list)
    activity: List[float] = field(default_factory=list)
    cost_breakdown: Dict[str, float] = field(default_factory=dict)
    # Single allocation: product -> plant x facility amounts, product -> facility x customer demand
    plant_to_facility: Dict[int, List[List[float]]] = field(default_factory=dict)
    facility_to_customer: Dict[int, List[List[int]]] = field(default_factory=dict)
    assignments: Dict[int, int] = field(default_factory=dict)  # customer -> facility
    # Divisible demand: product -> positive plant/facility/customer flows
    flows: Dict[int, List[FlowRecord]] = field(default_factory=dict)

    @property
    def is_optimal(self) -> bool:
        return self.status is SolveStatus.OPTIMAL

    @property
    def open_facilities(self) -> List[int]:
        return [j for j, is_open in enumerate(self.facility_open) if is_open]


class SolutionReporter:
    """
    Reads a solved CflpModel. Nothing is read from the solver unless the
    status is OPTIMAL.
    """

    def __init__(self, config: Optional[RunConfig] = None):
        self.config = config or RunConfig()

    def decode(self, model: CflpModel, status: SolveStatus) -> SolutionReport:
        report = SolutionReport(status=status, variant=model.variant)
        if status is not SolveStatus.OPTIMAL:
            logger.warning("No solution extracted, solver status=%s", status.value)
            return report

        solver, data, variables = model.solver, model.data, model.variables
        threshold = self.config.BinaryThreshold

        report.total_cost = solver.get_objective_value()
        z_val = [solver.get_value(v) for v in variables.z]
        report.facility_open = [val > threshold for val in z_val]
        fixed = sum(data.fj[j] * z_val[j] for j in data.facilities)

        if model.variant is Variant.SINGLE_ALLOCATION:
            transport, marginal = self._decode_single(model, report)
        else:
            transport, marginal = self._decode_divisible(model, report)

        report.cost_breakdown = {"fixed": fixed, "transport": transport, "marginal": marginal}
        logger.info(
            "Decoded %s solution: cost=%.4f open=%s",
            model.variant.value, report.total_cost, [j + 1 for j in report.open_facilities],
        )
        return report

    def _decode_single(self, model: CflpModel, report: SolutionReport):
        solver, data, variables = model.solver, model.data, model.variables
        threshold = self.config.BinaryThreshold

        x_val = {key: solver.get_value(v) for key, v in variables.x.items()}
        y_val = {key: solver.get_value(v) for key, v in variables.y.items()}

        for k in data.products:
            report.plant_to_facility[k] = [
                [x_val[(k, i, j)] for j in data.facilities] for i in data.plants
            ]
            report.facility_to_customer[k] = [
                [data.drk[r][k] if y_val[(j, r)] > threshold else 0 for r in data.customers]
                for j in data.facilities
            ]

        for r in data.customers:
            for j in data.facilities:
                if y_val[(j, r)] > threshold:
                    report.assignments[r] = j

        report.activity = [
            sum(data.bundle_size(r) * y_val[(j, r)] for r in data.customers)
            for j in data.facilities
        ]

        transport = sum(data.ck[k] * data.lij[i][j] * val for (k, i, j), val in x_val.items())
        transport += sum(
            data.ck[k] * data.ljr[j][r] * data.drk[r][k] * val
            for (j, r), val in y_val.items() for k in data.products
        )
        marginal = sum(data.gj[j] * data.bundle_size(r) * val for (j, r), val in y_val.items())
        return transport, marginal

    def _decode_divisible(self, model: CflpModel, report: SolutionReport):
        solver, data, variables = model.solver, model.data, model.variables
        min_flow = self.config.FlowReportThreshold

        activity = [0.0 for _ in data.facilities]
        transport = marginal = 0.0
        for k in data.products:
            report.flows[k] = []

        # keys were created in k, i, j, r order
        for (k, i, j, r), var in variables.s.items():
            amount = solver.get_value(var)
            activity[j] += amount
            transport += data.ck[k] * (data.lij[i][j] + data.ljr[j][r]) * amount
            marginal += data.gj[j] * amount
            if amount > min_flow:
                report.flows[k].append(FlowRecord(k, i, j, r, amount))

        report.activity = activity
        return transport, marginal
