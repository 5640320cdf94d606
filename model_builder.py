"""
Builds the CFLP mixed-integer program for one variant through a SolverAdapter.

Single allocation (y[j,r] binary, x[k,i,j] continuous):
    min  sum_j f[j] z[j] + sum_{k,i,j} c[k] l[i,j] x[k,i,j]
         + sum_{j,r} (sum_k (c[k] l[j,r] + g[j]) d[r,k]) y[j,r]

Divisible demand (s[k,i,j,r] continuous):
    min  sum_j f[j] z[j] + sum_{k,i,j,r} (c[k] (l[i,j] + l[j,r]) + g[j]) s[k,i,j,r]

Facility activity is linked to z[j] through the facility's own bounds
(q_max[j] z[j] and q_min[j] z[j]) rather than a big-M constant.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from data_structures import InputData, Variant, validate_parameters
from exceptions import SolverConstructionError
from solver_adapter import LinearExpression, ObjectiveSense, Relation, SolverAdapter
from cflp_utils.decorators import log_and_time
import cflp_utils.logging as logging
logger = logging.getLogger(__name__)


@dataclass
class ModelVariables:
    z: List[Any] = field(default_factory=list)
    x: Dict[Tuple[int, int, int], Any] = field(default_factory=dict)  # (k, i, j)
    y: Dict[Tuple[int, int], Any] = field(default_factory=dict)  # (j, r)
    s: Dict[Tuple[int, int, int, int], Any] = field(default_factory=dict)  # (k, i, j, r)

    def count(self) -> int:
        return len(self.z) + len(self.x) + len(self.y) + len(self.s)


@dataclass
class CflpModel:
    """A built model: the data it encodes, its variables and the solver holding them."""
    data: InputData
    variant: Variant
    solver: SolverAdapter
    variables: ModelVariables
    num_constraints: int = 0


class _ConstraintCounter:
    """Wraps add_linear_constraint to keep a count for logging."""

    def __init__(self, solver: SolverAdapter):
        self.solver = solver
        self.count = 0

    def add(self, lhs: LinearExpression, relation: Relation, rhs, name: str) -> None:
        self.solver.add_linear_constraint(lhs, relation, rhs, name)
        self.count += 1


def _open_count(data: InputData, z) -> LinearExpression:
    expr = LinearExpression()
    for j in data.facilities:
        expr.add_term(1, z[j])
    return expr


def _activity_bounds(data: InputData, cons: _ConstraintCounter, z, activity: Dict[int, LinearExpression]) -> None:
    # Maximum activity: forced to 0 when the facility is closed
    for j in data.facilities:
        cons.add(activity[j], Relation.LESS_EQUAL,
                 LinearExpression().add_term(data.qj_max[j], z[j]), f"max_activity[{j}]")

    # Minimum activity: vacuous when closed
    for j in data.facilities:
        cons.add(activity[j], Relation.GREATER_EQUAL,
                 LinearExpression().add_term(data.qj_min[j], z[j]), f"min_activity[{j}]")


def _add_open_variables(data: InputData, solver: SolverAdapter) -> List[Any]:
    return [solver.add_binary_variable(data.fj[j], name=f"z[{j}]") for j in data.facilities]


class Formulation:
    """Objective and constraint construction for one problem variant."""

    variant: Variant

    def build_objective(self, data: InputData, solver: SolverAdapter) -> ModelVariables:
        raise NotImplementedError

    def build_constraints(self, data: InputData, solver: SolverAdapter, variables: ModelVariables) -> int:
        raise NotImplementedError


class SingleAllocationFormulation(Formulation):
    """Each customer's whole demand bundle is served by one open facility."""

    variant = Variant.SINGLE_ALLOCATION

    def build_objective(self, data, solver):
        variables = ModelVariables(z=_add_open_variables(data, solver))

        for k in data.products:
            for i in data.plants:
                for j in data.facilities:
                    transport = data.ck[k] * data.lij[i][j]
                    variables.x[(k, i, j)] = solver.add_continuous_variable(obj=transport, name=f"x[{k},{i},{j}]")

        for j in data.facilities:
            for r in data.customers:
                cost = sum(
                    (data.ck[k] * data.ljr[j][r] + data.gj[j]) * data.drk[r][k]
                    for k in data.products
                )
                variables.y[(j, r)] = solver.add_binary_variable(cost, name=f"y[{j},{r}]")
        return variables

    def build_constraints(self, data, solver, variables):
        cons = _ConstraintCounter(solver)
        z, x, y = variables.z, variables.x, variables.y

        # 1 => sum_j z[j] = p
        cons.add(_open_count(data, z), Relation.EQUAL, data.p, "open_count")

        # 2 => sum_j y[j,r] = 1
        for r in data.customers:
            assigned = LinearExpression()
            for j in data.facilities:
                assigned.add_term(1, y[(j, r)])
            cons.add(assigned, Relation.EQUAL, 1, f"assign[{r}]")

        # 3 => sum_j x[k,i,j] <= capacity[i,k]
        for i in data.plants:
            for k in data.products:
                shipped = LinearExpression()
                for j in data.facilities:
                    shipped.add_term(1, x[(k, i, j)])
                cons.add(shipped, Relation.LESS_EQUAL, data.pik[i][k], f"plant_cap[{i},{k}]")

        # 4, 5 => activity of j = sum_{r,k} d[r,k] y[j,r]
        activity = {}
        for j in data.facilities:
            served = LinearExpression()
            for r in data.customers:
                for k in data.products:
                    served.add_term(data.drk[r][k], y[(j, r)])
            activity[j] = served
        _activity_bounds(data, cons, z, activity)

        # 6 => inbound product k at j equals the demand for k served from j
        for j in data.facilities:
            for k in data.products:
                inbound = LinearExpression()
                for i in data.plants:
                    inbound.add_term(1, x[(k, i, j)])
                outbound = LinearExpression()
                for r in data.customers:
                    outbound.add_term(data.drk[r][k], y[(j, r)])
                cons.add(inbound, Relation.EQUAL, outbound, f"flow_balance[{j},{k}]")
        return cons.count


class DivisibleDemandFormulation(Formulation):
    """Customer demand may be split across plants and facilities."""

    variant = Variant.DIVISIBLE_DEMAND

    def build_objective(self, data, solver):
        variables = ModelVariables(z=_add_open_variables(data, solver))

        for k in data.products:
            for i in data.plants:
                for j in data.facilities:
                    for r in data.customers:
                        distance = data.lij[i][j] + data.ljr[j][r]
                        cost = data.ck[k] * distance + data.gj[j]
                        variables.s[(k, i, j, r)] = solver.add_continuous_variable(
                            obj=cost, name=f"s[{k},{i},{j},{r}]"
                        )
        return variables

    def build_constraints(self, data, solver, variables):
        cons = _ConstraintCounter(solver)
        z, s = variables.z, variables.s

        # 1 => sum_j z[j] = p
        cons.add(_open_count(data, z), Relation.EQUAL, data.p, "open_count")

        # 2 => sum_{i,j} s[k,i,j,r] = d[r,k]
        for r in data.customers:
            for k in data.products:
                delivered = LinearExpression()
                for i in data.plants:
                    for j in data.facilities:
                        delivered.add_term(1, s[(k, i, j, r)])
                cons.add(delivered, Relation.EQUAL, data.drk[r][k], f"demand[{r},{k}]")

        # 3 => sum_{j,r} s[k,i,j,r] <= capacity[i,k]
        for i in data.plants:
            for k in data.products:
                shipped = LinearExpression()
                for j in data.facilities:
                    for r in data.customers:
                        shipped.add_term(1, s[(k, i, j, r)])
                cons.add(shipped, Relation.LESS_EQUAL, data.pik[i][k], f"plant_cap[{i},{k}]")

        # 4, 5 => activity of j = sum_{i,r,k} s[k,i,j,r]
        activity = {}
        for j in data.facilities:
            through = LinearExpression()
            for i in data.plants:
                for r in data.customers:
                    for k in data.products:
                        through.add_term(1, s[(k, i, j, r)])
            activity[j] = through
        _activity_bounds(data, cons, z, activity)
        return cons.count


FORMULATIONS = {
    Variant.SINGLE_ALLOCATION: SingleAllocationFormulation,
    Variant.DIVISIBLE_DEMAND: DivisibleDemandFormulation,
}


class ModelBuilder:
    """
    Turns validated InputData into a complete MILP on the given solver.
    The formulation strategy is chosen once from the variant.
    """

    def __init__(self, data: InputData, variant: Variant):
        validate_parameters(data)
        self.data = data
        self.variant = variant
        self.formulation: Formulation = FORMULATIONS[variant]()

    @log_and_time("build_model", error_cls=SolverConstructionError)
    def build(self, solver: SolverAdapter) -> CflpModel:
        data = self.data
        # Fail here rather than hand the solver an infeasible instance
        validate_parameters(data)

        logger.info(f"CHECKPOINT: building {self.variant.value} model K={data.K} I={data.I} J={data.J} R={data.R} p={data.p}")
        variables = self.formulation.build_objective(data, solver)
        solver.set_objective_sense(ObjectiveSense.MINIMIZE)
        num_constraints = self.formulation.build_constraints(data, solver, variables)
        logger.info(f"  model built => #Vars={variables.count()}, #Constrs={num_constraints}")

        return CflpModel(
            data=data,
            variant=self.variant,
            solver=solver,
            variables=variables,
            num_constraints=num_constraints,
        )
