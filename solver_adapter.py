"""
Solver capability surface used by the model builder and the reporter, and
its Gurobi implementation.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

import gurobipy as gp
from gurobipy import GRB

from config import RunConfig
from exceptions import SolveError, SolverConstructionError
import cflp_utils.logging as logging
logger = logging.getLogger(__name__)


class Relation(Enum):
    LESS_EQUAL = "<="
    EQUAL = "=="
    GREATER_EQUAL = ">="


class ObjectiveSense(Enum):
    MINIMIZE = "min"
    MAXIMIZE = "max"


class SolveStatus(Enum):
    OPTIMAL = "OPTIMAL"
    INFEASIBLE = "INFEASIBLE"
    UNBOUNDED = "UNBOUNDED"
    TIME_LIMIT = "TIME_LIMIT"
    ERROR = "ERROR"


class LinearExpression:
    """Engine-neutral sum of coefficient * variable terms plus a constant."""

    def __init__(self, constant: float = 0.0):
        self._terms: List[Tuple[float, Any]] = []
        self.constant = constant

    def add_term(self, coefficient: float, variable: Any) -> "LinearExpression":
        self._terms.append((coefficient, variable))
        return self

    def add_constant(self, value: float) -> "LinearExpression":
        self.constant += value
        return self

    @property
    def terms(self) -> List[Tuple[float, Any]]:
        return list(self._terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __repr__(self) -> str:
        return f"LinearExpression({len(self._terms)} terms, constant={self.constant})"


Rhs = Union[LinearExpression, float, int]


class SolverAdapter(ABC):
    """
    Everything the formulation needs from a MILP engine. Handles returned by
    the add_* methods are opaque to callers. Use as a context manager so
    dispose() runs on every exit path.
    """

    @abstractmethod
    def add_binary_variable(self, obj: float, name: str = "") -> Any:
        ...

    @abstractmethod
    def add_continuous_variable(self, lb: float = 0.0, ub: float = math.inf, obj: float = 0.0, name: str = "") -> Any:
        ...

    @abstractmethod
    def add_linear_constraint(self, lhs: LinearExpression, relation: Relation, rhs: Rhs, name: str = "") -> None:
        ...

    @abstractmethod
    def set_objective_sense(self, sense: ObjectiveSense) -> None:
        ...

    @abstractmethod
    def optimize(self) -> SolveStatus:
        ...

    @abstractmethod
    def get_value(self, variable: Any) -> float:
        ...

    @abstractmethod
    def get_objective_value(self) -> float:
        ...

    @abstractmethod
    def dispose(self) -> None:
        ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
        return False


_SENSES = {
    Relation.LESS_EQUAL: GRB.LESS_EQUAL,
    Relation.EQUAL: GRB.EQUAL,
    Relation.GREATER_EQUAL: GRB.GREATER_EQUAL,
}

_STATUSES = {
    GRB.OPTIMAL: SolveStatus.OPTIMAL,
    GRB.INFEASIBLE: SolveStatus.INFEASIBLE,
    GRB.INF_OR_UNBD: SolveStatus.INFEASIBLE,
    GRB.UNBOUNDED: SolveStatus.UNBOUNDED,
    GRB.TIME_LIMIT: SolveStatus.TIME_LIMIT,
}


class GurobiAdapter(SolverAdapter):
    """
    SolverAdapter backed by gurobipy. The environment and model are created
    on __enter__ (or open()) and released by dispose().
    """

    def __init__(self, config: Optional[RunConfig] = None, name: str = "CFLP"):
        self.config = config or RunConfig()
        self.name = name
        self._env: Optional[gp.Env] = None
        self._model: Optional[gp.Model] = None
        self._status: Optional[SolveStatus] = None

    def __enter__(self):
        self.open()
        return self

    def open(self) -> None:
        try:
            self._env = gp.Env(empty=True)
            self._env.setParam("OutputFlag", self.config.OutputFlag)
            self._env.start()
            self._model = gp.Model(self.name, env=self._env)
            for param, value in self.config.solver_params().items():
                self._model.setParam(param, value)
        except gp.GurobiError as e:
            self.dispose()
            raise SolverConstructionError(f"Error creating gurobi environment and model. {e}") from e
        logger.info("Gurobi environment started for model %s with params %s", self.name, self.config.solver_params())

    @property
    def model(self) -> gp.Model:
        if self._model is None:
            raise SolverConstructionError("Gurobi model is not open")
        return self._model

    def add_binary_variable(self, obj: float, name: str = "") -> gp.Var:
        return self.model.addVar(lb=0, ub=1, obj=obj, vtype=GRB.BINARY, name=name)

    def add_continuous_variable(self, lb: float = 0.0, ub: float = math.inf, obj: float = 0.0, name: str = "") -> gp.Var:
        ub = GRB.INFINITY if math.isinf(ub) else ub
        return self.model.addVar(lb=lb, ub=ub, obj=obj, vtype=GRB.CONTINUOUS, name=name)

    @staticmethod
    def _to_linexpr(expr: Rhs):
        if not isinstance(expr, LinearExpression):
            return float(expr)
        terms = expr.terms
        linexpr = gp.LinExpr([c for c, _ in terms], [v for _, v in terms])
        if expr.constant:
            linexpr.addConstant(expr.constant)
        return linexpr

    def add_linear_constraint(self, lhs: LinearExpression, relation: Relation, rhs: Rhs, name: str = "") -> None:
        self.model.addLConstr(self._to_linexpr(lhs), _SENSES[relation], self._to_linexpr(rhs), name)

    def set_objective_sense(self, sense: ObjectiveSense) -> None:
        self.model.ModelSense = GRB.MINIMIZE if sense is ObjectiveSense.MINIMIZE else GRB.MAXIMIZE

    def optimize(self) -> SolveStatus:
        logger.info(f"CHECKPOINT: solving model {self.name} ...")
        try:
            self.model.optimize()
        except gp.GurobiError:
            logger.exception("Error optimizing model %s", self.name)
            self._status = SolveStatus.ERROR
            return self._status

        self._status = _STATUSES.get(self.model.Status, SolveStatus.ERROR)
        if self._status is SolveStatus.OPTIMAL:
            logger.info(f"  model={self.name} => OPTIMAL, ObjVal={self.model.ObjVal}")
        else:
            logger.info(f"  model={self.name} => solver ended with status={self.model.Status} ({self._status.value})")
        return self._status

    def _require_optimal(self) -> None:
        if self._status is not SolveStatus.OPTIMAL:
            status = self._status.value if self._status else "NOT_SOLVED"
            raise SolveError(f"No optimal solution available (status={status})")

    def get_value(self, variable: gp.Var) -> float:
        self._require_optimal()
        return variable.X

    def get_objective_value(self) -> float:
        self._require_optimal()
        return self.model.ObjVal

    def dispose(self) -> None:
        if self._model is not None:
            self._model.dispose()
            self._model = None
        if self._env is not None:
            self._env.dispose()
            self._env = None
            logger.info("Gurobi model and environment disposed")
