import math

import pytest

from data_structures import InputData
from exceptions import SolveError
from solver_adapter import LinearExpression, SolveStatus, SolverAdapter


def scenario_tables(**overrides):
    """Two plants, two facilities, two customers, one product."""
    tables = dict(
        drk=[[50], [50]],
        pik=[[100], [100]],
        qj_min=[0, 0],
        qj_max=[200, 200],
        fj=[10, 20],
        gj=[1, 1],
        ck=[1],
        lij=[[1, 1], [1, 1]],
        ljr=[[1, 1], [1, 1]],
        p=1,
    )
    tables.update(overrides)
    return tables


class RecordingSolver(SolverAdapter):
    """
    In-memory SolverAdapter: records what the builder adds and serves
    preset values by variable name. Handles are indexes into `variables`.
    """

    def __init__(self, config=None, values=None, status=SolveStatus.OPTIMAL, objective=0.0):
        self.config = config
        self.variables = []
        self.constraints = []
        self.sense = None
        self.calls = []
        self.values = values or {}
        self.status = status
        self.objective = objective
        self.disposed = False

    def add_binary_variable(self, obj, name=""):
        self.calls.append("add_binary_variable")
        self.variables.append(("binary", 0.0, 1.0, obj, name))
        return len(self.variables) - 1

    def add_continuous_variable(self, lb=0.0, ub=math.inf, obj=0.0, name=""):
        self.calls.append("add_continuous_variable")
        self.variables.append(("continuous", lb, ub, obj, name))
        return len(self.variables) - 1

    def add_linear_constraint(self, lhs, relation, rhs, name=""):
        self.calls.append("add_linear_constraint")
        if isinstance(rhs, LinearExpression):
            rhs = (tuple(rhs.terms), rhs.constant)
        self.constraints.append((name, tuple(lhs.terms), lhs.constant, relation, rhs))

    def set_objective_sense(self, sense):
        self.calls.append("set_objective_sense")
        self.sense = sense

    def optimize(self):
        self.calls.append("optimize")
        return self.status

    def get_value(self, variable):
        if self.status is not SolveStatus.OPTIMAL:
            raise SolveError("no solution")
        return self.values.get(self.variables[variable][4], 0.0)

    def get_objective_value(self):
        if self.status is not SolveStatus.OPTIMAL:
            raise SolveError("no solution")
        return self.objective

    def dispose(self):
        self.calls.append("dispose")
        self.disposed = True

    def constraint(self, name):
        return next(c for c in self.constraints if c[0] == name)

    def variable(self, name):
        return next(v for v in self.variables if v[4] == name)


@pytest.fixture
def make_data():
    def _make(**overrides):
        return InputData(**scenario_tables(**overrides))
    return _make


@pytest.fixture
def recording_solver():
    return RecordingSolver()


@pytest.fixture(scope="session")
def gurobi():
    """Skips the test when no Gurobi environment can be started."""
    gp = pytest.importorskip("gurobipy")
    try:
        env = gp.Env(empty=True)
        env.setParam("OutputFlag", 0)
        env.start()
    except gp.GurobiError as e:
        pytest.skip(f"Gurobi environment unavailable: {e}")
    env.dispose()
    return gp


@pytest.fixture
def solver_cls():
    return RecordingSolver
