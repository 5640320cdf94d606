import pytest

from config import RunConfig
from data_structures import Variant
from model_builder import ModelBuilder
from solution_processor import FlowRecord, SolutionReporter
from solver_adapter import SolveStatus


def built(data, variant, solver):
    return ModelBuilder(data, variant).build(solver)


def test_non_optimal_reads_nothing(make_data, solver_cls):
    solver = solver_cls(status=SolveStatus.INFEASIBLE)
    model = built(make_data(), Variant.SINGLE_ALLOCATION, solver)
    report = SolutionReporter().decode(model, SolveStatus.INFEASIBLE)
    assert report.status is SolveStatus.INFEASIBLE
    assert not report.is_optimal
    assert report.total_cost is None
    assert report.facility_open == []
    assert report.plant_to_facility == {}


def test_single_allocation_decode(make_data, solver_cls):
    values = {
        "z[0]": 1.0,
        "y[0,0]": 1.0,
        "y[0,1]": 1.0,
        "x[0,0,0]": 50.0,
        "x[0,1,0]": 50.0,
    }
    solver = solver_cls(values=values, objective=310.0)
    model = built(make_data(), Variant.SINGLE_ALLOCATION, solver)
    report = SolutionReporter().decode(model, SolveStatus.OPTIMAL)

    assert report.total_cost == 310.0
    assert report.facility_open == [True, False]
    assert report.open_facilities == [0]
    assert report.plant_to_facility[0] == [[50.0, 0.0], [50.0, 0.0]]
    assert report.facility_to_customer[0] == [[50, 50], [0, 0]]
    assert report.assignments == {0: 0, 1: 0}
    assert report.activity == [100.0, 0.0]
    assert report.cost_breakdown == {"fixed": 10.0, "transport": 200.0, "marginal": 100.0}
    assert sum(report.cost_breakdown.values()) == pytest.approx(report.total_cost)


def test_binary_threshold_applies_to_open_and_assignment(make_data, solver_cls):
    values = {"z[0]": 0.995, "z[1]": 0.98, "y[0,0]": 0.995, "y[1,1]": 0.98}
    solver = solver_cls(values=values)
    model = built(make_data(), Variant.SINGLE_ALLOCATION, solver)
    report = SolutionReporter().decode(model, SolveStatus.OPTIMAL)
    assert report.facility_open == [True, False]
    assert report.facility_to_customer[0] == [[50, 0], [0, 0]]
    assert report.assignments == {0: 0}

    loose = SolutionReporter(RunConfig(BinaryThreshold=0.5)).decode(model, SolveStatus.OPTIMAL)
    assert loose.facility_open == [True, True]


def test_divisible_demand_decode(make_data, solver_cls):
    values = {
        "z[0]": 1.0,
        "s[0,0,0,0]": 50.0,
        "s[0,1,0,1]": 50.0,
    }
    solver = solver_cls(values=values, objective=310.0)
    model = built(make_data(), Variant.DIVISIBLE_DEMAND, solver)
    report = SolutionReporter().decode(model, SolveStatus.OPTIMAL)

    assert report.flows[0] == [
        FlowRecord(product=0, plant=0, facility=0, customer=0, amount=50.0),
        FlowRecord(product=0, plant=1, facility=0, customer=1, amount=50.0),
    ]
    assert report.activity == [100.0, 0.0]
    assert report.cost_breakdown == {"fixed": 10.0, "transport": 200.0, "marginal": 100.0}
    assert report.plant_to_facility == {}


def test_flow_report_threshold(make_data, solver_cls):
    values = {"z[0]": 1.0, "s[0,0,0,0]": 50.0, "s[0,1,0,1]": 1e-9}
    solver = solver_cls(values=values)
    model = built(make_data(), Variant.DIVISIBLE_DEMAND, solver)

    assert len(SolutionReporter().decode(model, SolveStatus.OPTIMAL).flows[0]) == 2
    strict = SolutionReporter(RunConfig(FlowReportThreshold=1e-6)).decode(model, SolveStatus.OPTIMAL)
    assert len(strict.flows[0]) == 1
