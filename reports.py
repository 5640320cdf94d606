"""Console and CSV output for a decoded SolutionReport."""

import csv
from pathlib import Path
from typing import List

import pandas as pd

from data_structures import Variant
from exceptions import ReportWriteError
from solution_processor import SolutionReport
import cflp_utils.logging as logging
logger = logging.getLogger(__name__)

COLUMN_WIDTH = 12


def _labels(prefix: str, n: int) -> List[str]:
    return [f"{prefix} {idx + 1}" for idx in range(n)]


def _table(rows, index_prefix: str, column_prefix: str, float_cells: bool) -> str:
    n_cols = len(rows[0]) if rows else 0
    df = pd.DataFrame(rows, index=_labels(index_prefix, len(rows)), columns=_labels(column_prefix, n_cols))
    df.index.name = "From/To"
    if float_cells:
        return df.to_string(float_format=lambda v: f"{v:.2f}", col_space=COLUMN_WIDTH)
    return df.to_string(col_space=COLUMN_WIDTH)


def render_report(report: SolutionReport) -> str:
    """
    Human-readable report. Facilities, plants, customers and products are
    numbered from 1. A non-optimal status prints only the status line.
    """
    if not report.is_optimal:
        return f"***NO OPTIMAL SOLUTION*** status={report.status.value}\n"

    lines = ["", "***OPTIMAL SOLUTION***", "", f"Total Cost: {report.total_cost}"]
    for part in ("fixed", "transport", "marginal"):
        lines.append(f"  {part.capitalize()} Cost: {report.cost_breakdown.get(part, 0.0):.2f}")
    lines.append("")

    for j, is_open in enumerate(report.facility_open):
        lines.append(f"Facility {j + 1}: {'Open' if is_open else 'Closed'} (activity {report.activity[j]:.2f})")
    lines.append("")

    if report.variant is Variant.SINGLE_ALLOCATION:
        for k, matrix in report.plant_to_facility.items():
            lines.append(f"Product {k + 1}")
            lines.append(_table(matrix, "Plant", "Facility", float_cells=True))
            lines.append("")
        for k, matrix in report.facility_to_customer.items():
            lines.append(f"Product {k + 1}")
            lines.append(_table(matrix, "Facility", "Customer", float_cells=False))
            lines.append("")
    else:
        for k, flows in report.flows.items():
            lines.append(f"Product {k + 1}")
            for flow in flows:
                lines.append(
                    f"Plant {flow.plant + 1} -> Facility {flow.facility + 1} -> "
                    f"Customer {flow.customer + 1}: {flow.amount}"
                )
            lines.append("")

    return "\n".join(lines) + "\n"


def print_report(report: SolutionReport) -> None:
    print(render_report(report), end="")


def gather_facility_rows(report: SolutionReport):
    rows = []
    for j, is_open in enumerate(report.facility_open):
        rows.append([j + 1, "OPEN" if is_open else "CLOSED", round(report.activity[j], 6)])
    return rows


def gather_flow_rows(report: SolutionReport):
    """
    One row per product movement. Single allocation gives plant->facility and
    facility->customer legs separately; divisible demand gives full paths.
    """
    rows = []
    if report.variant is Variant.SINGLE_ALLOCATION:
        for k, matrix in report.plant_to_facility.items():
            for i, row in enumerate(matrix):
                for j, amount in enumerate(row):
                    if amount > 0:
                        rows.append([k + 1, i + 1, j + 1, "", amount])
        for k, matrix in report.facility_to_customer.items():
            for j, row in enumerate(matrix):
                for r, amount in enumerate(row):
                    if amount > 0:
                        rows.append([k + 1, "", j + 1, r + 1, amount])
    else:
        for k, flows in report.flows.items():
            for flow in flows:
                rows.append([k + 1, flow.plant + 1, flow.facility + 1, flow.customer + 1, flow.amount])
    return rows


def _write_csv(final_filename, header, rows, label):
    try:
        with open(final_filename, "w", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
    except OSError as e:
        raise ReportWriteError(f"Could not write {label} CSV '{final_filename}': {e}") from e
    logger.info(f"[OK] Wrote {label} CSV: {final_filename} with {len(rows)} rows.")


def write_facility_csv(final_filename, report: SolutionReport):
    header = ["FACILITY", "STATUS", "ACTIVITY"]
    _write_csv(final_filename, header, gather_facility_rows(report), "Facility")


def write_flow_csv(final_filename, report: SolutionReport):
    header = ["PRODUCT", "PLANT", "FACILITY", "CUSTOMER", "AMOUNT"]
    _write_csv(final_filename, header, gather_flow_rows(report), "Flow")


def write_report_csvs(output_folder, report: SolutionReport) -> None:
    """Writes facility_report.csv and flow_report.csv for an optimal report."""
    if not report.is_optimal:
        logger.warning("Skipping CSV export, status=%s", report.status.value)
        return
    try:
        Path(output_folder).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ReportWriteError(f"Could not create report folder '{output_folder}': {e}") from e
    write_facility_csv(Path(output_folder) / "facility_report.csv", report)
    write_flow_csv(Path(output_folder) / "flow_report.csv", report)
