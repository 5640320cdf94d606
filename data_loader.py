import pandas as pd
from pathlib import Path
from typing import List, Sequence

from data_structures import InputData
from exceptions import MalformedInputError, MissingFileError
import cflp_utils.logging as logging
logger = logging.getLogger(__name__)

# Fixed order of the nine input tables on the command line
TABLES = (
    "demand",
    "plant_capacity",
    "facility_min_activity",
    "facility_max_activity",
    "facility_fixed_cost",
    "facility_marginal_cost",
    "product_transport_cost",
    "plant_facility_distance",
    "facility_customer_distance",
)


def check_paths_exist(paths: Sequence[str]) -> None:
    """Fail before any parsing if a table file is missing."""
    if len(paths) != len(TABLES):
        raise MalformedInputError(f"Expected {len(TABLES)} table paths, got {len(paths)}")
    for name, path in zip(TABLES, paths):
        if not Path(path).is_file():
            raise MissingFileError(f"File '{path}' ({name}) does not exist.")


def _is_blank(cells):
    return cells.isna() | (cells == "")


def read_table(path: str, name: str) -> pd.DataFrame:
    """
    Reads one header-less comma-separated numeric table.
    Rows of unequal length and non-numeric tokens are rejected.
    Trailing separators are ignored.
    """
    try:
        raw = pd.read_csv(path, header=None, dtype=str, skip_blank_lines=True)
    except pd.errors.EmptyDataError as e:
        raise MalformedInputError(f"{name}: file '{path}' is empty") from e
    except pd.errors.ParserError as e:
        raise MalformedInputError(f"{name}: inconsistent row length in '{path}' ({e})") from e
    except UnicodeDecodeError as e:
        raise MalformedInputError(f"{name}: '{path}' is not valid text ({e})") from e

    raw = raw.apply(lambda col: col.str.strip())
    while len(raw.columns) > 1 and _is_blank(raw.iloc[:, -1]).all():
        raw = raw.iloc[:, :-1]
    if _is_blank(raw).values.any():
        raise MalformedInputError(f"{name}: inconsistent row length or empty value in '{path}'")

    try:
        table = raw.apply(pd.to_numeric)
    except (ValueError, TypeError) as e:
        raise MalformedInputError(f"{name}: non-numeric token in '{path}' ({e})") from e

    logger.info("Loaded %s from %s with shape %s", name, path, table.shape)
    return table


def _as_matrix(table: pd.DataFrame) -> List[List]:
    return table.values.tolist()


def _as_vector(table: pd.DataFrame, name: str) -> List:
    if len(table.index) != 1:
        raise MalformedInputError(f"{name}: expected a single row, got {len(table.index)}")
    return table.iloc[0].tolist()


def load_input_data(paths: Sequence[str], p: int) -> InputData:
    """
    Loads the nine tables in TABLES order and builds a validated InputData.
    """
    logger.info("CHECKPOINT: Starting load_input_data...")
    check_paths_exist(paths)

    tables = {name: read_table(path, name) for name, path in zip(TABLES, paths)}

    data = InputData(
        drk=_as_matrix(tables["demand"]),
        pik=_as_matrix(tables["plant_capacity"]),
        qj_min=_as_vector(tables["facility_min_activity"], "facility_min_activity"),
        qj_max=_as_vector(tables["facility_max_activity"], "facility_max_activity"),
        fj=_as_vector(tables["facility_fixed_cost"], "facility_fixed_cost"),
        gj=_as_vector(tables["facility_marginal_cost"], "facility_marginal_cost"),
        ck=_as_vector(tables["product_transport_cost"], "product_transport_cost"),
        lij=_as_matrix(tables["plant_facility_distance"]),
        ljr=_as_matrix(tables["facility_customer_distance"]),
        p=p,
    )
    logger.info(
        "CHECKPOINT: load_input_data done. K=%d I=%d J=%d R=%d p=%d",
        data.K, data.I, data.J, data.R, data.p,
    )
    return data
