"""Problem variant and the immutable input value object."""
from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence, Tuple

from exceptions import InvalidParameterError, MalformedInputError

Vector = Tuple[Any, ...]
Matrix = Tuple[Tuple[Any, ...], ...]


class Variant(Enum):
    SINGLE_ALLOCATION = "single"
    DIVISIBLE_DEMAND = "divisible"

    @classmethod
    def from_token(cls, token: str) -> "Variant":
        for variant in cls:
            if variant.value == token:
                return variant
        raise InvalidParameterError(
            f"Unknown variant '{token}', expected one of: {', '.join(v.value for v in cls)}"
        )


def _number(name: str, value: Any, integral: bool) -> Any:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MalformedInputError(f"{name}: non-numeric value {value!r}")
    if not math.isfinite(value):
        raise MalformedInputError(f"{name}: non-finite value {value!r}")
    if integral:
        if isinstance(value, numbers.Integral):
            return int(value)
        if not float(value).is_integer():
            raise MalformedInputError(f"{name}: expected an integer, got {value!r}")
        return int(value)
    return float(value)


def _vector(name: str, values: Sequence[Any], size: int, integral: bool) -> Vector:
    values = tuple(_number(name, v, integral) for v in values)
    if len(values) != size:
        raise MalformedInputError(f"{name}: expected {size} values, got {len(values)}")
    return values


def _matrix(name: str, rows: Sequence[Sequence[Any]], n_rows: int, n_cols: int, integral: bool) -> Matrix:
    rows = tuple(tuple(_number(name, v, integral) for v in row) for row in rows)
    if len(rows) != n_rows:
        raise MalformedInputError(f"{name}: expected {n_rows} rows, got {len(rows)}")
    for idx, row in enumerate(rows):
        if len(row) != n_cols:
            raise MalformedInputError(
                f"{name}: row {idx + 1} has {len(row)} values, expected {n_cols}"
            )
    return rows


def _non_negative(name: str, values) -> None:
    for idx, v in enumerate(values):
        if isinstance(v, tuple):
            _non_negative(f"{name}[{idx}]", v)
        elif v < 0:
            raise InvalidParameterError(f"{name}[{idx}] must be non-negative, got {v}")


def validate_parameters(data: "InputData") -> None:
    """
    Facility-count and activity-bound checks. Run by InputData on
    construction and again by the model builder before any solver call.
    """
    if not 0 <= data.p <= data.J:
        raise InvalidParameterError(
            f"Desired open facilities p={data.p} must lie in [0, {data.J}]"
        )
    for j, (q_min, q_max) in enumerate(zip(data.qj_min, data.qj_max)):
        if q_min > q_max:
            raise InvalidParameterError(
                f"Facility {j + 1}: minimum activity {q_min} exceeds maximum activity {q_max}"
            )


@dataclass(frozen=True)
class InputData:
    """
    Validated sets and parameters of one CFLP instance.

    Domain sizes come from the tables themselves: R and K from the demand
    table, I from the plant capacity table, J from the minimum activity
    vector. Every other table must agree with them.
    """
    drk: Matrix  # demand of product k for customer r (R x K)
    pik: Matrix  # capacity of product k at plant i (I x K)
    qj_min: Vector  # minimum activity level for facility j
    qj_max: Vector  # maximum activity level for facility j
    fj: Vector  # facility fixed cost
    gj: Vector  # facility marginal cost
    ck: Vector  # unit transportation cost for product k
    lij: Matrix  # distance from plant i to facility j
    ljr: Matrix  # distance from facility j to customer r
    p: int  # desired number of open facilities

    def __post_init__(self):
        for name in ("drk", "pik", "lij", "ljr"):
            if any(not isinstance(row, (list, tuple)) for row in getattr(self, name)):
                raise MalformedInputError(f"{name}: expected a table of rows")
        if not self.drk or not self.drk[0]:
            raise MalformedInputError("drk: demand table is empty")
        if not self.pik:
            raise MalformedInputError("pik: plant capacity table is empty")
        if not self.qj_min:
            raise MalformedInputError("qj_min: facility table is empty")

        R, K = len(self.drk), len(self.drk[0])
        I = len(self.pik)
        J = len(self.qj_min)

        fields = {
            "drk": _matrix("drk", self.drk, R, K, integral=True),
            "pik": _matrix("pik", self.pik, I, K, integral=True),
            "qj_min": _vector("qj_min", self.qj_min, J, integral=True),
            "qj_max": _vector("qj_max", self.qj_max, J, integral=True),
            "fj": _vector("fj", self.fj, J, integral=False),
            "gj": _vector("gj", self.gj, J, integral=False),
            "ck": _vector("ck", self.ck, K, integral=False),
            "lij": _matrix("lij", self.lij, I, J, integral=False),
            "ljr": _matrix("ljr", self.ljr, J, R, integral=False),
            "p": _number("p", self.p, integral=True),
        }
        # frozen: bypass __setattr__ to store the normalized tuples
        for name, value in fields.items():
            object.__setattr__(self, name, value)

        for name in ("drk", "pik", "qj_min", "qj_max", "fj", "ck", "lij", "ljr"):
            _non_negative(name, getattr(self, name))
        validate_parameters(self)

    # Sizes
    @property
    def K(self) -> int:
        return len(self.ck)

    @property
    def I(self) -> int:  # noqa: E743
        return len(self.pik)

    @property
    def J(self) -> int:
        return len(self.qj_min)

    @property
    def R(self) -> int:
        return len(self.drk)

    # Index ranges
    @property
    def products(self) -> range:
        return range(self.K)

    @property
    def plants(self) -> range:
        return range(self.I)

    @property
    def facilities(self) -> range:
        return range(self.J)

    @property
    def customers(self) -> range:
        return range(self.R)

    def bundle_size(self, r: int) -> int:
        """Total demand of customer r over all products."""
        return sum(self.drk[r])
