# config.py
"""
Run configuration: solver limits, decoding tolerances and logging options.
Solver fields are named after the Gurobi parameters they set.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

from exceptions import ConfigError


SOLVER_PARAMS = ("TimeLimit", "MIPGap", "Threads")


@dataclass
class RunConfig:
    # Solver limits (None leaves the Gurobi default)
    TimeLimit: Optional[float] = None  # seconds
    MIPGap: Optional[float] = None
    Threads: Optional[int] = None
    OutputFlag: int = 0

    # Decoding tolerances
    BinaryThreshold: float = 0.99
    FlowReportThreshold: float = 0.0

    # Logging
    LogLevel: str = "INFO"
    LogDir: Optional[str] = None

    def update(self, **kwargs) -> None:
        """
        Programmatic override of fields, with safety for unknown keys.
        Example:
            config.update(TimeLimit=60, MIPGap=0.01)
        """
        for k, v in kwargs.items():
            if hasattr(self, k):
                setattr(self, k, v)
            else:
                raise ConfigError(f"Unknown config field: {k}")

    def update_from_args(self, args) -> None:
        """
        Accepts the argparse namespace built by main.py. Flags left at None
        keep the current value.
        """
        mapping = {
            "time_limit": "TimeLimit",
            "mip_gap": "MIPGap",
            "threads": "Threads",
            "log_level": "LogLevel",
            "log_dir": "LogDir",
        }
        overrides = {}
        for arg_name, field_name in mapping.items():
            value = getattr(args, arg_name, None)
            if value is not None:
                overrides[field_name] = value
        if getattr(args, "solver_output", False):
            overrides["OutputFlag"] = 1
        self.update(**overrides)

    def solver_params(self) -> Dict[str, Any]:
        """Gurobi parameters to apply to the model, skipping unset ones."""
        return {name: getattr(self, name) for name in SOLVER_PARAMS if getattr(self, name) is not None}

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "RunConfig",
    "SOLVER_PARAMS",
]
