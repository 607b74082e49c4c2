"""
Solve status and solution container for lpbridge
"""
from enum import Enum
from typing import Optional, Dict, Any


class Status(Enum):
    """
    Outcome of a solve attempt.

    A fresh model is ``UNKNOWN``. Every solve attempt starts again from
    ``UNKNOWN`` and ends in exactly one of the other states, determined
    solely by the solver output.
    """
    UNKNOWN = 'UNKNOWN'
    OPTIMAL = 'OPTIMAL'
    INFEASIBLE = 'INFEASIBLE'
    UNBOUNDED = 'UNBOUNDED'
    ERROR = 'ERROR'
    BOUNDED = 'BOUNDED'
    FEASIBLE = 'FEASIBLE'
    INFEASIBLE_OR_UNBOUNDED = 'INFEASIBLE_OR_UNBOUNDED'


class Solution:
    """
    Result of a solve attempt.

    Attributes
    ----------
    status : Status
        Terminal status of the attempt
    values : dict
        Mapping from variable index to value
    objective_value : float or None
        Objective value reported by the solver

    Methods
    -------
    is_optimal()
        Check if solution is optimal
    to_dict()
        Convert solution to dictionary
    """

    def __init__(self, status: Status = Status.UNKNOWN,
                 values: Optional[Dict[int, float]] = None,
                 objective_value: Optional[float] = None):
        self.status = status
        self.values: Dict[int, float] = dict(values or {})
        self.objective_value = objective_value

    def is_optimal(self) -> bool:
        """Check if solution is optimal"""
        return self.status == Status.OPTIMAL

    def is_feasible(self) -> bool:
        """Check if the solution carries usable variable values"""
        return self.status in (Status.OPTIMAL, Status.FEASIBLE) and bool(self.values)

    def clear(self):
        """Drop all values, keeping the status"""
        self.values.clear()
        self.objective_value = None

    def __repr__(self):
        return (f"Solution(status='{self.status.value}', "
                f"objective_value={self.objective_value}, "
                f"n_values={len(self.values)})")

    def __str__(self):
        lines = [
            "Solution",
            "=" * 50,
            f"Status:          {self.status.value}",
        ]
        if self.objective_value is not None:
            lines.append(f"Objective:       {self.objective_value:.6e}")
        lines.append(f"Values:          {len(self.values)}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        """Convert solution to dictionary"""
        return {
            'status': self.status.value,
            'values': dict(self.values),
            'objective_value': self.objective_value,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]):
        """Create Solution from dictionary"""
        return cls(
            status=Status(d.get('status', Status.UNKNOWN.value)),
            values={int(k): float(v) for k, v in (d.get('values') or {}).items()},
            objective_value=d.get('objective_value'),
        )
