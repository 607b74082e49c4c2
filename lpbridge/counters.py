"""
Monotonic naming counters for variables, constraints and objectives
"""
import threading


class Counters:
    """
    Thread-safe allocator of the integers used in default names.

    Every ``Model`` owns a reference to a ``Counters`` instance. By default
    all models share :data:`GLOBAL_COUNTERS`, so default names stay unique
    across models built in the same process. Pass a fresh instance to a
    model to get names that only depend on that model.

    Examples
    --------
    >>> counters = Counters()
    >>> counters.next_variable()
    0
    >>> counters.next_variable()
    1
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._variable = 0
        self._constraint = 0
        self._objective = 0

    def next_variable(self) -> int:
        with self._lock:
            value = self._variable
            self._variable += 1
        return value

    def next_constraint(self) -> int:
        with self._lock:
            value = self._constraint
            self._constraint += 1
        return value

    def next_objective(self) -> int:
        with self._lock:
            value = self._objective
            self._objective += 1
        return value

    @property
    def current_variable(self) -> int:
        with self._lock:
            return self._variable

    @property
    def current_constraint(self) -> int:
        with self._lock:
            return self._constraint

    @property
    def current_objective(self) -> int:
        with self._lock:
            return self._objective

    def __repr__(self):
        return (f"Counters(variable={self.current_variable}, "
                f"constraint={self.current_constraint}, "
                f"objective={self.current_objective})")


GLOBAL_COUNTERS = Counters()
