"""
Tests for variables, naming counters and the builder API
"""
import threading

import numpy as np
import pytest

from lpbridge import (
    Constraint, ConstraintType, Counters, ExpressionTypeError, Model,
    ObjectiveSense, Product, Sum, ValidationError, VarKind,
)


class TestVariables:
    """Variable registry behavior"""

    def test_default_names_use_kind_and_counter(self, model):
        x = model.num_var()
        n = model.int_var()
        b = model.bool_var()
        assert (x.name, n.name, b.name) == ("NumVar_0", "IntVar_1", "BoolVar_2")

    def test_indices_follow_creation_order(self, model):
        variables = model.new_variables(4, name_prefix='x')
        assert [v.index for v in variables] == [0, 1, 2, 3]
        assert [v.name for v in variables] == ['x0', 'x1', 'x2', 'x3']
        assert all(a is b for a, b in zip(model.variables, variables))

    def test_default_bounds_per_kind(self, model):
        x = model.num_var()
        n = model.int_var()
        b = model.bool_var()
        assert (x.lower_bound, x.upper_bound) == (0.0, np.inf)
        assert (n.lower_bound, n.upper_bound) == (0, np.inf)
        assert (b.lower_bound, b.upper_bound) == (0, 1)

    def test_new_variable_accepts_kind_string(self, model):
        v = model.new_variable('integer', -3, 3, name='v')
        assert v.kind is VarKind.INTEGER
        assert v.is_integer

    def test_inverted_bounds_rejected_at_creation(self, model):
        with pytest.raises(ValidationError):
            model.num_var(10, 5)
        assert len(model.variables) == 0

    def test_lower_bound_above_upper_fails_and_keeps_bounds(self, model):
        v = model.num_var(0, 10, name='v')
        with pytest.raises(ValidationError):
            model.set_lower_bound(v, 100)
        assert (v.lower_bound, v.upper_bound) == (0.0, 10.0)

    def test_upper_bound_below_lower_fails_and_keeps_bounds(self, model):
        v = model.int_var(5, 8, name='v')
        with pytest.raises(ValidationError):
            v.upper_bound = 4
        assert (v.lower_bound, v.upper_bound) == (5, 8)

    def test_set_bounds_is_atomic(self, model):
        v = model.num_var(0, 10)
        with pytest.raises(ValidationError):
            v.set_bounds(7, 3)
        assert (v.lower_bound, v.upper_bound) == (0.0, 10.0)
        v.set_bounds(-1, 1)
        assert (v.lower_bound, v.upper_bound) == (-1.0, 1.0)

    def test_integer_bounds_must_be_integral(self, model):
        n = model.int_var()
        with pytest.raises(ValidationError):
            n.upper_bound = 2.5
        n.upper_bound = 3.0
        assert n.upper_bound == 3 and isinstance(n.upper_bound, int)

    def test_binary_bounds_stay_within_unit_interval(self, model):
        b = model.bool_var()
        with pytest.raises(ValidationError):
            b.upper_bound = 2
        b.lower_bound = 1
        assert (b.lower_bound, b.upper_bound) == (1, 1)

    def test_nan_bound_rejected(self, model):
        v = model.num_var()
        with pytest.raises(ValidationError):
            v.upper_bound = float('nan')

    def test_names_are_mutable_and_not_unique(self, model):
        a = model.num_var(name='dup')
        b = model.num_var(name='dup')
        a.name = 'renamed'
        assert b.name == 'dup'
        assert model.get_variable('dup') is b

    def test_foreign_variable_rejected(self, model):
        other = Model(counters=Counters())
        v = other.num_var()
        with pytest.raises(ValidationError):
            model.set_upper_bound(v, 3)


class TestCounters:
    """Naming counters"""

    def test_counters_are_monotonic(self):
        counters = Counters()
        assert [counters.next_constraint() for _ in range(3)] == [0, 1, 2]
        assert counters.current_constraint == 3
        assert counters.current_variable == 0

    def test_concurrent_increments_lose_nothing(self):
        counters = Counters()
        seen = []
        lock = threading.Lock()

        def worker():
            local = [counters.next_variable() for _ in range(1000)]
            with lock:
                seen.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(seen)) == 8000
        assert counters.current_variable == 8000

    def test_models_share_global_counters_by_default(self):
        a = Model().num_var()
        b = Model().num_var()
        assert a.name != b.name


class TestBuilder:
    """Expression, constraint and objective builder methods"""

    def test_operators_build_deferred_nodes(self, model):
        x = model.num_var()
        y = model.num_var()
        assert isinstance(x + y, Sum)
        assert isinstance(3 * x, Product)
        assert isinstance(x - y, Sum)
        assert isinstance(-x, Product)

    def test_sum_and_prod_helpers(self, model):
        x = model.num_var()
        assert isinstance(model.sum(x, 1, 2), Sum)
        assert len(model.sum([x, x]).children) == 2
        assert isinstance(model.prod(2, x), Product)
        with pytest.raises(ExpressionTypeError):
            model.prod(x, x)

    def test_multiplying_two_expressions_is_rejected(self, model):
        x = model.num_var()
        y = model.num_var()
        with pytest.raises(ExpressionTypeError):
            x * y
        with pytest.raises(ExpressionTypeError):
            x / y

    def test_non_numeric_operand_is_rejected(self, model):
        x = model.num_var()
        with pytest.raises(TypeError):
            x + "1"

    def test_add_constraint_names(self, model):
        x = model.num_var()
        c0 = model.add_le(x, 1)
        c1 = model.add_ge(x, 0, name='lower')
        c2 = model.add_constraint(x == 1)
        assert (c0.name, c1.name, c2.name) == ("Constraint_0", "lower", "Constraint_1")
        assert [c.type for c in model.constraints] == [
            ConstraintType.LE, ConstraintType.GE, ConstraintType.EQ]

    def test_constraints_keep_raw_expressions(self, model):
        x = model.num_var()
        c = model.add_eq(x + 1, 2 * x)
        assert isinstance(c.lhs, Sum)
        assert isinstance(c.rhs, Product)

    def test_add_constraint_requires_constraint(self, model):
        x = model.num_var()
        with pytest.raises(ExpressionTypeError):
            model.add_constraint(x)

    def test_constraint_has_no_truth_value(self, model):
        x = model.num_var()
        with pytest.raises(TypeError):
            bool(x <= 1)

    def test_constraint_str(self, model):
        x = model.num_var(name='x')
        c = model.add_constraint(x <= 4, name='cap')
        assert isinstance(c, Constraint)
        assert str(c) == "cap: x <= 4"

    def test_objective_replaces_previous(self, model):
        x = model.num_var(name='x')
        first = model.add_minimize(x)
        second = model.add_maximize(2 * x + 1)
        assert model.objective is second
        assert first.name == "Objective_0"
        assert second.name == "Objective_1"
        assert second.sense is ObjectiveSense.MAXIMIZE
        assert second.constant == pytest.approx(1.0)

    def test_objective_sense_from_string(self, model):
        x = model.num_var()
        obj = model.add_objective('Maximize', x, name='profit')
        assert obj.sense is ObjectiveSense.MAXIMIZE
        assert obj.name == 'profit'

    def test_clear_objective_expression(self, model):
        x = model.num_var()
        obj = model.add_minimize(x + 3)
        obj.clear_expr()
        assert obj.constant == 0

    def test_values_unavailable_before_solve(self, model):
        x = model.num_var()
        with pytest.raises(RuntimeError):
            model.get_value(x)
        with pytest.raises(RuntimeError):
            model.objective_value
