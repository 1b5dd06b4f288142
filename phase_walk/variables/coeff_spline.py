import numpy as np

from phase_walk.errors import ConsistencyError
from phase_walk.motion_util import *
from phase_walk.spline.polynomial_coeff import PolynomialCoeff
from phase_walk.trajectory.robot_state import StateLin
from phase_walk.variables.composite import Component, VariableSet


class PolynomialVars(VariableSet):
    """
    The coefficients of one polynomial as optimization variables.
    Flat order is coefficient major: a0 (all dims), a1 (all dims), ...
    """
    n_dim: int
    order: int

    def __init__(self, name: str, order: int, n_dim: int = 3):
        super().__init__(name)
        self.n_dim = n_dim
        self.order = order
        n = PolynomialCoeff.get_required_num_parameters_for_dim(n_dim, order)
        self._x = np.zeros(n)
        self._lb = np.full(n, -np.inf)
        self._ub = np.full(n, np.inf)

    def get_polynomial(self) -> PolynomialCoeff:
        return PolynomialCoeff([
            self._x[get_range_for_dimensional_index(k, self.n_dim)] for k in range(self.order + 1)
        ])

    def set_coefficient(self, k: int, values):
        self._x[get_range_for_dimensional_index(k, self.n_dim)] = to_flat_array(values)

    def add_coefficient_bound(self, k: int, dim: int, value: float):
        i = k*self.n_dim + dim
        self._lb[i] = value
        self._ub[i] = value
        self._x[i] = value

    @property
    def n_variables(self) -> int:
        return len(self._lb)

    def get_values(self):
        if is_symbolic(self._x):
            return self._x
        return np.array(self._x)

    def set_variables(self, x):
        x = as_numeric_or_symbolic_vector(x)
        self._check_length(x)
        self._x = x if is_symbolic(x) else np.array(x)

    def get_bounds(self) -> (np.ndarray, np.ndarray):
        return np.array(self._lb), np.array(self._ub)


class CoeffSpline(Component):
    """
    Sequence of independent coefficient polynomials with fixed durations.
    Continuity between the polynomials is not part of this class, it has to be added as constraint.
    The polynomial variables are separate decision bearing components, this just gives access
    to them as one trajectory.
    """
    poly_durations: list[float]
    poly_vars: list[PolynomialVars]
    # requested final bounds (derivative, dimensions, values), enforced by constraints
    final_bounds: list[tuple]

    def __init__(self, name: str, poly_durations: list[float]):
        super().__init__(name)
        self.poly_durations = [float(d) for d in poly_durations]
        self.poly_vars = []
        self.final_bounds = []

    def add_polynomial(self, poly_vars: PolynomialVars):
        if len(self.poly_vars) >= len(self.poly_durations):
            raise ConsistencyError(f"{self.name}: more polynomials than durations")
        self.poly_vars.append(poly_vars)

    def get_total_time(self) -> float:
        return sum(self.poly_durations)

    def get_polynomial(self, poly_id: int) -> PolynomialCoeff:
        return self.poly_vars[poly_id].get_polynomial()

    def get_local_time(self, t: float) -> (int, float):
        t = clamp_time(t, self.get_total_time(), self.name)
        t_start = 0.0
        for i, d in enumerate(self.poly_durations):
            if t < t_start + d or i == len(self.poly_durations) - 1:
                return i, min(t - t_start, d)
            t_start += d

    def get_point(self, t: float) -> StateLin:
        assert len(self.poly_vars) == len(self.poly_durations), f"{self.name}: not all polynomials added"
        poly_id, t_local = self.get_local_time(t)
        return self.get_polynomial(poly_id).get_point(t_local)


    def initialize_variables(self, initial_pos, final_pos):
        """
        Initial guess: each polynomial starts on the straight line between initial and final position
        and moves with the average velocity.
        """
        initial_pos = to_flat_array(initial_pos)
        final_pos = to_flat_array(final_pos)
        average_velocity = (final_pos - initial_pos) / self.get_total_time()
        t_start = 0.0
        for poly_vars, d in zip(self.poly_vars, self.poly_durations):
            poly_vars.set_coefficient(0, initial_pos + average_velocity*t_start)
            poly_vars.set_coefficient(1, average_velocity)
            for k in range(2, poly_vars.order + 1):
                poly_vars.set_coefficient(k, np.zeros(poly_vars.n_dim))
            t_start += d

    def add_start_bound(self, deriv: int, dimensions: list[int], values):
        """
        Fix value (POS) or first derivative (VEL) at t=0, these are directly coefficients of the first polynomial.
        """
        assert deriv in [POS, VEL]
        values = to_flat_array(values)
        for dim in dimensions:
            self.poly_vars[0].add_coefficient_bound(deriv, dim, values[dim])

    def add_final_bound(self, deriv: int, dimensions: list[int], values):
        self.final_bounds.append((deriv, list(dimensions), to_flat_array(values)))
