import casadi
import numpy as np

from phase_walk.errors import BoundsViolationError, ConsistencyError
from phase_walk.motion_util import *
from phase_walk.spline.polynomial3 import Polynomial3
from phase_walk.trajectory.robot_state import StateLin
from phase_walk.variables.composite import VariableSet


class NodeSpline(VariableSet):
    """
    Spline of cubic hermite polynomials that is fully defined by its nodes.
    A node holds the value and the derivative at a polynomial boundary,
    so continuity of value and derivative is given by construction.

    Polynomials can be marked constant: the two nodes of a constant polynomial
    share their value variables and have a fixed zero derivative.
    """
    n_dim: int
    poly_durations: list    # float or MX scalar per polynomial

    # for every node and derivative (POS, VEL): index into the variable vector for each dimension
    # or None when that entry is fixed to zero
    _node_index: list[list[list]]
    # for every variable: all (node_id, derivative, dimension) entries it defines
    _var_to_nodes: list[list[tuple]]


    def __init__(self, n_dim: int, n_polynomials: int, name: str, constant_polys: list[bool] = None):
        """
        :param n_dim: output dimensions of the spline.
        :param n_polynomials: number of polynomials, the spline has n_polynomials+1 nodes.
        :param constant_polys: flag per polynomial, true when it is constant.
        """
        super().__init__(name)
        assert n_polynomials >= 1
        self.n_dim = n_dim
        self._constant_polys = constant_polys if constant_polys is not None else [False]*n_polynomials
        assert len(self._constant_polys) == n_polynomials
        self.poly_durations = [1.0]*n_polynomials

        self._build_node_mapping()
        self._x = np.zeros(self.n_variables)
        self._lb = np.full(self.n_variables, -np.inf)
        self._ub = np.full(self.n_variables, np.inf)


    def _build_node_mapping(self):
        n_polys = len(self._constant_polys)
        self._node_index = [[[None]*self.n_dim, [None]*self.n_dim] for _ in range(n_polys + 1)]
        self._var_to_nodes = []

        for node_id in range(n_polys + 1):
            prev_constant = node_id > 0 and self._constant_polys[node_id - 1]
            next_constant = node_id < n_polys and self._constant_polys[node_id]

            for dim in range(self.n_dim):
                if prev_constant:
                    # second node of a constant polynomial uses the value of the first one
                    var = self._node_index[node_id - 1][POS][dim]
                    self._var_to_nodes[var].append((node_id, POS, dim))
                else:
                    var = len(self._var_to_nodes)
                    self._var_to_nodes.append([(node_id, POS, dim)])
                self._node_index[node_id][POS][dim] = var

            # derivative at nodes touching a constant polynomial stays zero
            if not (prev_constant or next_constant):
                for dim in range(self.n_dim):
                    self._node_index[node_id][VEL][dim] = len(self._var_to_nodes)
                    self._var_to_nodes.append([(node_id, VEL, dim)])


    @property
    def n_polynomials(self) -> int:
        return len(self._constant_polys)

    @property
    def n_nodes(self) -> int:
        return self.n_polynomials + 1

    def is_constant_poly(self, poly_id: int) -> bool:
        return self._constant_polys[poly_id]


    # timing
    def set_poly_durations(self, poly_durations: list):
        if len(poly_durations) != self.n_polynomials:
            raise ConsistencyError(
                f"{self.name}: has {self.n_polynomials} polynomials but got {len(poly_durations)} durations")
        self.poly_durations = [d if is_symbolic(d) else float(d) for d in poly_durations]

    def get_total_time(self):
        total = 0.0
        for d in self.poly_durations:
            total = total + d
        return total

    def get_node_times(self) -> list:
        """
        Global time of each node.
        """
        times = [0.0]
        for d in self.poly_durations:
            times.append(times[-1] + d)
        return times


    # nodes
    def _entry(self, var):
        return 0.0 if var is None else self._x[var]

    def get_node(self, node_id: int) -> StateLin:
        p = [self._entry(v) for v in self._node_index[node_id][POS]]
        v = [self._entry(v) for v in self._node_index[node_id][VEL]]
        if is_symbolic(self._x, *self.poly_durations):
            # fixed zero entries become DM, numpy values must not meet MX on the left side
            return StateLin(p=casadi.vertcat(*p), v=casadi.vertcat(*v))
        return StateLin(p=stack(p), v=stack(v))

    def get_nodes(self) -> list[StateLin]:
        return [self.get_node(i) for i in range(self.n_nodes)]

    def get_var_index(self, node_id: int, deriv: int, dim: int):
        """
        Index of the variable that defines the node entry, None if it is fixed to zero.
        """
        return self._node_index[node_id][deriv][dim]

    def get_polynomial(self, poly_id: int) -> Polynomial3:
        n0 = self.get_node(poly_id)
        n1 = self.get_node(poly_id + 1)
        return Polynomial3(x0=n0.p, dx0=n0.v, x1=n1.p, dx1=n1.v, deltaT=self.poly_durations[poly_id])


    def initialize_variables(self, initial_pos, final_pos, poly_durations: list):
        """
        Initial guess: node values are linearly interpolated between initial_pos and final_pos
        over the total duration, derivatives are set to the average velocity.
        """
        self.set_poly_durations(poly_durations)
        assert not is_symbolic(self._x, *self.poly_durations), "initialize only numeric splines"
        initial_pos = to_flat_array(initial_pos)
        final_pos = to_flat_array(final_pos)
        assert initial_pos.shape[0] == self.n_dim and final_pos.shape[0] == self.n_dim

        total_time = self.get_total_time()
        average_velocity = (final_pos - initial_pos) / total_time
        node_times = self.get_node_times()

        for var, entries in enumerate(self._var_to_nodes):
            node_id, deriv, dim = entries[0]
            if deriv == POS:
                self._x[var] = initial_pos[dim] + average_velocity[dim] * node_times[node_id]
            else:
                self._x[var] = average_velocity[dim]


    # bounds
    def add_bound(self, node_id: int, deriv: int, dimensions: list[int], values):
        """
        Fix the given dimensions of one node entry to values (values has n_dim entries).
        The node is set to that value and its variable bounds are collapsed to it.
        """
        values = to_flat_array(values)
        for dim in dimensions:
            var = self._node_index[node_id][deriv][dim]
            if var is None:
                # entry is structurally zero
                if values[dim] != 0:
                    raise BoundsViolationError(
                        f"{self.name}: node {node_id} derivative {deriv} dim {dim} is fixed to zero, can't bound it to {values[dim]}")
                continue
            self._lb[var] = values[dim]
            self._ub[var] = values[dim]
            self._x[var] = values[dim]

    def add_start_bound(self, deriv: int, dimensions: list[int], values):
        self.add_bound(0, deriv, dimensions, values)

    def add_final_bound(self, deriv: int, dimensions: list[int], values):
        self.add_bound(self.n_nodes - 1, deriv, dimensions, values)

    def set_value_bounds(self, dim: int, lower: float, upper: float):
        """
        Bound the value (not derivative) of dimension dim at all nodes.
        """
        for node_id in range(self.n_nodes):
            var = self._node_index[node_id][POS][dim]
            self._lb[var] = max(self._lb[var], lower)
            self._ub[var] = min(self._ub[var], upper)


    # variable set
    @property
    def n_variables(self) -> int:
        return len(self._var_to_nodes)

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


    # evaluation
    @staticmethod
    def val_if_in_range(range_start_t, range_end_t, t, value, include_end=False):
        """
        Outputs value when t is in range [range_start_t, range_end_t).
        This is used during optimization when the polynomial durations are variables, t has to be a scalar.
        :return: casadi.MX expression
        """
        zero_value = 0
        if hasattr(value, 'shape'):
            zero_value = np.zeros(value.shape)
        in_range_end = (t <= range_end_t) if include_end else (t < range_end_t)
        return casadi.if_else(casadi.logic_and(t >= range_start_t, in_range_end),
                              value,  # if true
                              zero_value,  # if false
                              )

    def get_local_time(self, t: float) -> (int, float):
        """
        Polynomial that is active at global time t and the time relative to its start.
        """
        t = clamp_time(t, self.get_total_time(), self.name)
        t_start = 0.0
        for i, d in enumerate(self.poly_durations):
            if t < t_start + d or i == self.n_polynomials - 1:
                return i, min(t - t_start, d)
            t_start += d

    def get_point(self, t: float) -> StateLin:
        """
        Value, first and second derivative at global time t (t=0 is the spline start).
        Times outside of [0, total time] raise OutOfRangeError (see clamp_time).
        """
        if is_symbolic(*self.poly_durations):
            return self.__get_point_variable_durations(t)
        poly_id, t_local = self.get_local_time(t)
        return self.get_polynomial(poly_id).get_point(t_local)

    def __get_point_variable_durations(self, t: float) -> StateLin:
        # each polynomial has own if_else to activate it
        p = v = a = 0
        t_start = 0.0
        for i, d in enumerate(self.poly_durations):
            state = self.get_polynomial(i).get_point(t - t_start)
            is_last = i == self.n_polynomials - 1
            p = p + NodeSpline.val_if_in_range(t_start, t_start + d, t, state.p, include_end=is_last)
            v = v + NodeSpline.val_if_in_range(t_start, t_start + d, t, state.v, include_end=is_last)
            a = a + NodeSpline.val_if_in_range(t_start, t_start + d, t, state.a, include_end=is_last)
            t_start = t_start + d
        return StateLin(p, v, a)
