from abc import abstractmethod

import casadi
import numpy as np

from phase_walk.models.robot_model import RobotModel
from phase_walk.models.terrain import HeightMap
from phase_walk.motion_util import *
from phase_walk.rotations import R_world_frame_to_base_frame_euler
from phase_walk.variables.coeff_spline import CoeffSpline
from phase_walk.variables.composite import Component, Composite
from phase_walk.variables.contact_schedule import ContactSchedule
from phase_walk.variables.node_spline import NodeSpline
from phase_walk.variables.phase_nodes import EndeffectorNodes, ForceNodes
from phase_walk.variables.variable_names import *


# accessors for the components of a variable tree
def get_base_spline(variables: Composite, base_id: str) -> NodeSpline | CoeffSpline:
    return variables.get_component(base_id, (NodeSpline, CoeffSpline))

def get_ee_position(variables: Composite, ee: int, t):
    xy = variables.get_component(ee_motion_xy_id(ee), EndeffectorNodes).get_point(t).p
    z = variables.get_component(ee_motion_z_id(ee), EndeffectorNodes).get_point(t).p
    return casadi.vertcat(as_casadi(xy), as_casadi(z))

def get_ee_force(variables: Composite, ee: int, t):
    return as_casadi(variables.get_component(ee_force_id(ee), ForceNodes).get_point(t).p)


class ConstraintSet(Component):
    """
    Group of constraint rows  lb <= g(x) <= ub.
    The rows are read from a variable tree passed at evaluation time,
    so the same set works on the numeric tree and on its symbolic copy.
    """

    @abstractmethod
    def get_rows(self, variables: Composite) -> list[tuple]:
        """
        :return: list of (value, lower bound, upper bound), value is a casadi DM or MX column,
                 the bounds are scalars or arrays of the same length.
        """
        pass

    def evaluate(self, variables: Composite):
        """
        :return: g (stacked values), lbg, ubg
        """
        values = []
        lb = [np.zeros(0)]
        ub = [np.zeros(0)]
        for value, lower, upper in self.get_rows(variables):
            n = vector_length(value)
            values.append(value)
            lb.append(np.broadcast_to(np.asarray(lower, dtype=float), (n,)))
            ub.append(np.broadcast_to(np.asarray(upper, dtype=float), (n,)))
        g = casadi.vertcat(*values) if len(values) > 0 else casadi.DM(0, 1)
        return g, np.concatenate(lb), np.concatenate(ub)

    def get_num_rows(self, variables: Composite) -> int:
        return vector_length(self.evaluate(variables)[0])


class DynamicConstraint(ConstraintSet):
    """
    Linear single rigid body dynamics:  m * base_acc = sum(ee_forces) + m * gravity.
    Enforced at time points every dt over the whole horizon.
    """

    def __init__(self, model: RobotModel, total_time: float, dt: float):
        super().__init__('dynamic')
        self.model = model
        self.time_points = get_sample_times(total_time, dt)

    def get_rows(self, variables: Composite) -> list[tuple]:
        base_linear = get_base_spline(variables, BASE_LINEAR)
        m = self.model.mass
        gravity = casadi.DM([0, 0, -self.model.gravity_acc])
        rows = []
        for t in self.time_points:
            base_acc = as_casadi(base_linear.get_point(t).a)
            sum_forces = casadi.DM.zeros(3)
            for ee in self.model.get_ee_ids():
                sum_forces = sum_forces + get_ee_force(variables, ee, t)
            rows.append((m*base_acc - sum_forces - m*gravity, 0, 0))
        return rows


class RangeOfMotionConstraint(ConstraintSet):
    """
    Each endeffector stays inside a box around its nominal stance, expressed in base frame.
    """

    def __init__(self, model: RobotModel, total_time: float, dt: float):
        super().__init__('range_of_motion')
        self.model = model
        self.time_points = get_sample_times(total_time, dt)

    def get_rows(self, variables: Composite) -> list[tuple]:
        base_linear = get_base_spline(variables, BASE_LINEAR)
        base_angular = get_base_spline(variables, BASE_ANGULAR)
        max_deviation = self.model.max_deviation_from_nominal
        rows = []
        for t in self.time_points:
            base_pos = as_casadi(base_linear.get_point(t).p)
            R = R_world_frame_to_base_frame_euler(as_casadi(base_angular.get_point(t).p))
            for ee, nominal in enumerate(self.model.get_nominal_stance_in_base()):
                ee_pos_b = R @ (get_ee_position(variables, ee, t) - base_pos)
                rows.append((ee_pos_b - casadi.DM(nominal), -max_deviation, max_deviation))
        return rows


class TerrainConstraint(ConstraintSet):
    """
    Endeffector height: on the terrain during contact, above it during swing.
    """

    def __init__(self, terrain: HeightMap, ee_ids: list[int]):
        super().__init__('terrain')
        self.terrain = terrain
        self.ee_ids = ee_ids

    def get_rows(self, variables: Composite) -> list[tuple]:
        rows = []
        for ee in self.ee_ids:
            motion_xy = variables.get_component(ee_motion_xy_id(ee), EndeffectorNodes)
            motion_z = variables.get_component(ee_motion_z_id(ee), EndeffectorNodes)
            for phase in range(motion_z.num_phases):
                xy = motion_xy.get_node(motion_xy.get_phase_node_ids(phase)[0]).p
                height = self.terrain.get_height(xy[X], xy[Y])
                z_node_ids = motion_z.get_phase_node_ids(phase)
                if motion_z.is_contact_phase(phase):
                    # constant phase, both nodes share the value
                    rows.append((as_casadi(motion_z.get_node(z_node_ids[0]).p) - height, 0, 0))
                else:
                    # boundary nodes belong to the neighbouring contact phases
                    if phase > 0:
                        z_node_ids = z_node_ids[1:]
                    if phase < motion_z.num_phases - 1:
                        z_node_ids = z_node_ids[:-1]
                    for node_id in z_node_ids:
                        rows.append((as_casadi(motion_z.get_node(node_id).p) - height, 0, np.inf))
        return rows


class ForceConstraint(ConstraintSet):
    """
    Stance forces push into the ground and stay inside the linearized friction pyramid (flat ground normal).
    """

    def __init__(self, ee_ids: list[int], friction_coefficient: float):
        super().__init__('force')
        self.ee_ids = ee_ids
        self.mu = friction_coefficient

    def get_rows(self, variables: Composite) -> list[tuple]:
        rows = []
        for ee in self.ee_ids:
            force = variables.get_component(ee_force_id(ee), ForceNodes)
            for node_id in force.get_value_var_ids_in_phases(in_contact=True):
                f = as_casadi(force.get_node(node_id).p)
                rows.append((f[Z], 0, np.inf))
                rows.append((casadi.vertcat(
                     f[X] - self.mu*f[Z],
                    -f[X] - self.mu*f[Z],
                     f[Y] - self.mu*f[Z],
                    -f[Y] - self.mu*f[Z],
                ), -np.inf, 0))
        return rows


class SwingConstraint(ConstraintSet):
    """
    No force while an endeffector is in the air.
    """

    def __init__(self, ee_ids: list[int]):
        super().__init__('swing')
        self.ee_ids = ee_ids

    def get_rows(self, variables: Composite) -> list[tuple]:
        rows = []
        for ee in self.ee_ids:
            force = variables.get_component(ee_force_id(ee), ForceNodes)
            for phase in range(force.num_phases):
                if force.is_constant_phase(phase):
                    node_id = force.get_phase_node_ids(phase)[0]
                    rows.append((as_casadi(force.get_node(node_id).p), 0, 0))
        return rows


class TotalTimeConstraint(ConstraintSet):
    """
    Optimized phase durations of every schedule still sum up to the horizon.
    """

    def __init__(self, ee_ids: list[int], total_time: float):
        super().__init__('total_time')
        self.ee_ids = ee_ids
        self.total_time = total_time

    def get_rows(self, variables: Composite) -> list[tuple]:
        rows = []
        for ee in self.ee_ids:
            schedule = variables.get_component(ee_schedule_id(ee), ContactSchedule)
            rows.append((as_casadi(schedule.get_total_time()), self.total_time, self.total_time))
        return rows


class BasePolyContinuityConstraint(ConstraintSet):
    """
    Value, first and second derivative of neighbouring coefficient polynomials match at their junction.
    Only applies to base trajectories represented by a CoeffSpline.
    """

    def __init__(self):
        super().__init__('base_poly_continuity')

    def get_rows(self, variables: Composite) -> list[tuple]:
        rows = []
        for base_id in [BASE_LINEAR, BASE_ANGULAR]:
            spline = get_base_spline(variables, base_id)
            if not isinstance(spline, CoeffSpline):
                continue
            for i in range(len(spline.poly_durations) - 1):
                end = spline.get_polynomial(i).get_point(spline.poly_durations[i])
                start = spline.get_polynomial(i + 1).get_point(0)
                for end_value, start_value in [(end.p, start.p), (end.v, start.v), (end.a, start.a)]:
                    rows.append((as_casadi(end_value) - as_casadi(start_value), 0, 0))
        return rows


class BaseFinalStateConstraint(ConstraintSet):
    """
    Final bounds requested on a CoeffSpline base trajectory (its variables can't carry them directly).
    """

    def __init__(self):
        super().__init__('base_final_state')

    def get_rows(self, variables: Composite) -> list[tuple]:
        rows = []
        for base_id in [BASE_LINEAR, BASE_ANGULAR]:
            spline = get_base_spline(variables, base_id)
            if not isinstance(spline, CoeffSpline):
                continue
            last = len(spline.poly_durations) - 1
            poly = spline.get_polynomial(last)
            for deriv, dimensions, values in spline.final_bounds:
                value = as_casadi(poly.evaluate_derivative(spline.poly_durations[last], deriv))
                for dim in dimensions:
                    rows.append((value[dim], values[dim], values[dim]))
        return rows
