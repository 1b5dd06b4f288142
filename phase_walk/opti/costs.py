from abc import abstractmethod

import casadi

from phase_walk.models.robot_model import RobotModel
from phase_walk.motion_util import *
from phase_walk.opti.constraints import get_base_spline
from phase_walk.variables.composite import Component, Composite
from phase_walk.variables.phase_nodes import ForceNodes
from phase_walk.variables.variable_names import ee_force_id


class CostTerm(Component):
    """
    Weighted scalar cost, evaluated on a variable tree like ConstraintSet.
    """
    weight: float

    def __init__(self, name: str, weight: float):
        super().__init__(name)
        self.weight = weight

    @abstractmethod
    def get_cost(self, variables: Composite):
        """
        :return: weighted cost as casadi DM or MX scalar
        """
        pass


class BaseAccCost(CostTerm):
    """
    Integrated squared acceleration of a base trajectory (linear or euler angles).
    """

    def __init__(self, name: str, base_id: str, total_time: float, dt: float, weight: float):
        super().__init__(name, weight)
        self.base_id = base_id
        self.dt = dt
        self.time_points = get_sample_times(total_time, dt)

    def get_cost(self, variables: Composite):
        spline = get_base_spline(variables, self.base_id)
        cost = 0
        for t in self.time_points:
            cost = cost + casadi.sumsqr(as_casadi(spline.get_point(t).a)) * self.dt
        return self.weight * cost


class ForceCost(CostTerm):
    """
    Squared deviation of the stance force nodes from the standing force,
    normalized by the standing force.
    """

    def __init__(self, model: RobotModel, weight: float):
        super().__init__('force', weight)
        self.ee_ids = model.get_ee_ids()
        self.standing_force = model.get_standing_z_force()

    def get_cost(self, variables: Composite):
        f_standing = casadi.DM([0, 0, self.standing_force])
        cost = 0
        for ee in self.ee_ids:
            force = variables.get_component(ee_force_id(ee), ForceNodes)
            for node_id in force.get_value_var_ids_in_phases(in_contact=True):
                f = as_casadi(force.get_node(node_id).p)
                cost = cost + casadi.sumsqr((f - f_standing) / self.standing_force)
        return self.weight * cost
