from typing import Iterator

import numpy as np

from phase_walk.errors import ConsistencyError
from phase_walk.motion_util import TIME_TOLERANCE, get_sample_times, to_flat_array
from phase_walk.rotations import AngularStateConverter
from phase_walk.trajectory.robot_state import RobotStateCartesian, StateLin
from phase_walk.variables.coeff_spline import CoeffSpline
from phase_walk.variables.composite import Composite
from phase_walk.variables.contact_schedule import ContactSchedule
from phase_walk.variables.node_spline import NodeSpline
from phase_walk.variables.phase_nodes import EndeffectorNodes, ForceNodes
from phase_walk.variables.variable_names import *


def _numeric_state(state: StateLin) -> StateLin:
    return StateLin(to_flat_array(state.p), to_flat_array(state.v), to_flat_array(state.a))


def get_ee_ids(variables: Composite) -> list[int]:
    """
    Endeffectors of a variable tree, one schedule exists per endeffector.
    """
    ee_ids = []
    while variables.has_component(ee_schedule_id(len(ee_ids))):
        ee_ids.append(len(ee_ids))
    return ee_ids


def get_schedule_durations(variables: Composite) -> list[float]:
    ee_ids = get_ee_ids(variables)
    if len(ee_ids) == 0:
        raise ConsistencyError(f"'{variables.name}' has no contact schedules")
    return [float(variables.get_component(ee_schedule_id(ee), ContactSchedule).get_total_time()) for ee in ee_ids]


def get_base_duration(variables: Composite) -> float:
    """
    Horizon of the base trajectories, linear and angular have to agree on it.
    """
    linear = variables.get_component(BASE_LINEAR, (NodeSpline, CoeffSpline)).get_total_time()
    angular = variables.get_component(BASE_ANGULAR, (NodeSpline, CoeffSpline)).get_total_time()
    if abs(linear - angular) > TIME_TOLERANCE:
        raise ConsistencyError(f"total duration of '{BASE_ANGULAR}' is {angular} but '{BASE_LINEAR}' has {linear}")
    return float(linear)


def check_total_duration(variables: Composite) -> float:
    """
    Total duration of the motion, all schedules and the base trajectories have to agree on it.
    Raises ConsistencyError otherwise.
    """
    schedule_durations = get_schedule_durations(variables)
    total_time = schedule_durations[0]

    durations = {ee_schedule_id(ee): d for ee, d in enumerate(schedule_durations)}
    durations[BASE_LINEAR] = get_base_duration(variables)
    for name, duration in durations.items():
        if abs(duration - total_time) > TIME_TOLERANCE:
            raise ConsistencyError(
                f"total duration of '{name}' is {duration} but '{ee_schedule_id(0)}' has {total_time}")
    return total_time


class SampledTrajectory:
    """
    Robot states of one solved variable tree at t = 0, dt, 2dt, ... up to the total duration (inclusive).
    Iterating again yields the same states, the tree is only read.

    With rescale_schedules=True the base horizon defines the total duration and every endeffector
    (schedule, motion and force) is queried at its own time scaled onto that horizon.
    This is meant for solver iterates with variable phase durations, which don't satisfy the total time
    constraint before convergence. The largest deviation is kept in duration_mismatch.
    """
    variables: Composite
    dt: float
    total_time: float
    times: np.ndarray
    # largest |schedule total - total_time|, zero for consistent trees
    duration_mismatch: float

    def __init__(self, variables: Composite, dt: float, rescale_schedules: bool = False):
        self.variables = variables
        self.dt = dt
        self.ee_ids = get_ee_ids(variables)
        if rescale_schedules:
            self.total_time = get_base_duration(variables)
            schedule_durations = get_schedule_durations(variables)
            if self.total_time <= 0 or min(schedule_durations) <= 0:
                raise ConsistencyError(f"'{variables.name}' has a non positive total duration")
            self._time_scales = [d / self.total_time for d in schedule_durations]
            self.duration_mismatch = max(abs(d - self.total_time) for d in schedule_durations)
        else:
            self.total_time = check_total_duration(variables)
            self._time_scales = [1.0]*len(self.ee_ids)
            self.duration_mismatch = 0.0
        self.times = get_sample_times(self.total_time, dt)

    def __len__(self) -> int:
        return len(self.times)

    def __iter__(self) -> Iterator[RobotStateCartesian]:
        for t in self.times:
            yield self.get_state(t)

    def __getitem__(self, i: int) -> RobotStateCartesian:
        return self.get_state(self.times[i])

    def get_state(self, t: float) -> RobotStateCartesian:
        v = self.variables
        base_linear = v.get_component(BASE_LINEAR, (NodeSpline, CoeffSpline))
        base_angular = v.get_component(BASE_ANGULAR, (NodeSpline, CoeffSpline))

        ee_motion = []
        ee_forces = []
        ee_contact = []
        for ee, scale in zip(self.ee_ids, self._time_scales):
            t_ee = t * scale
            xy = v.get_component(ee_motion_xy_id(ee), EndeffectorNodes).get_point(t_ee)
            z = v.get_component(ee_motion_z_id(ee), EndeffectorNodes).get_point(t_ee)
            ee_motion.append(StateLin(
                p=np.concatenate([to_flat_array(xy.p), to_flat_array(z.p)]),
                v=np.concatenate([to_flat_array(xy.v), to_flat_array(z.v)]),
                a=np.concatenate([to_flat_array(xy.a), to_flat_array(z.a)]),
            ))
            ee_forces.append(to_flat_array(v.get_component(ee_force_id(ee), ForceNodes).get_point(t_ee).p))
            ee_contact.append(v.get_component(ee_schedule_id(ee), ContactSchedule).is_in_contact(t_ee))

        return RobotStateCartesian(
            t_global=float(t),
            base_lin=_numeric_state(base_linear.get_point(t)),
            base_ang=AngularStateConverter.get_state(_numeric_state(base_angular.get_point(t))),
            ee_motion=tuple(ee_motion),
            ee_forces=tuple(ee_forces),
            ee_contact=tuple(ee_contact),
        )

    def to_list(self) -> list[RobotStateCartesian]:
        return list(self)


def build_trajectory(variables: Composite, dt: float, rescale_schedules: bool = False) -> SampledTrajectory:
    return SampledTrajectory(variables, dt, rescale_schedules)
