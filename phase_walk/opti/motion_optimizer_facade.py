import copy
from dataclasses import dataclass, field

import numpy as np

from phase_walk.errors import ConfigurationError, ConsistencyError
from phase_walk.models.robot_model import RobotModel, MonopedModel
from phase_walk.models.terrain import HeightMap, FlatGround
from phase_walk.motion_util import *
from phase_walk.opti import solver_adapter
from phase_walk.opti.cost_constraint_factory import CostConstraintFactory
from phase_walk.opti.nlp import Nlp
from phase_walk.opti.parameters import *
from phase_walk.trajectory.robot_state import BaseState, StateLin
from phase_walk.trajectory.trajectory_sampler import SampledTrajectory
from phase_walk.variables.coeff_spline import CoeffSpline, PolynomialVars
from phase_walk.variables.composite import Composite
from phase_walk.variables.contact_schedule import ContactSchedule
from phase_walk.variables.node_spline import NodeSpline
from phase_walk.variables.phase_nodes import EndeffectorNodes, ForceNodes
from phase_walk.variables.variable_names import *


def get_initial_ee_positions(model: RobotModel, initial_base: BaseState, terrain: HeightMap) -> list[np.ndarray]:
    """
    Endeffectors at their nominal stance below the base, placed on the terrain.
    """
    initial_ee_W = []
    for nominal in model.get_nominal_stance_in_base():
        ee_pos = nominal + to_flat_array(initial_base.lin.p)
        ee_pos[Z] = terrain.get_height(ee_pos[X], ee_pos[Y])
        initial_ee_W.append(ee_pos)
    return initial_ee_W


def build_default_initial_state(model: RobotModel, terrain: HeightMap = None) -> (BaseState, list[np.ndarray]):
    """
    Base at the height where the nominal stance of the first endeffector touches the ground,
    no rotation, no motion.
    :return: initial base state, initial endeffector positions
    """
    terrain = terrain if terrain is not None else FlatGround()
    initial_base = BaseState()
    initial_base.lin.p = np.array([0.0, 0.0, -model.get_nominal_stance_in_base()[0][Z]])
    initial_base.ang.p = np.zeros(3)  # euler (roll, pitch, yaw)
    return initial_base, get_initial_ee_positions(model, initial_base, terrain)


@dataclass
class MotionProblem:
    """
    Everything that belongs to one motion optimization.
    Created by the caller and passed through the facade calls, which fill variables and nlp.
    """
    params: OptimizationParameters = field(default_factory=OptimizationParameters)
    model: RobotModel = field(default_factory=MonopedModel)
    terrain: HeightMap = field(default_factory=FlatGround)
    initial_base: BaseState = None
    # defaults to the initial base state
    final_base: BaseState = None
    # defaults to the nominal stance below the initial base
    initial_ee_W: list[np.ndarray] = None

    # filled by the facade
    variables: Composite = None
    nlp: Nlp = None

    def __post_init__(self):
        if self.initial_base is None:
            self.initial_base, default_ee_W = build_default_initial_state(self.model, self.terrain)
            if self.initial_ee_W is None:
                self.initial_ee_W = default_ee_W
        if self.initial_ee_W is None:
            self.initial_ee_W = get_initial_ee_positions(self.model, self.initial_base, self.terrain)
        if self.final_base is None:
            self.final_base = copy.deepcopy(self.initial_base)


def _velocity(state: StateLin) -> np.ndarray:
    return to_flat_array(state.v) if state.v is not None else np.zeros(vector_length(to_flat_array(state.p)))


class MotionOptimizerFacade:
    """
    Builds the variables, constraints and costs of a motion problem, solves it
    and converts the solver iterates back into sampled robot trajectories.
    """
    verbose: bool

    def __init__(self, verbose: bool = True):
        self.verbose = verbose

    def __print(self, *args):
        if self.verbose:
            print(*args)


    def __check_configuration(self, problem: MotionProblem):
        params = problem.params
        # representation may have been changed after the parameters were created
        params.base_representation = parse_enum(BaseRepresentation, params.base_representation)

        n_ee = problem.model.get_ee_count()
        if len(params.ee_phase_durations) != n_ee:
            raise ConfigurationError(
                f"phase durations are given for {len(params.ee_phase_durations)} endeffectors "
                f"but the robot has {n_ee}")
        if len(problem.initial_ee_W) != n_ee:
            raise ConfigurationError(
                f"initial positions are given for {len(problem.initial_ee_W)} endeffectors but the robot has {n_ee}")

        total_time = params.get_total_time()
        base_total_time = sum(params.get_base_poly_durations())
        for ee, durations in enumerate(params.ee_phase_durations):
            if abs(np.sum(durations) - total_time) > TIME_TOLERANCE:
                raise ConsistencyError(
                    f"phase durations of endeffector {ee} sum up to {np.sum(durations)}, "
                    f"endeffector 0 has {total_time}")
        if abs(base_total_time - total_time) > TIME_TOLERANCE:
            raise ConsistencyError(f"base trajectory spans {base_total_time} but the schedules {total_time}")


    def build_variables(self, problem: MotionProblem) -> Composite:
        """
        Create all optimization variables of the problem and their initial values.
        Unsupported configurations raise before any variable is created.
        """
        self.__check_configuration(problem)
        params = problem.params
        model = problem.model
        variables = Composite(NLP_VARIABLES)

        if params.base_representation == BaseRepresentation.CUBIC_HERMITE:
            self.__set_base_representation_hermite(problem, variables)
        elif params.base_representation == BaseRepresentation.POLY_COEFF:
            self.__set_base_representation_coeff(problem, variables)

        # contact schedules
        optimize_timings = params.constraint_exists(ConstraintName.TOTAL_TIME)
        contact_schedules = []
        for ee in model.get_ee_ids():
            schedule = ContactSchedule(ee,
                                       params.ee_phase_durations[ee],
                                       params.ee_in_contact_at_start[ee],
                                       params.min_phase_duration,
                                       params.max_phase_duration)
            variables.add_component(schedule, is_decision_bearing=optimize_timings)
            contact_schedules.append(schedule)

        # endeffector motions
        for ee in model.get_ee_ids():
            schedule = contact_schedules[ee]
            initial_ee_W = to_flat_array(problem.initial_ee_W[ee])
            final_ee_W = to_flat_array(problem.final_base.lin.p) + model.get_nominal_stance_in_base()[ee]
            final_ee_W[Z] = problem.terrain.get_height(final_ee_W[X], final_ee_W[Y])

            ee_motion_xy = EndeffectorNodes(2, schedule.get_contact_sequence(), ee_motion_xy_id(ee),
                                            params.ee_polys_per_swing_phase_xy)
            schedule.add_observer(ee_motion_xy)
            ee_motion_xy.initialize_variables(initial_ee_W[X:Z], final_ee_W[X:Z], schedule.get_time_per_phase())
            ee_motion_xy.add_start_bound(POS, [X, Y], initial_ee_W[X:Z])   # only xy, z given by terrain
            variables.add_component(ee_motion_xy)

            ee_motion_z = EndeffectorNodes(1, schedule.get_contact_sequence(), ee_motion_z_id(ee),
                                           params.ee_polys_per_swing_phase_z)
            schedule.add_observer(ee_motion_z)
            ee_motion_z.initialize_variables(initial_ee_W[Z:], final_ee_W[Z:], schedule.get_time_per_phase())
            variables.add_component(ee_motion_z)

        # endeffector forces
        f_stance = np.array([0.0, 0.0, model.get_standing_z_force()])
        for ee in model.get_ee_ids():
            schedule = contact_schedules[ee]
            ee_force = ForceNodes(3, schedule.get_contact_sequence(), ee_force_id(ee),
                                  params.force_polys_per_stance_phase, model.get_force_limit())
            schedule.add_observer(ee_force)
            ee_force.initialize_variables(f_stance, f_stance, schedule.get_time_per_phase())
            variables.add_component(ee_force)

        if self.verbose:
            variables.print()
        problem.variables = variables
        return variables


    def __set_base_representation_coeff(self, problem: MotionProblem, variables: Composite):
        params = problem.params
        base_poly_durations = params.get_base_poly_durations()
        self.__print(f'> base as {len(base_poly_durations)} coefficient polynomials of order {params.order_coeff_polys}')

        for base_id, init, final in [(BASE_ANGULAR, problem.initial_base.ang, problem.final_base.ang),
                                     (BASE_LINEAR, problem.initial_base.lin, problem.final_base.lin)]:
            spline = CoeffSpline(base_id, base_poly_durations)
            for i in range(len(base_poly_durations)):
                poly_vars = PolynomialVars(base_poly_id(base_id, i), params.order_coeff_polys, n_dim=3)
                variables.add_component(poly_vars)
                spline.add_polynomial(poly_vars)
            spline.initialize_variables(init.p, final.p)
            self.__add_base_bounds(spline, base_id, init, final)
            # add just for easy access later
            variables.add_component(spline, is_decision_bearing=False)


    def __set_base_representation_hermite(self, problem: MotionProblem, variables: Composite):
        base_poly_durations = problem.params.get_base_poly_durations()
        self.__print(f'> base as hermite node spline with {len(base_poly_durations)} polynomials')

        for base_id, init, final in [(BASE_LINEAR, problem.initial_base.lin, problem.final_base.lin),
                                     (BASE_ANGULAR, problem.initial_base.ang, problem.final_base.ang)]:
            spline = NodeSpline(3, len(base_poly_durations), base_id)
            spline.initialize_variables(init.p, final.p, base_poly_durations)
            self.__add_base_bounds(spline, base_id, init, final)
            variables.add_component(spline)


    @staticmethod
    def __add_base_bounds(spline: NodeSpline | CoeffSpline, base_id: str, init: StateLin, final: StateLin):
        dimensions = [X, Y, Z]
        spline.add_start_bound(POS, dimensions, init.p)
        spline.add_start_bound(VEL, dimensions, _velocity(init))
        spline.add_final_bound(VEL, dimensions, _velocity(final))
        if base_id == BASE_LINEAR:
            spline.add_final_bound(POS, [X, Y], final.p)  # only xy, z given by terrain
        if base_id == BASE_ANGULAR:
            spline.add_final_bound(POS, [Z], final.p)     # yaw, roll and pitch are free


    def build_cost_constraints(self, problem: MotionProblem) -> Nlp:
        assert problem.variables is not None, "call build_variables() first"
        params = problem.params
        factory = CostConstraintFactory(problem.variables, params, problem.model, problem.terrain)
        nlp = Nlp(problem.variables)

        for name in params.get_used_constraints():
            self.__print(f'> add constraint {name.value}')
            nlp.add_constraint(factory.get_constraint(name))
        for name, weight in params.get_cost_weights().items():
            self.__print(f'> add cost {name.value} (weight {weight})')
            nlp.add_cost(factory.get_cost(name, weight))

        if self.verbose:
            nlp.print()
        problem.nlp = nlp
        return nlp


    def solve_problem(self, problem: MotionProblem, solver: NlpSolver = NlpSolver.IPOPT, max_iter: int = 1000) -> dict:
        """
        Build and solve the problem, the solver iterates are kept in problem.nlp.
        Solver failures are not retried, check the returned stats.
        :return: solver stats
        """
        solver = parse_enum(NlpSolver, solver)
        self.build_variables(problem)
        self.build_cost_constraints(problem)
        return solver_adapter.solve(problem.nlp, solver, max_iter=max_iter, verbose=self.verbose)


    def get_trajectories(self, problem: MotionProblem, dt: float) -> list[SampledTrajectory]:
        """
        Sampled robot trajectory of every recorded solver iteration (the last one is the solution).
        With variable phase durations the iterates may violate the total time constraint,
        their schedules are then rescaled onto the base horizon (see SampledTrajectory.duration_mismatch).
        """
        assert problem.nlp is not None, "call solve_problem() first"
        rescale_schedules = problem.params.constraint_exists(ConstraintName.TOTAL_TIME)
        trajectories = []
        for i in range(problem.nlp.get_iteration_count()):
            trajectories.append(SampledTrajectory(problem.nlp.get_opt_variables(i), dt, rescale_schedules))

        if len(trajectories) > 0 and trajectories[-1].duration_mismatch > TIME_TOLERANCE:
            self.__print(f'> last iterate violates the total time by {trajectories[-1].duration_mismatch:.2e}, '
                         f'schedules are rescaled')
        return trajectories
