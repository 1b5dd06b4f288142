import numpy as np

from phase_walk.models.robot_model import QuadrupedModel
from phase_walk.opti.motion_optimizer_facade import MotionOptimizerFacade, MotionProblem, build_default_initial_state
from phase_walk.opti.parameters import *
from phase_walk.trajectory.plotting import plot_trajectory


# trot: diagonal legs (left front + right hind, right front + left hind) move together
step = 0.3
params = OptimizationParameters(
    ee_phase_durations=[
        np.array([step, step, step, step, step]),       # left front
        np.array([2*step, step, 2*step]),               # right front
        np.array([2*step, step, 2*step]),               # left hind
        np.array([step, step, step, step, step]),       # right hind
    ],
    ee_in_contact_at_start=[True, True, True, True],
    force_polys_per_stance_phase=2,
    cost_weights={
        CostName.BASE_LIN_ACC: 1.0,
        CostName.BASE_ANG_ACC: 1.0,
        CostName.FORCE: 0.01,
    },
)
model = QuadrupedModel()

initial_base, _ = build_default_initial_state(model)
final_base, _ = build_default_initial_state(model)
final_base.lin.p[0] = 0.3

problem = MotionProblem(params=params, model=model, initial_base=initial_base, final_base=final_base)

facade = MotionOptimizerFacade(verbose=True)
stats = facade.solve_problem(problem, NlpSolver.IPOPT, max_iter=1000)

trajectories = facade.get_trajectories(problem, dt=0.05)
print(f'> got {len(trajectories)} iterates with {len(trajectories[-1])} samples each')
plot_trajectory(trajectories[-1], title='quadruped trot')
