from pathlib import Path

import numpy as np

from phase_walk.models.robot_model import BipedModel
from phase_walk.opti.motion_optimizer_facade import MotionOptimizerFacade, MotionProblem, build_default_initial_state
from phase_walk.opti.parameters import OptimizationParameters, NlpSolver
from phase_walk.serialization.yaml_util import dump_trajectory_yaml
from phase_walk.trajectory.plotting import plot_trajectory


params = OptimizationParameters.from_yaml(Path(__file__).parent / 'biped_walk.yaml')
model = BipedModel()

initial_base, initial_ee_W = build_default_initial_state(model)
final_base, _ = build_default_initial_state(model)
final_base.lin.p[0] = 0.5   # walk forward

problem = MotionProblem(
    params=params,
    model=model,
    initial_base=initial_base,
    final_base=final_base,
    initial_ee_W=initial_ee_W
)

facade = MotionOptimizerFacade(verbose=True)
facade.solve_problem(problem, NlpSolver.IPOPT, max_iter=1000)

trajectory = facade.get_trajectories(problem, dt=0.02)[-1]
dump_trajectory_yaml(trajectory, 'biped_walk_trajectory.yaml')
plot_trajectory(trajectory, title='biped walk')
