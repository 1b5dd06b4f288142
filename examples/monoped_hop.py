from phase_walk.models.robot_model import MonopedModel
from phase_walk.opti.motion_optimizer_facade import MotionOptimizerFacade, MotionProblem
from phase_walk.trajectory.plotting import plot_trajectory
from phase_walk.trajectory.robot_state import BaseState, StateLin
from monoped_params import *


problem = MotionProblem(
    params=monoped_example_params,
    model=MonopedModel(),
    final_base=BaseState(lin=StateLin(monoped_example_final_base_pos, np.zeros(3), np.zeros(3)))
)

facade = MotionOptimizerFacade(verbose=True)
stats = facade.solve_problem(problem, NlpSolver.IPOPT, max_iter=1000)
print('> solver stats: ', stats['return_status'], ' iterations: ', stats['iter_count'])
if not stats['success']:
    print('> not converged, the plot shows the last iterate')

# last iterate, the solution when converged
trajectories = facade.get_trajectories(problem, dt=0.02)
plot_trajectory(trajectories[-1], title='monoped hop')
