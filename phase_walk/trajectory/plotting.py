import numpy as np
from matplotlib import pyplot as plt

from phase_walk.trajectory.robot_state import RobotStateCartesian


def plot_trajectory(trajectory, show_plot=True, title: str = None):
	"""
	Plot base position, endeffector height and endeffector z-force over time.
	Contact phases are shaded.
	:param trajectory: sampled robot states (e.g. a SampledTrajectory)
	:return: the figure
	"""
	states: list[RobotStateCartesian] = list(trajectory)
	assert len(states) > 0, "nothing to plot"
	t_vals = np.array([s.t_global for s in states])
	base_pos = np.array([s.base_lin.p for s in states])

	fig, axs = plt.subplots(3, 1, sharex=True, figsize=(8, 8))
	if title is not None:
		fig.suptitle(title)

	for dim, label in enumerate(['x', 'y', 'z']):
		axs[0].plot(t_vals, base_pos[:, dim], label=f'base {label}')
	axs[0].set_ylabel('base pos [m]')
	axs[0].legend()

	for ee in range(states[0].num_ee):
		ee_z = np.array([s.ee_motion[ee].p[2] for s in states])
		ee_force_z = np.array([s.ee_forces[ee][2] for s in states])
		in_contact = np.array([s.ee_contact[ee] for s in states])
		line, = axs[1].plot(t_vals, ee_z, label=f'ee {ee}')
		axs[2].plot(t_vals, ee_force_z, color=line.get_color(), label=f'ee {ee}')
		axs[1].fill_between(t_vals, 0, 1, where=in_contact, color=line.get_color(), alpha=0.1,
							transform=axs[1].get_xaxis_transform())
	axs[1].set_ylabel('ee z [m]')
	axs[1].legend()
	axs[2].set_ylabel('ee force z [N]')
	axs[2].set_xlabel('t [s]')

	if show_plot:
		plt.show()
	return fig
