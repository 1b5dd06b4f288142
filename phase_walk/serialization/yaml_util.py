import sys
from ast import literal_eval
from pathlib import Path

import numpy as np
import yaml

from phase_walk.trajectory.robot_state import RobotStateCartesian, StateAng, StateLin


# better store np arrays
def ndarray_representer(dumper: yaml.Dumper, array: np.ndarray) -> yaml.Node:
	return dumper.represent_scalar(
		'!np',
		np.array2string(array, separator=', ', precision=100, threshold=sys.maxsize),
		style='|'
	)

def ndarray_constructor(loader: yaml.Loader, node):
	arr_str = loader.construct_scalar(node)
	return np.array(literal_eval(arr_str), dtype=float)

yaml.add_representer(np.ndarray, ndarray_representer)
yaml.add_constructor('!np', ndarray_constructor)



def _state_lin_to_dict(state: StateLin) -> dict:
	return {'p': state.p, 'v': state.v, 'a': state.a}

def _state_lin_from_dict(values: dict) -> StateLin:
	return StateLin(values['p'], values['v'], values['a'])


def serialize_trajectory(trajectory) -> list[dict]:
	"""
	Convert sampled robot states to plain dicts (np arrays stay np arrays, they get the !np tag in yaml).
	"""
	states = []
	for s in trajectory:
		states.append({
			't_global': float(s.t_global),
			'base_lin': _state_lin_to_dict(s.base_lin),
			'base_ang': {'q': s.base_ang.q, 'w': s.base_ang.w, 'dw': s.base_ang.dw},
			'ee_motion': [_state_lin_to_dict(m) for m in s.ee_motion],
			'ee_forces': list(s.ee_forces),
			'ee_contact': [bool(c) for c in s.ee_contact],
		})
	return states


def deserialize_trajectory(states: list[dict]) -> list[RobotStateCartesian]:
	trajectory = []
	for s in states:
		trajectory.append(RobotStateCartesian(
			t_global=s['t_global'],
			base_lin=_state_lin_from_dict(s['base_lin']),
			base_ang=StateAng(**s['base_ang']),
			ee_motion=tuple(_state_lin_from_dict(m) for m in s['ee_motion']),
			ee_forces=tuple(s['ee_forces']),
			ee_contact=tuple(s['ee_contact']),
		))
	return trajectory


def dump_trajectory_yaml(trajectory, file: str | Path):
	with open(file, 'w') as f:
		yaml.dump({'trajectory': serialize_trajectory(trajectory)}, f, indent=2)


def load_trajectory_yaml(file: str | Path) -> list[RobotStateCartesian]:
	with open(file, 'r') as f:
		values = yaml.load(f, yaml.Loader)
	return deserialize_trajectory(values['trajectory'])
