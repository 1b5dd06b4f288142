from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path

import numpy as np
import yaml

from phase_walk.errors import ConfigurationError
from phase_walk.serialization.yaml_util import *


class BaseRepresentation(Enum):
	CUBIC_HERMITE = 'cubic_hermite'     # one node spline over the whole horizon
	POLY_COEFF = 'poly_coeff'           # independent coefficient polynomials + continuity constraints


class NlpSolver(Enum):
	IPOPT = 'ipopt'
	SQPMETHOD = 'sqpmethod'


class ConstraintName(Enum):
	DYNAMIC = 'dynamic'
	RANGE_OF_MOTION = 'range_of_motion'
	TERRAIN = 'terrain'
	FORCE = 'force'
	SWING = 'swing'
	TOTAL_TIME = 'total_time'
	BASE_POLY_CONTINUITY = 'base_poly_continuity'
	BASE_FINAL_STATE = 'base_final_state'


class CostName(Enum):
	BASE_LIN_ACC = 'base_lin_acc'
	BASE_ANG_ACC = 'base_ang_acc'
	FORCE = 'force'


def parse_enum(enum_type: type[Enum], value) -> Enum:
	"""
	Get enum member from a member or its value (as used in yaml files).
	Raises ConfigurationError for unknown values.
	"""
	if isinstance(value, enum_type):
		return value
	try:
		return enum_type(value)
	except ValueError:
		raise ConfigurationError(
			f"'{value}' is not a valid {enum_type.__name__}, use one of {[e.value for e in enum_type]}")


@dataclass
class OptimizationParameters:
	"""
	Formulation of the motion optimization problem.
	"""
	# nominal duration of each phase, one array per endeffector. All have to sum up to the same total time.
	ee_phase_durations: list[np.ndarray] = field(default_factory=lambda: [np.array([0.4, 0.2, 0.4])])
	# contact state of the first phase per endeffector, the following phases alternate
	ee_in_contact_at_start: list[bool] = field(default_factory=lambda: [True])
	min_phase_duration: float = 0.1
	max_phase_duration: float = 2.0
	optimize_phase_durations: bool = False

	base_representation: BaseRepresentation = BaseRepresentation.CUBIC_HERMITE
	# duration of each base polynomial, the last one gets the rest of the total time
	base_poly_duration: float = 0.1
	order_coeff_polys: int = 4

	force_polys_per_stance_phase: int = 3
	ee_polys_per_swing_phase_xy: int = 1
	ee_polys_per_swing_phase_z: int = 2

	dt_constraint_dynamic: float = 0.1
	dt_constraint_range_of_motion: float = 0.1
	dt_cost_base: float = 0.05
	friction_coefficient: float = 0.5

	constraints: list[ConstraintName] = field(default_factory=lambda: [
		ConstraintName.DYNAMIC,
		ConstraintName.RANGE_OF_MOTION,
		ConstraintName.TERRAIN,
		ConstraintName.FORCE,
		ConstraintName.SWING,
	])
	cost_weights: dict = field(default_factory=lambda: {
		CostName.BASE_LIN_ACC: 1.0,
		CostName.BASE_ANG_ACC: 1.0,
	})

	def __post_init__(self):
		self.ee_phase_durations = [np.array(d, dtype=float) for d in self.ee_phase_durations]
		self.ee_in_contact_at_start = [bool(c) for c in self.ee_in_contact_at_start]
		self.base_representation = parse_enum(BaseRepresentation, self.base_representation)
		self.constraints = [parse_enum(ConstraintName, c) for c in self.constraints]
		self.cost_weights = {parse_enum(CostName, k): float(w) for k, w in self.cost_weights.items()}
		if len(self.ee_phase_durations) != len(self.ee_in_contact_at_start):
			raise ConfigurationError(
				f"got phase durations for {len(self.ee_phase_durations)} endeffectors "
				f"but initial contact state for {len(self.ee_in_contact_at_start)}")


	def get_total_time(self) -> float:
		return float(np.sum(self.ee_phase_durations[0]))

	def get_base_poly_durations(self) -> list[float]:
		"""
		Split the total time into polynomials of base_poly_duration, the last one covers the rest.
		"""
		total_time = self.get_total_time()
		durations = []
		t_left = total_time
		while t_left > self.base_poly_duration + 1e-10:
			durations.append(self.base_poly_duration)
			t_left -= self.base_poly_duration
		durations.append(t_left)
		return durations

	def get_used_constraints(self) -> list[ConstraintName]:
		constraints = list(self.constraints)
		if self.optimize_phase_durations and ConstraintName.TOTAL_TIME not in constraints:
			constraints.append(ConstraintName.TOTAL_TIME)
		if self.base_representation == BaseRepresentation.POLY_COEFF:
			for c in [ConstraintName.BASE_POLY_CONTINUITY, ConstraintName.BASE_FINAL_STATE]:
				if c not in constraints:
					constraints.append(c)
		return constraints

	def constraint_exists(self, name: ConstraintName) -> bool:
		return name in self.get_used_constraints()

	def get_cost_weights(self) -> dict:
		return dict(self.cost_weights)


	def to_dict(self) -> dict:
		values = {}
		for f in fields(self):
			value = getattr(self, f.name)
			if isinstance(value, Enum):
				value = value.value
			elif f.name == 'constraints':
				value = [c.value for c in value]
			elif f.name == 'cost_weights':
				value = {k.value: w for k, w in value.items()}
			values[f.name] = value
		return values

	def to_yaml(self, file: str | Path):
		with open(file, 'w') as f:
			yaml.dump(self.to_dict(), f, indent=2)

	@staticmethod
	def from_dict(values: dict) -> 'OptimizationParameters':
		known = {f.name for f in fields(OptimizationParameters)}
		unknown = set(values.keys()) - known
		if len(unknown) > 0:
			raise ConfigurationError(f"unknown optimization parameters: {sorted(unknown)}")
		return OptimizationParameters(**values)

	@staticmethod
	def from_yaml(file: str | Path) -> 'OptimizationParameters':
		with open(file, 'r') as f:
			values = yaml.load(f, Loader=yaml.Loader)
		return OptimizationParameters.from_dict(values if values is not None else {})
