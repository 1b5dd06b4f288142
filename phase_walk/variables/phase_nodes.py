import numpy as np

from phase_walk.errors import BoundsViolationError
from phase_walk.motion_util import *
from phase_walk.variables.contact_schedule import PhaseDurationObserver
from phase_walk.variables.node_spline import NodeSpline


class PhaseNodes(NodeSpline, PhaseDurationObserver):
	"""
	Node spline whose polynomials are aligned with the phases of a contact schedule.
	In phases where the trajectory is constant (motion in contact, force in flight)
	a single constant polynomial is used, the other phases use n_polys_in_changing_phase polynomials.
	The number of nodes never changes, new phase durations only move the nodes in time.
	"""
	contact_sequence: list[bool]
	polys_per_phase: list[int]
	constant_in_contact: bool

	def __init__(self,
				 n_dim: int,
				 contact_sequence: list[bool],
				 name: str,
				 n_polys_in_changing_phase: int,
				 constant_in_contact: bool
				 ):
		"""
		:param n_dim: output dimensions.
		:param contact_sequence: contact flag for each phase.
		:param n_polys_in_changing_phase: number of polynomials in each phase that is not constant.
		:param constant_in_contact: true if the trajectory is constant in contact phases, false if in flight phases.
		"""
		assert n_polys_in_changing_phase >= 1
		self.contact_sequence = list(contact_sequence)
		self.constant_in_contact = constant_in_contact
		self.polys_per_phase = [
			1 if self.is_constant_phase(phase) else n_polys_in_changing_phase
			for phase in range(len(self.contact_sequence))
		]
		constant_polys = []
		for phase, n_polys in enumerate(self.polys_per_phase):
			constant_polys += [self.is_constant_phase(phase)]*n_polys
		super().__init__(n_dim, len(constant_polys), name, constant_polys)

		# last phase durations received, to skip updates that change nothing
		self._phase_durations = None


	@property
	def num_phases(self) -> int:
		return len(self.contact_sequence)

	def is_constant_phase(self, phase: int) -> bool:
		return self.contact_sequence[phase] == self.constant_in_contact

	def get_phase_durations(self) -> list:
		return list(self._phase_durations) if self._phase_durations is not None else None

	def convert_phase_to_poly_durations(self, phase_durations: list) -> list:
		assert len(phase_durations) == self.num_phases, \
			f"{self.name}: has {self.num_phases} phases but got {len(phase_durations)} durations"
		poly_durations = []
		for duration, n_polys in zip(phase_durations, self.polys_per_phase):
			poly_durations += [duration / n_polys]*n_polys
		return poly_durations

	def update_phase_durations(self, phase_durations: list):
		if not is_symbolic(*phase_durations) and self._phase_durations is not None \
				and not is_symbolic(*self._phase_durations) \
				and list(phase_durations) == list(self._phase_durations):
			return
		self._phase_durations = list(phase_durations)
		self.set_poly_durations(self.convert_phase_to_poly_durations(phase_durations))


	def get_phase_node_ids(self, phase: int) -> list[int]:
		"""
		Ids of the nodes at the start, inside and at the end of a phase.
		"""
		first = sum(self.polys_per_phase[:phase])
		return list(range(first, first + self.polys_per_phase[phase] + 1))

	def get_node_ids_in_phases(self, in_contact: bool) -> list[int]:
		"""
		Ids of all nodes that are the start, inside or end of a phase with the given contact state.
		"""
		node_ids = []
		for phase in range(self.num_phases):
			if self.contact_sequence[phase] == in_contact:
				for node_id in self.get_phase_node_ids(phase):
					if node_id not in node_ids:
						node_ids.append(node_id)
		return node_ids

	def get_value_var_ids_in_phases(self, in_contact: bool) -> list[int]:
		"""
		Node ids in phases of the given contact state, where each independent value is only listed once
		(the second node of a constant polynomial is skipped).
		"""
		node_ids = []
		for node_id in self.get_node_ids_in_phases(in_contact):
			if node_id > 0 and self.is_constant_poly(node_id - 1):
				continue
			node_ids.append(node_id)
		return node_ids


	def initialize_variables(self, initial_pos, final_pos, phase_durations: list):
		"""
		Linear interpolation from initial_pos to final_pos over the given phase durations.
		"""
		self._phase_durations = list(phase_durations)
		super().initialize_variables(initial_pos, final_pos, self.convert_phase_to_poly_durations(phase_durations))


class EndeffectorNodes(PhaseNodes):
	"""
	Endeffector motion, constant while the endeffector is in contact.
	"""

	def __init__(self, n_dim: int, contact_sequence: list[bool], name: str, n_polys_in_changing_phase: int):
		super().__init__(n_dim, contact_sequence, name, n_polys_in_changing_phase, constant_in_contact=True)

	def is_contact_phase(self, phase: int) -> bool:
		return self.contact_sequence[phase]


class ForceNodes(PhaseNodes):
	"""
	Endeffector force, constant while the endeffector is in flight
	(which value it has there is decided by the constraints).
	Every force component is bounded to [-force_limit, force_limit].
	"""
	force_limit: float

	def __init__(self, n_dim: int, contact_sequence: list[bool], name: str,
				 n_polys_in_changing_phase: int, force_limit: float):
		super().__init__(n_dim, contact_sequence, name, n_polys_in_changing_phase, constant_in_contact=False)
		if not force_limit > 0:
			raise BoundsViolationError(f"{name}: force limit has to be positive, got {force_limit}")
		self.force_limit = force_limit
		for dim in range(self.n_dim):
			self.set_value_bounds(dim, -force_limit, force_limit)

	def initialize_variables(self, initial_pos, final_pos, phase_durations: list):
		for value in [initial_pos, final_pos]:
			if np.any(np.abs(to_flat_array(value)) > self.force_limit):
				raise BoundsViolationError(
					f"{self.name}: initial force {value} exceeds the force limit {self.force_limit}")
		super().initialize_variables(initial_pos, final_pos, phase_durations)
