from abc import ABC, abstractmethod

import numpy as np

from phase_walk.errors import BoundsViolationError, ConsistencyError
from phase_walk.motion_util import TIME_TOLERANCE, stack, is_symbolic, clamp_time
from phase_walk.variables.composite import VariableSet
from phase_walk.variables.variable_names import ee_schedule_id


class PhaseDurationObserver(ABC):
	"""
	Variable set whose time parametrization depends on the phase durations of a ContactSchedule.
	"""

	@abstractmethod
	def update_phase_durations(self, phase_durations: list):
		"""
		Called by the schedule after every change of its durations.
		Implementations must not modify the schedule from here.
		"""
		pass


class ContactSchedule(VariableSet):
	"""
	Alternating sequence of contact and flight phases of one endeffector.
	The phase durations are the variables of this set (only optimized if added as decision bearing).
	Every change of the durations is pushed to the registered observers.
	"""
	ee: int
	phase_durations: list		# float or MX scalar per phase
	first_phase_in_contact: bool
	min_phase_duration: float
	max_phase_duration: float

	def __init__(self,
				 ee: int,
				 phase_durations,
				 first_phase_in_contact: bool = True,
				 min_phase_duration: float = 0.1,
				 max_phase_duration: float = 2.0,
				 ):
		"""
		:param ee: index of the endeffector this schedule belongs to.
		:param phase_durations: nominal duration of each phase.
		:param first_phase_in_contact: contact state of the first phase, the following phases alternate.
		:param min_phase_duration: lower bound for each phase duration.
		:param max_phase_duration: upper bound for each phase duration.
		"""
		super().__init__(ee_schedule_id(ee))
		self.ee = ee
		self.first_phase_in_contact = first_phase_in_contact
		self.min_phase_duration = min_phase_duration
		self.max_phase_duration = max_phase_duration
		self._observers: list[PhaseDurationObserver] = []
		self._notifying = False

		if len(phase_durations) == 0:
			raise BoundsViolationError(f"{self.name}: needs at least one phase")
		if not (0 < min_phase_duration <= max_phase_duration):
			raise BoundsViolationError(
				f"{self.name}: invalid duration bounds [{min_phase_duration}, {max_phase_duration}]")
		self._check_duration_bounds(phase_durations)
		self.phase_durations = [float(d) for d in phase_durations]


	def _check_duration_bounds(self, phase_durations: list):
		"""
		Numeric durations have to be in [min, max], solver iterates may exceed that by TIME_TOLERANCE.
		"""
		for i, d in enumerate(phase_durations):
			if is_symbolic(d):
				continue
			if not (self.min_phase_duration - TIME_TOLERANCE <= d <= self.max_phase_duration + TIME_TOLERANCE):
				raise BoundsViolationError(
					f"{self.name}: duration {d} of phase {i} is outside of [{self.min_phase_duration}, {self.max_phase_duration}]")


	def add_observer(self, observer: PhaseDurationObserver):
		"""
		Register a dependent variable set, it is synchronized with the current durations right away.
		"""
		self._observers.append(observer)
		observer.update_phase_durations(list(self.phase_durations))

	def get_observers(self) -> list[PhaseDurationObserver]:
		return list(self._observers)

	def _notify_observers(self):
		if self._notifying:
			raise ConsistencyError(f"{self.name}: durations changed while notifying observers")
		self._notifying = True
		try:
			for o in self._observers:
				o.update_phase_durations(list(self.phase_durations))
		finally:
			self._notifying = False

	def set_phase_durations(self, phase_durations: list):
		if self._notifying:
			raise ConsistencyError(f"{self.name}: durations changed while notifying observers")
		if len(phase_durations) != self.num_phases:
			raise ConsistencyError(
				f"{self.name}: has {self.num_phases} phases but got {len(phase_durations)} durations")
		self._check_duration_bounds(phase_durations)
		self.phase_durations = [d if is_symbolic(d) else float(d) for d in phase_durations]
		self._notify_observers()


	@property
	def num_phases(self) -> int:
		return len(self.phase_durations)

	def get_time_per_phase(self) -> list:
		return list(self.phase_durations)

	def get_contact_sequence(self) -> list[bool]:
		return [self.is_contact_phase(i) for i in range(self.num_phases)]

	def is_contact_phase(self, phase: int) -> bool:
		first = phase % 2 == 0
		return first if self.first_phase_in_contact else not first

	def get_total_time(self):
		total = 0.0
		for d in self.phase_durations:
			total = total + d
		return total

	def get_phase_index(self, t: float) -> int:
		"""
		Index of the phase that is active at time t.
		At a phase boundary the later phase is active (except at the very end).
		"""
		assert not is_symbolic(*self.phase_durations), "phase lookup needs numeric durations"
		t = clamp_time(t, self.get_total_time(), self.name)
		t_end = 0.0
		for i, d in enumerate(self.phase_durations):
			t_end += d
			if t < t_end:
				return i
		return self.num_phases - 1

	def is_in_contact(self, t: float) -> bool:
		return self.is_contact_phase(self.get_phase_index(t))


	# variable set
	@property
	def n_variables(self) -> int:
		return self.num_phases

	def get_values(self):
		return stack(self.phase_durations)

	def set_variables(self, x):
		self._check_length(x)
		self.set_phase_durations([x[i] for i in range(self.num_phases)])

	def get_bounds(self) -> (np.ndarray, np.ndarray):
		return (np.full(self.num_phases, self.min_phase_duration),
				np.full(self.num_phases, self.max_phase_duration))
