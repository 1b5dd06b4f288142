

class PhaseWalkError(Exception):
	"""
	Base class for all errors raised while assembling, solving or sampling a motion problem.
	"""
	pass


class ConfigurationError(PhaseWalkError):
	"""
	Unsupported base representation, solver, constraint or cost selection.
	Raised before any optimization variable is constructed.
	"""
	pass


class ConsistencyError(PhaseWalkError):
	"""
	Disagreement between parts of the problem, e.g. total durations of schedules and base
	or a decision vector length that does not match the variable tree.
	"""
	pass


class BoundsViolationError(PhaseWalkError):
	"""
	Initial guess, configured duration or force limit outside its configured bound.
	"""
	pass


class OutOfRangeError(PhaseWalkError):
	"""
	Trajectory query at a time outside [0, total_duration].
	"""
	pass


class ComponentNotFoundError(PhaseWalkError, KeyError):
	pass


class ComponentTypeError(PhaseWalkError, TypeError):
	pass
