import casadi
import numpy as np
from casadi import Sparsity, nlpsol

from phase_walk.errors import ConfigurationError
from phase_walk.opti.nlp import Nlp
from phase_walk.opti.parameters import NlpSolver, parse_enum


class IterationRecorder(casadi.Callback):
	"""
	Iteration callback for nlpsol, keeps the decision vector of every solver iteration.
	"""
	iterates: list[np.ndarray]

	def __init__(self, name: str, nx: int, ng: int, np_: int = 0, opts={}):
		casadi.Callback.__init__(self)
		self.nx = nx
		self.ng = ng
		self.np = np_
		self.iterates = []
		self.construct(name, opts)

	def get_n_in(self):
		return casadi.nlpsol_n_out()

	def get_n_out(self):
		return 1

	def get_name_in(self, i):
		return casadi.nlpsol_out(i)

	def get_name_out(self, i):
		return "ret"

	def get_sparsity_in(self, i):
		n = casadi.nlpsol_out(i)
		if n == 'f':
			return Sparsity.scalar()
		elif n in ('x', 'lam_x'):
			return Sparsity.dense(self.nx)
		elif n in ('g', 'lam_g'):
			return Sparsity.dense(self.ng)
		else:
			return Sparsity.dense(self.np)

	def eval(self, arg):
		darg = {}
		for (i, s) in enumerate(casadi.nlpsol_out()):
			darg[s] = arg[i]
		self.iterates.append(np.array(darg['x'], dtype=float).flatten())
		return [0]


def get_solver_options(solver: NlpSolver, max_iter: int, verbose: bool) -> dict:
	"""
	nlpsol options of the supported backends.
	"""
	if solver == NlpSolver.IPOPT:
		return {
			"expand": True,   # auto convert MX to SX expression (here it improves efficiency)
			"print_time": verbose,
			"ipopt": {
				"max_iter": max_iter,
				"hessian_approximation": "limited-memory",  # essential to converge
				"tol": 0.001,
				"linear_solver": "mumps",
				"print_level": 5 if verbose else 0,
				"sb": "yes",
			}
		}
	elif solver == NlpSolver.SQPMETHOD:
		return {
			"expand": True,
			"print_time": verbose,
			"print_header": verbose,
			"print_iteration": verbose,
			"max_iter": max_iter,
			"qpsol": "qpoases",
			"qpsol_options": {"printLevel": "none" if not verbose else "tabular"},
		}
	raise ConfigurationError(f"solver {solver} is not supported")


def solve(nlp: Nlp, solver: NlpSolver, max_iter: int = 1000, verbose: bool = True) -> dict:
	"""
	Solve the nlp with the given backend.
	The iterates are stored in the nlp, also when the solver did not converge.
	:return: the solver stats (contains e.g. success, return_status, iter_count)
	"""
	solver = parse_enum(NlpSolver, solver)
	opts = get_solver_options(solver, max_iter, verbose)

	nlp_dict, args = nlp.transcribe()
	nx = nlp_dict['x'].shape[0]
	ng = nlp_dict['g'].shape[0]
	recorder = IterationRecorder('iteration_recorder', nx, ng)
	opts['iteration_callback'] = recorder

	if verbose:
		print(f'> create {solver.value} solver ({nx} variables, {ng} constraints) ...')
	nlp_solver = nlpsol('solver', solver.value, nlp_dict, opts)

	if verbose:
		print('> start solving ...')
	result = nlp_solver(**args)
	solver_stats = nlp_solver.stats()

	iterates = recorder.iterates
	if len(iterates) == 0:
		# backends that never call the callback still give their result
		iterates = [np.array(result["x"], dtype=float).flatten()]
	nlp.set_iterates(iterates)
	nlp.solver_stats = solver_stats

	if verbose:
		if solver_stats.get('success', False):
			print(f'> found solution! ({nlp.get_iteration_count()} iterations recorded)')
		else:
			print(f"> solver did not succeed: {solver_stats.get('return_status')}")
	return solver_stats
