from unittest import TestCase

import numpy as np

from phase_walk.errors import *
from phase_walk.models.robot_model import RobotModel, BipedModel
from phase_walk.opti.motion_optimizer_facade import *
from phase_walk.opti.parameters import *
from phase_walk.opti.solver_adapter import get_solver_options
from phase_walk.trajectory.robot_state import BaseState, StateLin
from phase_walk.variables.coeff_spline import CoeffSpline, PolynomialVars
from phase_walk.variables.contact_schedule import ContactSchedule
from phase_walk.variables.node_spline import NodeSpline
from phase_walk.variables.variable_names import *
from tests.test_util import *


def sliding_base_problem() -> MotionProblem:
	"""
	Single leg stays in contact for 1s while the base moves 1m forward,
	only the base acceleration is minimized.
	"""
	model = RobotModel(mass=20, nominal_stance=[np.array([0.3, 0.2, 0.0])], max_force=1000)
	params = OptimizationParameters(
		ee_phase_durations=[np.array([1.0])],
		ee_in_contact_at_start=[True],
		constraints=[],
		cost_weights={CostName.BASE_LIN_ACC: 1.0},
	)
	initial_base = BaseState(lin=StateLin(np.array([0.0, 0.0, 0.5]), np.zeros(3), np.zeros(3)))
	final_base = BaseState(lin=StateLin(np.array([1.0, 0.0, 0.5]), np.zeros(3), np.zeros(3)))
	return MotionProblem(params=params, model=model, initial_base=initial_base, final_base=final_base)


class TestMotionOptimizerFacade(TestCase):

	def test_solve_sliding_base(self):
		problem = sliding_base_problem()
		facade = MotionOptimizerFacade(verbose=False)
		stats = facade.solve_problem(problem, solver=NlpSolver.IPOPT)
		self.assertTrue(stats['success'])

		trajectories = facade.get_trajectories(problem, dt=0.5)
		self.assertEqual(len(trajectories), problem.nlp.get_iteration_count())
		self.assertGreater(len(trajectories), 0)
		for trajectory in trajectories:
			states = trajectory.to_list()
			self.assertEqual(len(states), 3)
			for state in states:
				self.assertEqual(state.ee_contact, (True,))
				# start bound of the endeffector holds in every iteration
				np.testing.assert_allclose(state.ee_motion[0].p[:2], [0.3, 0.2], atol=1e-9)

		solution = trajectories[-1].to_list()
		np.testing.assert_allclose(solution[0].base_lin.p, [0, 0, 0.5], atol=1e-9)
		self.assertAlmostEqual(solution[-1].base_lin.p[0], 1.0, places=6)
		self.assertAlmostEqual(solution[1].base_lin.p[2], 0.5, places=2)
		# symmetric motion, half way at half time
		self.assertAlmostEqual(solution[1].base_lin.p[0], 0.5, places=2)


	def test_default_problem(self):
		problem = monoped_problem()
		self.assertEqual(len(problem.initial_ee_W), 1)
		np.testing.assert_allclose(problem.initial_base.lin.p, [0, 0, 0.58])
		np.testing.assert_allclose(problem.initial_ee_W[0], [0, 0, 0])
		np.testing.assert_allclose(problem.final_base.lin.p, problem.initial_base.lin.p)
		self.assertIsNot(problem.final_base, problem.initial_base)


	def test_variable_structure(self):
		problem = monoped_problem()
		variables = MotionOptimizerFacade(verbose=False).build_variables(problem)
		self.assertIs(problem.variables, variables)

		for name in [BASE_LINEAR, BASE_ANGULAR, ee_schedule_id(0), ee_motion_xy_id(0), ee_motion_z_id(0), ee_force_id(0)]:
			self.assertTrue(variables.has_component(name))
		self.assertFalse(variables.is_decision_bearing(ee_schedule_id(0)))
		self.assertTrue(variables.is_decision_bearing(ee_force_id(0)))
		# base 2 * 11 nodes * 6, ee xy 4, ee z 4, force 39
		self.assertEqual(variables.n_variables, 66 + 66 + 4 + 4 + 39)

		schedule = variables.get_component(ee_schedule_id(0), ContactSchedule)
		self.assertEqual(len(schedule.get_observers()), 3)


	def test_optimized_phase_durations(self):
		problem = monoped_problem(optimize_phase_durations=True)
		variables = MotionOptimizerFacade(verbose=False).build_variables(problem)
		self.assertTrue(variables.is_decision_bearing(ee_schedule_id(0)))
		self.assertEqual(variables.n_variables, 66 + 66 + 4 + 4 + 39 + 3)

		nlp = MotionOptimizerFacade(verbose=False).build_cost_constraints(problem)
		self.assertIn('total_time', [c.name for c in nlp.constraints])


	def test_trajectories_of_optimized_phase_durations(self):
		problem = monoped_problem(optimize_phase_durations=True)
		facade = MotionOptimizerFacade(verbose=False)
		# success is not required, the intermediate iterates are what matters
		facade.solve_problem(problem, solver=NlpSolver.IPOPT, max_iter=30)

		trajectories = facade.get_trajectories(problem, dt=0.1)
		self.assertEqual(len(trajectories), problem.nlp.get_iteration_count())
		self.assertGreater(len(trajectories), 1)
		for trajectory in trajectories:
			self.assertAlmostEqual(trajectory.total_time, 1.0)
			self.assertEqual(len(trajectory.to_list()), 11)
			self.assertGreaterEqual(trajectory.duration_mismatch, 0.0)


	def test_base_bounds(self):
		problem = monoped_problem()
		problem.final_base.lin.p = np.array([0.5, 0.1, 0.58])
		variables = MotionOptimizerFacade(verbose=False).build_variables(problem)
		base = variables.get_component(BASE_LINEAR, NodeSpline)
		lb, ub = base.get_bounds()
		last = base.n_nodes - 1
		self.assertEqual(lb[base.get_var_index(0, POS, Z)], 0.58)
		self.assertEqual(ub[base.get_var_index(last, POS, X)], 0.5)
		self.assertEqual(lb[base.get_var_index(last, VEL, Z)], 0.0)
		# height at the end is free
		self.assertEqual(lb[base.get_var_index(last, POS, Z)], -np.inf)


	def test_coefficient_base(self):
		problem = monoped_problem(base_representation='poly_coeff')
		variables = MotionOptimizerFacade(verbose=False).build_variables(problem)
		base = variables.get_component(BASE_LINEAR, CoeffSpline)
		self.assertFalse(variables.is_decision_bearing(BASE_LINEAR))
		self.assertEqual(len(base.poly_vars), 10)
		self.assertIs(variables.get_component(base_poly_id(BASE_LINEAR, 0), PolynomialVars), base.poly_vars[0])
		np.testing.assert_allclose(base.get_point(0.5).p, [0, 0, 0.58])

		nlp = MotionOptimizerFacade(verbose=False).build_cost_constraints(problem)
		names = [c.name for c in nlp.constraints]
		self.assertIn('base_poly_continuity', names)
		self.assertIn('base_final_state', names)


	def test_unsupported_representation(self):
		problem = monoped_problem()
		problem.params.base_representation = 'b_spline'
		with self.assertRaises(ConfigurationError):
			MotionOptimizerFacade(verbose=False).build_variables(problem)
		self.assertIsNone(problem.variables)


	def test_unsupported_solver(self):
		problem = monoped_problem()
		with self.assertRaises(ConfigurationError):
			MotionOptimizerFacade(verbose=False).solve_problem(problem, solver='snopt')
		self.assertIsNone(problem.variables)
		self.assertIsNone(problem.nlp)


	def test_mismatching_total_times(self):
		params = OptimizationParameters(
			ee_phase_durations=[np.array([0.4, 0.2, 0.4]), np.array([0.5, 0.6])],
			ee_in_contact_at_start=[True, True],
		)
		problem = MotionProblem(params=params, model=BipedModel())
		with self.assertRaises(ConsistencyError):
			MotionOptimizerFacade(verbose=False).build_variables(problem)
		self.assertIsNone(problem.variables)


	def test_endeffector_count_mismatch(self):
		problem = monoped_problem(ee_phase_durations=[np.array([1.0]), np.array([1.0])],
								  ee_in_contact_at_start=[True, True])
		with self.assertRaises(ConfigurationError):
			MotionOptimizerFacade(verbose=False).build_variables(problem)


	def test_solver_options(self):
		options = get_solver_options(NlpSolver.IPOPT, 50, verbose=False)
		self.assertEqual(options['ipopt']['max_iter'], 50)
		self.assertEqual(options['ipopt']['print_level'], 0)
		options = get_solver_options(NlpSolver.SQPMETHOD, 50, verbose=False)
		self.assertEqual(options['qpsol'], 'qpoases')
