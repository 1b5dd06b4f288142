from unittest import TestCase

import casadi
import numpy as np

from phase_walk.errors import *
from phase_walk.motion_util import POS, Z, vector_length
from phase_walk.opti.cost_constraint_factory import CostConstraintFactory
from phase_walk.opti.motion_optimizer_facade import MotionOptimizerFacade
from phase_walk.opti.nlp import Nlp
from phase_walk.opti.parameters import *
from phase_walk.variables.phase_nodes import ForceNodes
from phase_walk.variables.variable_names import *
from tests.test_util import *


def build_factory(**params) -> CostConstraintFactory:
	problem = monoped_problem(**params)
	MotionOptimizerFacade(verbose=False).build_variables(problem)
	return CostConstraintFactory(problem.variables, problem.params, problem.model, problem.terrain)


class TestCostConstraintFactory(TestCase):

	def setUp(self):
		self.factory = build_factory()
		self.variables = self.factory.variables
		self.standing_force = 20 * 9.80665


	def evaluate(self, name):
		g, lb, ub = self.factory.get_constraint(name).evaluate(self.variables)
		return np.array(g).flatten(), lb, ub


	def test_dynamic(self):
		g, lb, ub = self.evaluate(ConstraintName.DYNAMIC)
		# 11 time points
		self.assertEqual(len(g), 33)
		# standing force everywhere in the initial guess carries the robot
		np.testing.assert_allclose(g, np.zeros(33), atol=1e-9)
		np.testing.assert_array_equal(lb, ub)


	def test_range_of_motion(self):
		g, lb, ub = self.evaluate('range_of_motion')
		self.assertEqual(len(g), 33)
		np.testing.assert_allclose(g, np.zeros(33), atol=1e-9)
		np.testing.assert_allclose(ub[:3], [0.25, 0.15, 0.2])
		np.testing.assert_allclose(lb[:3], [-0.25, -0.15, -0.2])


	def test_terrain(self):
		g, lb, ub = self.evaluate(ConstraintName.TERRAIN)
		# contact, interior swing node, contact
		np.testing.assert_allclose(g, [0, 0, 0], atol=1e-12)
		np.testing.assert_array_equal(lb, [0, 0, 0])
		np.testing.assert_array_equal(ub, [0, np.inf, 0])


	def test_force(self):
		g, lb, ub = self.evaluate(ConstraintName.FORCE)
		# 7 independent stance nodes, normal force + 4 pyramid rows each
		self.assertEqual(len(g), 35)
		self.assertTrue(np.all(g >= lb))
		self.assertTrue(np.all(g <= ub))
		self.assertAlmostEqual(g[0], self.standing_force)


	def test_swing(self):
		g, lb, ub = self.evaluate(ConstraintName.SWING)
		# initial guess still has the standing force in the air
		np.testing.assert_allclose(g, [0, 0, self.standing_force])
		np.testing.assert_array_equal(ub, [0, 0, 0])


	def test_total_time(self):
		g, lb, ub = self.evaluate(ConstraintName.TOTAL_TIME)
		np.testing.assert_allclose(g, [1.0])
		np.testing.assert_allclose(lb, [1.0])


	def test_continuity_only_for_coefficient_polynomials(self):
		g, lb, ub = self.evaluate(ConstraintName.BASE_POLY_CONTINUITY)
		self.assertEqual(len(g), 0)


	def test_coefficient_base(self):
		factory = build_factory(base_representation=BaseRepresentation.POLY_COEFF)
		g, lb, ub = factory.get_constraint(ConstraintName.BASE_POLY_CONTINUITY).evaluate(factory.variables)
		# 9 junctions, value and two derivatives in 3 dims, linear and angular
		self.assertEqual(vector_length(g), 9 * 3 * 3 * 2)
		np.testing.assert_allclose(np.array(g).flatten(), 0, atol=1e-9)

		g, lb, ub = factory.get_constraint(ConstraintName.BASE_FINAL_STATE).evaluate(factory.variables)
		self.assertEqual(vector_length(g), 9)
		np.testing.assert_allclose(np.array(g).flatten(), lb, atol=1e-9)
		np.testing.assert_array_equal(lb, ub)


	def test_costs_of_initial_guess(self):
		for name, weight in [(CostName.BASE_LIN_ACC, 1.0), (CostName.BASE_ANG_ACC, 2.0), (CostName.FORCE, 0.1)]:
			cost = self.factory.get_cost(name, weight)
			self.assertEqual(cost.weight, weight)
			self.assertAlmostEqual(float(cost.get_cost(self.variables)), 0.0)


	def test_unknown_names(self):
		with self.assertRaises(ConfigurationError):
			self.factory.get_constraint('collision')
		with self.assertRaises(ConfigurationError):
			self.factory.get_cost('energy', 1.0)


	def test_symbolic_matches_numeric(self):
		# phase durations are variables, motion and force polynomials are switched via if_else
		factory = build_factory(optimize_phase_durations=True)
		variables = factory.variables
		nlp = Nlp(variables)
		for name in factory.params.get_used_constraints():
			nlp.add_constraint(factory.get_constraint(name))
		nlp.add_cost(factory.get_cost(CostName.BASE_LIN_ACC, 1.0))

		nlp_dict, args = nlp.transcribe()
		self.assertEqual(nlp_dict['x'].shape[0], variables.n_variables)
		f = casadi.Function('f', [nlp_dict['x']], [nlp_dict['g'], nlp_dict['f']])
		g_symbolic, cost_symbolic = f(variables.flatten())

		g_numeric = np.concatenate([np.array(c.evaluate(variables)[0]).flatten() for c in nlp.constraints])
		np.testing.assert_allclose(np.array(g_symbolic).flatten(), g_numeric, atol=1e-9)
		self.assertAlmostEqual(float(cost_symbolic), 0.0)
		self.assertEqual(len(args['lbg']), len(g_numeric))
		self.assertEqual(len(args['x0']), variables.n_variables)


	def test_initial_guess_outside_bounds(self):
		variables = self.variables
		force = variables.get_component(ee_force_id(0), ForceNodes)
		x_force = force.get_values()
		x_force[force.get_var_index(0, POS, Z)] = 2 * force.force_limit
		force.set_variables(x_force)

		nlp = Nlp(variables)
		nlp.add_cost(self.factory.get_cost(CostName.BASE_LIN_ACC, 1.0))
		with self.assertRaises(BoundsViolationError):
			nlp.transcribe()

		# initial guess is passed on unchanged
		x_force[force.get_var_index(0, POS, Z)] = force.force_limit
		force.set_variables(x_force)
		_, args = nlp.transcribe()
		np.testing.assert_array_equal(args['x0'], variables.flatten())
