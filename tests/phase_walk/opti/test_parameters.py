import os
import tempfile
from unittest import TestCase

import numpy as np

from phase_walk.errors import *
from phase_walk.opti.parameters import *


class TestOptimizationParameters(TestCase):

	def test_defaults(self):
		params = OptimizationParameters()
		self.assertEqual(params.base_representation, BaseRepresentation.CUBIC_HERMITE)
		self.assertAlmostEqual(params.get_total_time(), 1.0)
		self.assertFalse(params.constraint_exists(ConstraintName.TOTAL_TIME))
		self.assertTrue(params.constraint_exists(ConstraintName.DYNAMIC))


	def test_optimized_durations_add_total_time(self):
		params = OptimizationParameters(optimize_phase_durations=True)
		self.assertTrue(params.constraint_exists(ConstraintName.TOTAL_TIME))
		self.assertEqual(params.get_used_constraints().count(ConstraintName.TOTAL_TIME), 1)


	def test_poly_coeff_adds_continuity(self):
		params = OptimizationParameters(base_representation='poly_coeff', constraints=[])
		self.assertEqual(params.base_representation, BaseRepresentation.POLY_COEFF)
		self.assertEqual(params.get_used_constraints(),
						 [ConstraintName.BASE_POLY_CONTINUITY, ConstraintName.BASE_FINAL_STATE])


	def test_base_poly_durations(self):
		params = OptimizationParameters(base_poly_duration=0.3)
		np.testing.assert_allclose(params.get_base_poly_durations(), [0.3, 0.3, 0.3, 0.1])

		params = OptimizationParameters(base_poly_duration=0.1)
		durations = params.get_base_poly_durations()
		self.assertEqual(len(durations), 10)
		self.assertAlmostEqual(sum(durations), 1.0)


	def test_parse_enum(self):
		self.assertEqual(parse_enum(NlpSolver, 'sqpmethod'), NlpSolver.SQPMETHOD)
		self.assertEqual(parse_enum(NlpSolver, NlpSolver.IPOPT), NlpSolver.IPOPT)
		with self.assertRaises(ConfigurationError):
			parse_enum(NlpSolver, 'snopt')


	def test_unknown_values(self):
		with self.assertRaises(ConfigurationError):
			OptimizationParameters(base_representation='b_spline')
		with self.assertRaises(ConfigurationError):
			OptimizationParameters(constraints=['dynamic', 'collision'])
		with self.assertRaises(ConfigurationError):
			OptimizationParameters.from_dict({'base_poly_durations': 0.2})


	def test_endeffector_count_mismatch(self):
		with self.assertRaises(ConfigurationError):
			OptimizationParameters(ee_phase_durations=[np.array([1.0]), np.array([1.0])],
								   ee_in_contact_at_start=[True])


	def test_yaml_roundtrip(self):
		params = OptimizationParameters(
			ee_phase_durations=[np.array([0.3, 0.3, 0.4]), np.array([1.0])],
			ee_in_contact_at_start=[True, True],
			base_representation=BaseRepresentation.POLY_COEFF,
			cost_weights={CostName.FORCE: 0.01},
		)
		with tempfile.TemporaryDirectory() as directory:
			file = os.path.join(directory, 'params.yaml')
			params.to_yaml(file)
			loaded = OptimizationParameters.from_yaml(file)

		self.assertEqual(loaded.base_representation, BaseRepresentation.POLY_COEFF)
		self.assertEqual(loaded.constraints, params.constraints)
		self.assertEqual(loaded.cost_weights, {CostName.FORCE: 0.01})
		self.assertEqual(loaded.ee_in_contact_at_start, [True, True])
		for loaded_durations, durations in zip(loaded.ee_phase_durations, params.ee_phase_durations):
			np.testing.assert_array_equal(loaded_durations, durations)
