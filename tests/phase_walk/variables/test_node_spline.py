from unittest import TestCase

import casadi
import numpy as np

from phase_walk.errors import *
from phase_walk.motion_util import *
from phase_walk.variables.contact_schedule import ContactSchedule
from phase_walk.variables.composite import Composite
from phase_walk.variables.node_spline import NodeSpline
from phase_walk.variables.phase_nodes import EndeffectorNodes
from tests.test_util import *


class TestNodeSpline(TestCase):

	def test_structure(self):
		spline = NodeSpline(3, 4, 'base')
		self.assertEqual(spline.n_nodes, 5)
		self.assertEqual(spline.n_variables, 5 * 2 * 3)
		self.assertEqual(spline.get_var_index(0, POS, X), 0)
		self.assertEqual(spline.get_var_index(0, VEL, X), 3)
		self.assertEqual(spline.get_var_index(1, POS, Z), 8)


	def test_start_bound_is_exact(self):
		initial = np.array([0.1, -0.3, 0.5123])
		final = np.array([1.0, 0.7, 0.5])
		spline = NodeSpline(3, 4, 'base')
		spline.initialize_variables(initial + 0.2, final, [0.25] * 4)
		spline.add_start_bound(POS, [X, Y, Z], initial)
		np.testing.assert_array_equal(spline.get_point(0).p, initial)

		lb, ub = spline.get_bounds()
		for dim in [X, Y, Z]:
			var = spline.get_var_index(0, POS, dim)
			self.assertEqual(lb[var], initial[dim])
			self.assertEqual(ub[var], initial[dim])
		# other variables stay free
		self.assertEqual(lb[spline.get_var_index(1, POS, X)], -np.inf)


	def test_final_bound(self):
		spline = NodeSpline(2, 3, 'base')
		spline.initialize_variables(np.zeros(2), np.ones(2), [0.5] * 3)
		spline.add_final_bound(VEL, [X], np.array([0.0, 5.0]))
		np.testing.assert_allclose(spline.get_point(1.5).v, [0.0, 2 / 3])


	def test_initialization_interpolates_linearly(self):
		spline = NodeSpline(1, 2, 'spline')
		spline.initialize_variables(np.array([0.0]), np.array([2.0]), [0.5, 0.5])
		nodes = spline.get_nodes()
		np.testing.assert_allclose([n.p[0] for n in nodes], [0, 1, 2])
		np.testing.assert_allclose([n.v[0] for n in nodes], [2, 2, 2])

		for t in [0, 0.25, 0.5, 0.8, 1.0]:
			point = spline.get_point(t)
			np.testing.assert_allclose(point.p, [2 * t], atol=1e-12)
			np.testing.assert_allclose(point.v, [2], atol=1e-12)
			np.testing.assert_allclose(point.a, [0], atol=1e-9)


	def test_out_of_range(self):
		spline = NodeSpline(1, 2, 'spline')
		spline.initialize_variables(np.array([0.0]), np.array([2.0]), [0.5, 0.5])
		# clamped within tolerance
		np.testing.assert_allclose(spline.get_point(1.0 + 1e-6).p, spline.get_point(1.0).p)
		np.testing.assert_allclose(spline.get_point(-1e-6).p, spline.get_point(0).p)
		with self.assertRaises(OutOfRangeError):
			spline.get_point(1.1)
		with self.assertRaises(OutOfRangeError):
			spline.get_point(-0.01)


	def test_wrong_number_of_durations(self):
		spline = NodeSpline(1, 2, 'spline')
		with self.assertRaises(ConsistencyError):
			spline.set_poly_durations([0.5, 0.5, 0.5])


	def test_symbolic_durations(self):
		# durations of the phases are variables -> polynomials are activated via if_else
		tree = Composite('tree')
		schedule = ContactSchedule(0, [0.4, 0.2, 0.4])
		motion = EndeffectorNodes(1, schedule.get_contact_sequence(), 'ee_motion', 2)
		schedule.add_observer(motion)
		motion.initialize_variables(np.array([0.0]), np.array([1.0]), schedule.get_time_per_phase())
		tree.add_component(schedule)
		tree.add_component(motion)

		x_num = tree.flatten()
		symbolic_tree = tree.copy()
		x = casadi.MX.sym('x', tree.n_variables)
		symbolic_tree.scatter(x)
		symbolic_motion = symbolic_tree.get_component('ee_motion', EndeffectorNodes)
		self.assertTrue(is_symbolic(*symbolic_motion.poly_durations))

		for t in [0.1, 0.45, 0.55, 0.7, 1.0]:
			point = symbolic_motion.get_point(t)
			f = casadi.Function('f', [x], [point.p, point.v])
			p, v = f(x_num)
			expected = motion.get_point(t)
			np.testing.assert_allclose(np.array(p).flatten(), expected.p, atol=1e-12)
			np.testing.assert_allclose(np.array(v).flatten(), expected.v, atol=1e-12)


	def test_val_if_in_range(self):
		self.assertEqual(to_np(NodeSpline.val_if_in_range(0, 1, casadi.MX(0.5), 3.0)).item(), 3.0)
		self.assertEqual(to_np(NodeSpline.val_if_in_range(0, 1, casadi.MX(1.0), 3.0)).item(), 0.0)
		self.assertEqual(to_np(NodeSpline.val_if_in_range(0, 1, casadi.MX(1.0), 3.0, include_end=True)).item(), 3.0)
