import unittest

import numpy as np
from scipy.spatial.transform import Rotation

from phase_walk.rotations import *
from tests.test_util import to_np


class TestEulerAngleConversions(unittest.TestCase):


    def test_R_world_frame_to_base_frame_euler(self):
        angles = np.array([1, 2.5, 0.5])
        R_wb = to_np(R_world_frame_to_base_frame_euler(angles))
        self.assertTrue(np.allclose(np.linalg.inv(R_wb), R_wb.T))

        # scipy gives base to world for the intrinsic z-y-x sequence (yaw, pitch, roll)
        R_ref = Rotation.from_euler('ZYX', [angles[2], angles[1], angles[0]]).as_matrix().T
        np.testing.assert_allclose(R_wb, R_ref, atol=1e-12)


    def test_quaternion(self):
        np.testing.assert_allclose(AngularStateConverter.get_quaternion(np.zeros(3)), [0, 0, 0, 1])
        q = AngularStateConverter.get_quaternion(np.array([0, 0, np.pi/2]))
        np.testing.assert_allclose(q, [0, 0, np.sin(np.pi/4), np.cos(np.pi/4)], atol=1e-12)


    def test_angular_velocity_without_rotation(self):
        rates = np.array([0.1, -0.2, 0.3])
        np.testing.assert_allclose(AngularStateConverter.get_angular_velocity(np.zeros(3), rates), rates)


    def test_angular_acceleration_by_finite_differences(self):
        # angles(t) = a0 + a1*t + a2*t^2
        a0 = np.array([0.1, 0.4, -0.3])
        a1 = np.array([0.5, -0.7, 1.2])
        a2 = np.array([-0.2, 0.3, 0.6])
        angles = lambda t: a0 + a1*t + a2*t**2
        rates = lambda t: a1 + 2*a2*t
        w = lambda t: AngularStateConverter.get_angular_velocity(angles(t), rates(t))

        h = 1e-6
        for t in [0.0, 0.3, 0.8]:
            dw_fd = (w(t + h) - w(t - h)) / (2*h)
            dw = AngularStateConverter.get_angular_acceleration(angles(t), rates(t), 2*a2)
            np.testing.assert_allclose(dw, dw_fd, atol=1e-6)


    def test_get_state(self):
        euler = StateLin(np.zeros(3), np.array([0.0, 0.0, 1.0]), np.zeros(3))
        state = AngularStateConverter.get_state(euler)
        np.testing.assert_allclose(state.q, [0, 0, 0, 1])
        np.testing.assert_allclose(state.w, [0, 0, 1.0])
        np.testing.assert_allclose(state.dw, np.zeros(3), atol=1e-12)


if __name__ == '__main__':
    unittest.main()
