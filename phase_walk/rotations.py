import casadi
from casadi import *
import numpy as np
from scipy.spatial.transform import Rotation as R

from phase_walk.motion_util import to_flat_array
from phase_walk.trajectory.robot_state import StateLin, StateAng


def R_world_frame_to_base_frame_euler(base_angles):
    r"""
    Get transformation matrix to rotate from world to base frame (via euler zyx angles).
    Does ${\bf z'}=R_{i j k}({\bf u})\;{\bf z}$,
    where $z$ is the vector in world frame and $z'$ is the vector in base frame.
    :param base_angles: base angels
    :return: Transform matrix
    """
    # rotations: here we use Z-Y-X order Euler angles
    #   φ = around x-axis
    #   θ = around y-axis
    #   ψ = around z-axis
    sin_x = casadi.sin(base_angles[0])  # φ
    cos_x = casadi.cos(base_angles[0])  # φ

    sin_y = casadi.sin(base_angles[1])  # θ
    cos_y = casadi.cos(base_angles[1])  # θ

    sin_z = casadi.sin(base_angles[2])  # ψ
    cos_z = casadi.cos(base_angles[2])  # ψ

    R = vertcat(
        horzcat(cos_y*cos_z,                        cos_y*sin_z,                            -sin_y),
        horzcat(sin_x*sin_y*cos_z - cos_x*sin_z,    sin_x*sin_y*sin_z + cos_x*cos_z,        cos_y*sin_x),
        horzcat(cos_x*sin_y*cos_z + sin_x*sin_z,    cos_x*sin_y*sin_z - sin_x*cos_z,        cos_y*cos_x),
    )
    return R


def E_euler_rates_to_angular_vel(base_angles):
    """
    Get Matrix to map (global) euler angle (change) rates to (global) angular velocity.
    :param base_angles: base angels
    :return: Transform matrix
    """
    sin_y = casadi.sin(base_angles[1])
    cos_y = casadi.cos(base_angles[1])
    sin_z = casadi.sin(base_angles[2])
    cos_z = casadi.cos(base_angles[2])
    E = vertcat(
        horzcat(cos_y*cos_z,   -sin_z,     0),
        horzcat(cos_y*sin_z,   cos_z,      0),
        horzcat(-sin_y,        0,          1),
    )
    return E


def E_euler_rates_to_angular_vel__dangleY(base_angles):
    r"""
    Get derivative by the y-angle of the Matrix which maps (global) euler angle (change) rates to (global) angular velocity.
    See $$\frac{\partial E}{\partial \theta}$$ in "Representing Attitude: Euler Angles, Unit Quaternions, and Rotation" p. 24.
    """
    sin_y = casadi.sin(base_angles[1])
    cos_y = casadi.cos(base_angles[1])
    sin_z = casadi.sin(base_angles[2])
    cos_z = casadi.cos(base_angles[2])
    E_dY = vertcat(
        horzcat(-cos_z*sin_y,      0,     0),
        horzcat(-sin_z*sin_y,      0,     0),
        horzcat(-cos_y,            0,     0),
    )
    return E_dY


def E_euler_rates_to_angular_vel__dangleZ(base_angles):
    r"""
    Get derivative by the z-angle of the Matrix which maps (global) euler angle (change) rates to (global) angular velocity.
    See $$\frac{\partial E}{\partial \psi}$$ in "Representing Attitude: Euler Angles, Unit Quaternions, and Rotation" p. 24.
    """
    sin_y = casadi.sin(base_angles[1])
    cos_y = casadi.cos(base_angles[1])
    sin_z = casadi.sin(base_angles[2])
    cos_z = casadi.cos(base_angles[2])
    E_dZ = vertcat(
        horzcat(-cos_y*sin_z,      -cos_z,     0),
        horzcat(cos_y*cos_z,        -sin_z,    0),
        horzcat(0,                  0,         0),
    )
    return E_dZ


class AngularStateConverter:
    """
    Converts the euler angle trajectory of the base (angles, rates and their derivative)
    into orientation quaternion, angular velocity and angular acceleration in world frame.
    """

    @staticmethod
    def get_quaternion(euler_angles) -> np.ndarray:
        """
        Quaternion (x, y, z, w) of the Z-Y-X euler angles (x: roll, y: pitch, z: yaw).
        """
        angles = to_flat_array(euler_angles)
        return R.from_euler('ZYX', [angles[2], angles[1], angles[0]]).as_quat()

    @staticmethod
    def get_angular_velocity(euler_angles, euler_rates) -> np.ndarray:
        E = np.array(E_euler_rates_to_angular_vel(to_flat_array(euler_angles)))
        return E @ to_flat_array(euler_rates)

    @staticmethod
    def get_angular_acceleration(euler_angles, euler_rates, euler_acc) -> np.ndarray:
        """
        dw = E * ddangles + dE * dangles, with dE = dE/dy * dy + dE/dz * dz.
        """
        angles = to_flat_array(euler_angles)
        rates = to_flat_array(euler_rates)
        E = np.array(E_euler_rates_to_angular_vel(angles))
        E_dt = (np.array(E_euler_rates_to_angular_vel__dangleY(angles)) * rates[1]
                + np.array(E_euler_rates_to_angular_vel__dangleZ(angles)) * rates[2])
        return E @ to_flat_array(euler_acc) + E_dt @ rates

    @staticmethod
    def get_state(euler: StateLin) -> StateAng:
        return StateAng(
            q=AngularStateConverter.get_quaternion(euler.p),
            w=AngularStateConverter.get_angular_velocity(euler.p, euler.v),
            dw=AngularStateConverter.get_angular_acceleration(euler.p, euler.v, euler.a),
        )
