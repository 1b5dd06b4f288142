from dataclasses import dataclass, field

import numpy as np
import numpy.typing as npt


@dataclass
class StateLin:
    """
    Value and first two derivatives of a trajectory at one point in time.
    Entries are np.arrays or casadi MX columns (when evaluated on a symbolic variable tree).
    """
    p: npt.ArrayLike
    v: npt.ArrayLike = None
    a: npt.ArrayLike = None

    @staticmethod
    def zero(n_dim=3) -> 'StateLin':
        return StateLin(np.zeros(n_dim), np.zeros(n_dim), np.zeros(n_dim))


@dataclass(frozen=True)
class StateAng:
    """
    Orientation in the form consumed outside of the optimization:
    quaternion (x, y, z, w), angular velocity and acceleration in world frame.
    """
    q: np.ndarray
    w: np.ndarray
    dw: np.ndarray


@dataclass
class BaseState:
    """
    Linear and angular (Z-Y-X euler angles) state of the base as used for boundary conditions.
    """
    lin: StateLin = field(default_factory=StateLin.zero)
    ang: StateLin = field(default_factory=StateLin.zero)


@dataclass(frozen=True)
class RobotStateCartesian:
    """
    Snapshot of the whole robot at time t_global.
    """
    t_global: float
    base_lin: StateLin
    base_ang: StateAng
    ee_motion: tuple        # StateLin per endeffector
    ee_forces: tuple        # np.array per endeffector
    ee_contact: tuple       # bool per endeffector

    @property
    def num_ee(self) -> int:
        return len(self.ee_motion)
