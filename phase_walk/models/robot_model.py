import numpy as np


class RobotModel:
    """
    Properties of the robot needed to build the motion problem.
    Nominal stance offsets are the endeffector positions relative to the base (in base frame)
    in a comfortable standing pose.
    """
    gravity_acc = 9.80665

    mass: float
    nominal_stance: list[np.ndarray]
    max_force: float
    # half size of the box (around the nominal stance) each endeffector may move in
    max_deviation_from_nominal: np.ndarray

    def __init__(self,
                 mass: float,
                 nominal_stance: list[np.ndarray],
                 max_force: float,
                 max_deviation_from_nominal=None
                 ):
        assert len(nominal_stance) > 0, "need at least one endeffector"
        self.mass = mass
        self.nominal_stance = [np.array(p, dtype=float) for p in nominal_stance]
        self.max_force = max_force
        self.max_deviation_from_nominal = (np.array(max_deviation_from_nominal, dtype=float)
                                           if max_deviation_from_nominal is not None else np.array([0.25, 0.2, 0.1]))

    def get_ee_count(self) -> int:
        return len(self.nominal_stance)

    def get_ee_ids(self) -> list[int]:
        return list(range(self.get_ee_count()))

    def get_nominal_stance_in_base(self) -> list[np.ndarray]:
        return [np.array(p) for p in self.nominal_stance]

    def get_force_limit(self) -> float:
        return self.max_force

    def get_standing_z_force(self) -> float:
        """
        Force in z each endeffector carries when all of them stand on the ground.
        """
        return self.mass * self.gravity_acc / self.get_ee_count()


class MonopedModel(RobotModel):

    def __init__(self):
        super().__init__(
            mass=20,
            nominal_stance=[np.array([0.0, 0.0, -0.58])],
            max_force=10000,
            max_deviation_from_nominal=np.array([0.25, 0.15, 0.2])
        )


class BipedModel(RobotModel):

    def __init__(self):
        super().__init__(
            mass=20,
            nominal_stance=[
                np.array([0.0, 0.2, -0.65]),
                np.array([0.0, -0.2, -0.65]),
            ],
            max_force=5000,
            max_deviation_from_nominal=np.array([0.25, 0.1, 0.15])
        )


class QuadrupedModel(RobotModel):

    def __init__(self):
        x_nominal_b = 0.34
        y_nominal_b = 0.19
        z_nominal_b = -0.42
        super().__init__(
            mass=29.5,
            nominal_stance=[
                np.array([ x_nominal_b,  y_nominal_b, z_nominal_b]),  # left front
                np.array([ x_nominal_b, -y_nominal_b, z_nominal_b]),  # right front
                np.array([-x_nominal_b,  y_nominal_b, z_nominal_b]),  # left hind
                np.array([-x_nominal_b, -y_nominal_b, z_nominal_b]),  # right hind
            ],
            max_force=1000,
            max_deviation_from_nominal=np.array([0.15, 0.1, 0.1])
        )
