import numpy.typing as npt

from phase_walk.trajectory.robot_state import StateLin


class Polynomial3():
    """
    3. degree polynomial with hermite parametrization.
    Values may be np.arrays or casadi MX, the same arithmetic is used for both.
    """

    # may have multiple dimension when the polynom output is also multidimensional
    x0: npt.ArrayLike
    dx0: npt.ArrayLike
    x1: npt.ArrayLike
    dx1: npt.ArrayLike

    deltaT: float


    def __init__(self, x0, dx0, x1, dx1, deltaT):
        self.x0 = x0
        self.dx0 = dx0
        self.x1 = x1
        self.dx1 = dx1
        self.deltaT = deltaT


    def get_coefficients(self):
        """
        Get polynom coefficients.
        Note that x0 is allways at t=0 and x1 at t=deltaT.
        """
        # Hermite Polynom parametrization
        a0 = self.x0
        a1 = self.dx0
        a2 = -(self.deltaT**(-2)) * (3*(self.x0 - self.x1) + self.deltaT*(2*self.dx0 + self.dx1))
        a3 = (self.deltaT**(-3)) * (2*(self.x0 - self.x1) + self.deltaT*(  self.dx0 + self.dx1))
        return a0, a1, a2, a3


    def evaluate(self, t):
        """
        Get polynom value at time t.
        Note that x0 is allways at t=0 and x1 at t=deltaT.
        """
        a0, a1, a2, a3 = self.get_coefficients()
        return a0 + a1*t + a2*(t**2) + a3*(t**3)

    def evaluate_dx(self, t):
        a0, a1, a2, a3 = self.get_coefficients()
        return a1 + 2*a2*t + 3*a3*(t**2)

    def evaluate_ddx(self, t):
        a0, a1, a2, a3 = self.get_coefficients()
        return 2*a2 + 2*3*a3*t

    def get_point(self, t) -> StateLin:
        return StateLin(self.evaluate(t), self.evaluate_dx(t), self.evaluate_ddx(t))
