import numpy.typing as npt

from phase_walk.trajectory.robot_state import StateLin


class PolynomialCoeff():
    """
    Polynomial of arbitrary order given directly by its coefficients:
    x(t) = a0 + a1*t + a2*t^2 + ... + an*t^n
    Unlike Polynomial3 the values at the polynomial ends are not parameters,
    so chaining these polynomials needs explicit continuity constraints.
    """

    # one coefficient vector per order, each with the output dimensions
    coefficients: list[npt.ArrayLike]


    @staticmethod
    def get_required_num_parameters_for_dim(polynom_output_dimensions: int, order: int):
        return polynom_output_dimensions*(order + 1)


    def __init__(self, coefficients: list):
        assert len(coefficients) >= 2, "need at least a constant and a linear coefficient"
        self.coefficients = coefficients

    @property
    def order(self) -> int:
        return len(self.coefficients) - 1


    def evaluate_derivative(self, t, derivative: int):
        """
        Get value of the derivative-th derivative at time t (t=0 is the polynomial start).
        """
        x = 0*self.coefficients[0]
        for k in range(derivative, self.order + 1):
            factor = 1.0
            for j in range(derivative):
                factor *= (k - j)
            x = x + factor * self.coefficients[k] * (t**(k - derivative))
        return x

    def evaluate(self, t):
        return self.evaluate_derivative(t, 0)

    def evaluate_dx(self, t):
        return self.evaluate_derivative(t, 1)

    def evaluate_ddx(self, t):
        return self.evaluate_derivative(t, 2)

    def get_point(self, t) -> StateLin:
        return StateLin(self.evaluate(t), self.evaluate_dx(t), self.evaluate_ddx(t))
