import casadi
import numpy as np
import rich
from rich.table import Table

from phase_walk.errors import BoundsViolationError, ConsistencyError
from phase_walk.opti.constraints import ConstraintSet
from phase_walk.opti.costs import CostTerm
from phase_walk.variables.composite import Composite


class Nlp:
    """
    Variables, constraints and costs of one motion problem plus the iterates a solver recorded for it.
    """
    variables: Composite
    constraints: list[ConstraintSet]
    costs: list[CostTerm]

    # decision vector of each solver iteration
    iterates: list[np.ndarray]
    solver_stats: dict

    def __init__(self, variables: Composite):
        self.variables = variables
        self.constraints = []
        self.costs = []
        self.iterates = []
        self.solver_stats = None

    def add_constraint(self, constraint: ConstraintSet):
        self.constraints.append(constraint)

    def add_cost(self, cost: CostTerm):
        self.costs.append(cost)


    def transcribe(self) -> (dict, dict):
        """
        Build the casadi nlp from a symbolic copy of the variable tree.
        :return: nlp dict (x, f, g) and the solver args (x0, lbx, ubx, lbg, ubg)
        """
        x0 = np.array(self.variables.flatten())
        lbx, ubx = self.variables.get_bounds()
        nx = x0.shape[0]
        outside = np.flatnonzero((x0 < lbx) | (x0 > ubx))
        if outside.shape[0] > 0:
            raise BoundsViolationError(
                f"initial guess of '{self.variables.name}' is outside of its bounds at indices {outside.tolist()}")

        x = casadi.MX.sym('x', nx)
        symbolic_variables = self.variables.copy()
        symbolic_variables.scatter(x)

        g = []
        lbg = [np.zeros(0)]
        ubg = [np.zeros(0)]
        for c in self.constraints:
            c_g, c_lb, c_ub = c.evaluate(symbolic_variables)
            g.append(c_g)
            lbg.append(c_lb)
            ubg.append(c_ub)

        f = casadi.MX(0)
        for cost in self.costs:
            f = f + cost.get_cost(symbolic_variables)

        nlp = {
            'x': x,
            'f': f,
            'g': casadi.vertcat(casadi.MX(0, 1), *g),
        }
        args = {
            'x0': x0,
            'lbx': lbx,
            'ubx': ubx,
            'lbg': np.concatenate(lbg),
            'ubg': np.concatenate(ubg),
        }
        return nlp, args


    def set_iterates(self, iterates: list[np.ndarray]):
        for x in iterates:
            if x.shape[0] != self.variables.n_variables:
                raise ConsistencyError(
                    f"iterate has {x.shape[0]} values but the problem has {self.variables.n_variables} variables")
        self.iterates = [np.array(x) for x in iterates]

    def get_iteration_count(self) -> int:
        return len(self.iterates)

    def get_opt_variables(self, iteration: int) -> Composite:
        """
        Independent copy of the variable tree holding the values of the given iteration.
        """
        variables = self.variables.copy()
        variables.scatter(self.iterates[iteration])
        return variables


    def print(self):
        table = Table(title='nlp')
        table.add_column("component", justify="right", style="cyan", no_wrap=True)
        table.add_column("kind")
        table.add_column("size", justify="right")
        table.add_row(self.variables.name, 'variables', str(self.variables.n_variables))
        for c in self.constraints:
            table.add_row(c.name, 'constraint', str(c.get_num_rows(self.variables)))
        for c in self.costs:
            table.add_row(c.name, f'cost (weight {c.weight})', '1')
        rich.print(table)
