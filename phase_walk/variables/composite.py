import copy
from abc import ABC, abstractmethod

import numpy as np
import rich
from rich.table import Table
from rich.tree import Tree

from phase_walk.errors import ComponentNotFoundError, ComponentTypeError, ConsistencyError
from phase_walk.motion_util import concat, as_numeric_or_symbolic_vector, vector_length


class Component(ABC):
	"""
	Named part of the optimization problem.
	"""
	name: str

	def __init__(self, name: str):
		self.name = name


class VariableSet(Component):
	"""
	Component that owns optimization variables.
	Its values can be read as one flat vector and written back from one,
	the vector may be numeric (np.array) or symbolic (casadi MX).
	"""

	@property
	@abstractmethod
	def n_variables(self) -> int:
		pass

	@abstractmethod
	def get_values(self):
		"""
		Get the current values of all variables as flat vector.
		"""
		pass

	@abstractmethod
	def set_variables(self, x):
		"""
		Overwrite all variables with the values of the flat vector x.
		"""
		pass

	@abstractmethod
	def get_bounds(self) -> (np.ndarray, np.ndarray):
		"""
		:return: lower, upper bound for each variable
		"""
		pass

	def _check_length(self, x):
		if vector_length(x) != self.n_variables:
			raise ConsistencyError(
				f"'{self.name}' has {self.n_variables} variables but got a vector of length {vector_length(x)}")


class Composite(VariableSet):
	"""
	Tree of named components.
	Decision-bearing children are part of the flat decision vector (in insertion order, depth first),
	informational children are just stored for later access by name.
	"""
	_decision_components: list[VariableSet]
	_info_components: list[Component]
	# composite this one was added to, None for the root
	_parent: 'Composite'

	def __init__(self, name: str):
		super().__init__(name)
		self._decision_components = []
		self._info_components = []
		self._parent = None

	def get_root(self) -> 'Composite':
		root = self
		while root._parent is not None:
			root = root._parent
		return root

	def add_component(self, component: Component, is_decision_bearing=True):
		"""
		Append a child. Names have to be unique in the whole tree.
		:param is_decision_bearing: when false the component is not part of the decision vector.
		"""
		if isinstance(component, Composite) and component._parent is not None:
			raise ConsistencyError(f"'{component.name}' is already part of '{component._parent.name}'")
		root = self.get_root()
		for name in Composite._names_of(component):
			if root.has_component(name) or name == root.name:
				raise ConsistencyError(f"component '{name}' already exists in '{root.name}'")

		if is_decision_bearing:
			if not isinstance(component, VariableSet):
				raise ComponentTypeError(f"'{component.name}' has no variables and can't be decision bearing")
			self._decision_components.append(component)
		else:
			self._info_components.append(component)
		if isinstance(component, Composite):
			component._parent = self

	@staticmethod
	def _names_of(component: Component) -> list[str]:
		names = [component.name]
		if isinstance(component, Composite):
			for c in component.get_components():
				names += Composite._names_of(c)
		return names


	def get_components(self) -> list[Component]:
		return self._decision_components + self._info_components

	def _find(self, name: str) -> Component | None:
		for c in self.get_components():
			if c.name == name:
				return c
			if isinstance(c, Composite):
				found = c._find(name)
				if found is not None:
					return found
		return None

	def has_component(self, name: str) -> bool:
		return self._find(name) is not None

	def get_component(self, name: str, expected_type: type = None):
		"""
		Get a component anywhere in the tree by its name.
		:param expected_type: when given the component has to be an instance of it.
		"""
		component = self._find(name)
		if component is None:
			raise ComponentNotFoundError(f"no component '{name}' in '{self.name}'")
		if expected_type is not None and not isinstance(component, expected_type):
			raise ComponentTypeError(
				f"component '{name}' is a {type(component).__name__}, expected {getattr(expected_type, '__name__', expected_type)}")
		return component

	def is_decision_bearing(self, name: str) -> bool:
		self.get_component(name)
		for c in self._decision_components:
			if c.name == name:
				return True
			if isinstance(c, Composite) and c.has_component(name):
				return c.is_decision_bearing(name)
		return False


	@property
	def n_variables(self) -> int:
		return sum(c.n_variables for c in self._decision_components)

	def get_values(self):
		return concat([c.get_values() for c in self._decision_components])

	def set_variables(self, x):
		x = as_numeric_or_symbolic_vector(x)
		self._check_length(x)
		start = 0
		for c in self._decision_components:
			stop = start + c.n_variables
			c.set_variables(x[start:stop])
			start = stop

	def get_bounds(self) -> (np.ndarray, np.ndarray):
		lb = [np.zeros(0)]
		ub = [np.zeros(0)]
		for c in self._decision_components:
			c_lb, c_ub = c.get_bounds()
			lb.append(c_lb)
			ub.append(c_ub)
		return np.concatenate(lb), np.concatenate(ub)

	def flatten(self):
		"""
		Decision vector of the whole tree.
		"""
		return self.get_values()

	def scatter(self, x):
		"""
		Write the decision vector x back into all decision-bearing components.
		Raises ConsistencyError if the length of x does not match.
		"""
		self.set_variables(x)

	def copy(self) -> 'Composite':
		"""
		Independent deep copy, links between components (e.g. schedule observers) point into the copy.
		"""
		return copy.deepcopy(self)


	def print(self):
		rich.print(self.get_rich_tree())

	def get_rich_tree(self, tree: Tree = None) -> Tree:
		if tree is None:
			tree = Tree(f"[bold]{self.name}[not bold]  \\[total vars [bold red]{self.n_variables}[not bold white]]")
		table = Table()
		table.add_column("name", justify="right", style="cyan", no_wrap=True)
		table.add_column("type")
		table.add_column("decision")
		table.add_column("num vars", justify="right")
		table.show_header = False
		for c in self.get_components():
			is_decision = any(c is d for d in self._decision_components)
			n_vars = str(c.n_variables) if isinstance(c, VariableSet) else '-'
			table.add_row(c.name, type(c).__name__, 'yes' if is_decision else 'no', n_vars)
		tree.add(table)
		for c in self.get_components():
			if isinstance(c, Composite):
				c.get_rich_tree(tree.add(f"[bold blue]{c.name}"))
		return tree
