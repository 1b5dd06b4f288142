from phase_walk.errors import ConfigurationError
from phase_walk.models.robot_model import RobotModel
from phase_walk.models.terrain import HeightMap
from phase_walk.opti.constraints import *
from phase_walk.opti.costs import *
from phase_walk.opti.parameters import OptimizationParameters, ConstraintName, CostName, parse_enum
from phase_walk.variables.composite import Composite
from phase_walk.variables.contact_schedule import ContactSchedule
from phase_walk.variables.variable_names import BASE_LINEAR, BASE_ANGULAR, ee_schedule_id


class CostConstraintFactory:
    """
    Creates the constraint sets and cost terms for one assembled variable tree.
    All of them read the components of that tree by their identifiers.
    """
    variables: Composite
    params: OptimizationParameters
    model: RobotModel
    terrain: HeightMap
    total_time: float

    def __init__(self,
                 variables: Composite,
                 params: OptimizationParameters,
                 model: RobotModel,
                 terrain: HeightMap
                 ):
        self.variables = variables
        self.params = params
        self.model = model
        self.terrain = terrain
        self.total_time = float(variables.get_component(ee_schedule_id(0), ContactSchedule).get_total_time())


    def get_constraint(self, name: ConstraintName) -> ConstraintSet:
        name = parse_enum(ConstraintName, name)
        ee_ids = self.model.get_ee_ids()
        if name == ConstraintName.DYNAMIC:
            return DynamicConstraint(self.model, self.total_time, self.params.dt_constraint_dynamic)
        elif name == ConstraintName.RANGE_OF_MOTION:
            return RangeOfMotionConstraint(self.model, self.total_time, self.params.dt_constraint_range_of_motion)
        elif name == ConstraintName.TERRAIN:
            return TerrainConstraint(self.terrain, ee_ids)
        elif name == ConstraintName.FORCE:
            return ForceConstraint(ee_ids, self.params.friction_coefficient)
        elif name == ConstraintName.SWING:
            return SwingConstraint(ee_ids)
        elif name == ConstraintName.TOTAL_TIME:
            return TotalTimeConstraint(ee_ids, self.total_time)
        elif name == ConstraintName.BASE_POLY_CONTINUITY:
            return BasePolyContinuityConstraint()
        elif name == ConstraintName.BASE_FINAL_STATE:
            return BaseFinalStateConstraint()
        raise ConfigurationError(f"constraint {name} is not implemented")


    def get_cost(self, name: CostName, weight: float) -> CostTerm:
        name = parse_enum(CostName, name)
        if name == CostName.BASE_LIN_ACC:
            return BaseAccCost('base_lin_acc', BASE_LINEAR, self.total_time, self.params.dt_cost_base, weight)
        elif name == CostName.BASE_ANG_ACC:
            return BaseAccCost('base_ang_acc', BASE_ANGULAR, self.total_time, self.params.dt_cost_base, weight)
        elif name == CostName.FORCE:
            return ForceCost(self.model, weight)
        raise ConfigurationError(f"cost {name} is not implemented")
