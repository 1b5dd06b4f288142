import numpy as np

from phase_walk.opti.parameters import *


monoped_example_total_duration = 1.6
monoped_example_phase_durations = [
    np.array([0.4, 0.2, 0.4, 0.2, 0.4]),
]

monoped_example_params = OptimizationParameters(
    ee_phase_durations=monoped_example_phase_durations,
    ee_in_contact_at_start=[True],
    base_representation=BaseRepresentation.CUBIC_HERMITE,
    base_poly_duration=0.1,
    force_polys_per_stance_phase=3,
    constraints=[
        ConstraintName.DYNAMIC,
        ConstraintName.RANGE_OF_MOTION,
        ConstraintName.TERRAIN,
        ConstraintName.FORCE,
        ConstraintName.SWING,
    ],
    cost_weights={
        CostName.BASE_LIN_ACC: 1.0,
        CostName.BASE_ANG_ACC: 1.0,
    },
)

monoped_example_final_base_pos = np.array([0.4, 0.0, 0.58])
