# identifiers of the components in the optimization variable tree

NLP_VARIABLES = 'nlp_variables'
BASE_LINEAR = 'base_linear'
BASE_ANGULAR = 'base_angular'


def ee_schedule_id(ee: int) -> str:
    return f'ee_schedule_{ee}'


def ee_motion_xy_id(ee: int) -> str:
    return f'ee_motion_xy_{ee}'


def ee_motion_z_id(ee: int) -> str:
    return f'ee_motion_z_{ee}'


def ee_force_id(ee: int) -> str:
    return f'ee_force_{ee}'


def base_poly_id(base_id: str, segment: int) -> str:
    """
    Segment of the coefficient polynomial base representation.
    """
    return f'{base_id}_{segment}'
