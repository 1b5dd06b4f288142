import casadi
import numpy as np

from phase_walk.errors import OutOfRangeError

# queries this close outside of [0, total_duration] are clamped, everything further out is an error
TIME_TOLERANCE = 1e-5

# order of derivatives inside a node
POS = 0
VEL = 1

X = 0
Y = 1
Z = 2


def get_range_for_dimensional_index(index, dimensions_per_index=3):
    """
    Slice of the ith entry in a flat vector where each entry has dimensions_per_index elements.
    """
    return np.s_[index*dimensions_per_index : (index+1)*dimensions_per_index]


def is_symbolic(*values) -> bool:
    """
    True if any of the values is a casadi symbolic expression (MX or SX).
    """
    return any(isinstance(v, (casadi.MX, casadi.SX)) for v in values)


def stack(entries: list):
    """
    Stack scalar entries into a vector.
    Gives a flat np.array for numeric entries and a column MX as soon as one entry is symbolic.
    """
    if is_symbolic(*entries):
        return casadi.vertcat(*entries)
    return np.array([float(e) for e in entries], dtype=float)


def concat(parts: list):
    """
    Concatenate vectors (np.array or MX) into one vector, same rules as stack.
    """
    if is_symbolic(*parts):
        return casadi.vertcat(*parts)
    if len(parts) == 0:
        return np.zeros(0)
    return np.concatenate([to_flat_array(p) for p in parts])


def to_flat_array(x) -> np.ndarray:
    """
    Convert numeric values (list, np.array, casadi.DM) to a flat float array.
    """
    return np.array(x, dtype=float).reshape(-1)


def vector_length(x) -> int:
    return x.shape[0]


def as_numeric_or_symbolic_vector(x):
    """
    Keep symbolic vectors as they are, convert everything else to a flat float array.
    """
    if is_symbolic(x):
        assert x.shape[1] == 1, "symbolic decision vectors have to be column vectors"
        return x
    return to_flat_array(x)


def clamp_time(t: float, total_duration: float, what: str = 'trajectory') -> float:
    """
    Apply the out of range policy for time queries:
    t within TIME_TOLERANCE outside of [0, total_duration] is clamped,
    further outside raises OutOfRangeError.
    """
    if t < -TIME_TOLERANCE or t > total_duration + TIME_TOLERANCE:
        raise OutOfRangeError(f"{what}: t={t} is outside of [0, {total_duration}]")
    return min(max(t, 0.0), total_duration)


def as_casadi(x):
    """
    Keep symbolic values as they are, convert numeric ones to a casadi.DM column.
    Used where numeric trajectory values meet casadi matrix expressions.
    """
    if is_symbolic(x):
        return x
    return casadi.DM(to_flat_array(x))


def get_sample_times(total_duration: float, dt: float) -> np.ndarray:
    """
    Time points 0, dt, 2dt, ... up to total_duration (inclusive within TIME_TOLERANCE).
    The end of the horizon is always part of the samples, even if it is no multiple of dt.
    """
    assert dt > 0, "dt has to be positive"
    n = int(np.floor((total_duration + TIME_TOLERANCE) / dt))
    times = [k*dt for k in range(n + 1)]
    if times[-1] < total_duration - TIME_TOLERANCE:
        times.append(total_duration)
    return np.array(times)
