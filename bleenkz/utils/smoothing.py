import numpy as np

def trailing_mean(values, n, default=None):
    """Mean of the last ``n`` values, or ``default`` when there are none."""
    window = list(values)[-n:] if n > 0 else []
    if not window:
        return default
    return sum(window) / len(window)

def percentile_value(values, q):
    """Value at index floor(q * len) of the ascending sort, clamped to the last index."""
    ordered = np.sort(np.asarray(list(values), dtype=float))
    if ordered.size == 0:
        return None
    idx = min(int(np.floor(ordered.size * q)), ordered.size - 1)
    return float(ordered[idx])

def clamp(x, lo, hi):
    return max(lo, min(hi, x))
