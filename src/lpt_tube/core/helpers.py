from typing import Callable, Optional, Sequence

import numpy as np
from scipy.integrate import simpson


def integrate(fx: Callable[[float], float], x1: float, x2: float, n: int = 101) -> float:
    """
    Integrate ``fx`` from ``x1`` to ``x2`` with Simpson's rule.

    Parameters
    ----------
    fx : callable
        Function of one variable.
    x1, x2 : float
        Integration limits.
    n : int, optional
        Number of sample points, bumped to the next odd number, by default 101
    """
    if n < 3:
        raise ValueError("Need at least 3 points to evaluate Simpson's rule")
    if n % 2 == 0:
        n += 1
    x = np.linspace(x1, x2, n)
    y = np.array([fx(xi) for xi in x], dtype=float)
    return float(simpson(y, x=x))


def interpolate_y(x: float, x_values: Sequence[float], y_values: Sequence[float]) -> float:
    """
    Linear interpolation of y at ``x``.

    Outside the table the end segments are extrapolated.
    """
    xs = np.asarray(x_values, dtype=float)
    ys = np.asarray(y_values, dtype=float)
    if xs.shape != ys.shape or xs.size < 2:
        raise ValueError("Bad x-y data")
    if xs[0] <= x <= xs[-1]:
        return float(np.interp(x, xs, ys))
    i = 0 if x < xs[0] else xs.size - 2
    slope = (ys[i + 1] - ys[i]) / (xs[i + 1] - xs[i])
    return float(ys[i] + (x - xs[i]) * slope)


def interpolate_x(y: float, x_values: Sequence[float], y_values: Sequence[float]) -> Optional[float]:
    """
    Position of the first crossing of ``y`` in a table.

    Returns None when ``y`` is outside the range of the table.
    """
    xs = np.asarray(x_values, dtype=float)
    ys = np.asarray(y_values, dtype=float)
    if xs.shape != ys.shape or xs.size < 2:
        raise ValueError("x and y arrays must be the same length with 2 or more points")
    if y < ys.min() or y > ys.max():
        return None
    for i in range(xs.size - 1):
        if ys[i] == y:
            return float(xs[i])
        if ys[i + 1] == y:
            return float(xs[i + 1])
        if min(ys[i], ys[i + 1]) < y < max(ys[i], ys[i + 1]):
            return float(xs[i] + (y - ys[i]) * (xs[i + 1] - xs[i]) / (ys[i + 1] - ys[i]))
    return None


def format_matrix(matrix: np.ndarray, max_size: int = 8) -> str:
    """
    Format a 2D array as a bordered table string with truncation.

    Parameters
    ----------
    matrix : np.ndarray
        Input array to format.
    max_size : int, optional
        Maximum number of rows/columns to show, by default 8
    """
    matrix = np.array(matrix, dtype=object)
    nrows, ncols = matrix.shape
    cell_width = 14
    ellipsis_str = f"{'...':^{cell_width}}"

    def trunc_indices(total: int):
        if total <= max_size:
            return list(range(total)), []
        n_head = max_size // 2
        n_tail = max_size - n_head - 1
        return list(range(n_head)) + list(range(total - n_tail, total)), [n_head]

    row_idx, row_cuts = trunc_indices(nrows)
    col_idx, col_cuts = trunc_indices(ncols)
    truncated = matrix[np.ix_(row_idx, col_idx)]

    formatted = []
    for i, row in enumerate(truncated):
        if i in row_cuts:
            formatted.append([ellipsis_str] * (len(col_idx) + len(col_cuts)))
        formatted_row = []
        for j, val in enumerate(row):
            if j in col_cuts:
                formatted_row.append(ellipsis_str)
            try:
                num = float(val)
                formatted_row.append(
                    f"{num:{cell_width}.3e}" if abs(num) > 1e-10 else " " * cell_width
                )
            except (TypeError, ValueError):
                formatted_row.append(f"{str(val):^{cell_width}}")
        formatted.append(formatted_row)

    ncols_final = len(formatted[0])
    border = "+" + "+".join(["-" * (cell_width + 2)] * ncols_final) + "+"
    table_lines = [border]
    for row in formatted:
        table_lines.append("| " + " | ".join(row) + " |")
        table_lines.append(border)
    return "\n".join(table_lines)
