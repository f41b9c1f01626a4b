import bisect
import numpy as np


class SolutionManager:
    """Observer of the accepted solution.

    The solver calls ``manager(x, t)`` once for every accepted step with the
    new state ``x`` at time ``t``. Rejected step attempts are never
    reported. Returning a non-zero integer stops the integration right after
    the current step. The default implementation does nothing and returns 0.
    """
    def __call__(self, x, t):
        return 0


class SolutionHolder:
    """Holds solution vectors ``x`` and the corresponding times ``t``."""
    def __init__(self):
        self.x = []
        self.t = []

    def to_arrays(self):
        """Return the times as array of shape (n_points,) and the states as
        array of shape (n, n_points)."""
        if len(self.t) == 0:
            return np.empty(0), np.empty((0, 0))
        return np.asarray(self.t), np.vstack(self.x).T

    def print(self, ind=None):
        """Print the solution as table with columns ``t`` and ``x[i]``.

        Parameters
        ----------
        ind : sequence of int, optional
            Indices of the state components to print. Out of range indices
            are skipped. Default is None, which prints all components.

        Example
        -------
        >>> holder.print([0, 1, 4])  # columns t, x[0], x[1], x[4]
        """
        if len(self.t) != len(self.x):
            raise ValueError("Solution vector x size is not equal to the "
                             "solution time t vector size.")

        if len(self.t) == 0:
            return

        N = len(self.x[0])
        if ind is None or len(ind) == 0:
            ind_out = list(range(N))
        else:
            ind_out = [i for i in ind if 0 <= i < N]

        print("Time" + "".join(f"\tx[{i}]" for i in ind_out))
        for t, x in zip(self.t, self.x):
            print(f"{t}" + "".join(f"\t{x[i]}" for i in ind_out))


class Solution(SolutionManager):
    """Writes the solution into a `SolutionHolder`.

    Parameters
    ----------
    sol : SolutionHolder
        Holder the solution is written to.
    t_output : sequence of float, optional
        Output times. If given, only the solution at these times is recorded.
        Default is None, which records every accepted step.
    """
    def __init__(self, sol, t_output=None):
        self.sol = sol
        self.t_output = None if t_output is None else sorted(t_output)

    def __call__(self, x, t):
        if self.t_output is not None:
            k = bisect.bisect_left(self.t_output, t)
            if k == len(self.t_output) or self.t_output[k] != t:
                return 0

        self.sol.x.append(np.array(x, copy=True))
        self.sol.t.append(t)

        return 0
