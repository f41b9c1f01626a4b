import numpy as np


class MassMatrix:
    """Base class for the mass matrix ``M`` of ``M x' = f(x, t)``.

    Subclasses override ``__call__(M, x, t)`` and fill the empty
    `SparseMatrix` ``M`` with its non-zero elements. Zero rows of ``M``
    define algebraic equations.

    Attributes
    ----------
    time_independent : bool
        If True (default), the mass matrix is assembled only once. Otherwise
        it is reassembled for every step attempt at the predicted state.
    """
    time_independent = True

    def __call__(self, M, x, t):
        raise NotImplementedError


class MassMatrixIdentity(MassMatrix):
    """Identity mass matrix, i.e., the system ``x' = f(x, t)``.

    Parameters
    ----------
    size : int
        Size of the system.
    """
    def __init__(self, size):
        self.size = size

    def __call__(self, M, x, t):
        diag = np.arange(self.size)
        M.extend(diag, diag, np.ones(self.size))
