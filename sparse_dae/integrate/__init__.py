from ._dae.dae import solve_dae
from ._dae.base import DaeSolver
from ._dae.bdf import BDFDAE
from ._dae.options import SolverOptions
from ._dae.sparse_matrix import SparseMatrix
from ._dae.rhs import RHS, RHSElements
from ._dae.jacobian import (
    JacobianMatrix, JacobianMatrixShape, JacobianAutomatic,
    SPARSE_MATRIX_ELEMENT_TOLERANCE,
)
from ._dae.mass_matrix import MassMatrix, MassMatrixIdentity
from ._dae.solution_manager import SolutionManager, SolutionHolder, Solution
