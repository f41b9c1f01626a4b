"""Jacobian matrices ``J = df/dx`` of the right-hand side of ``M x' = f(x, t)``.

Every Jacobian is a callable ``jac(J, x, t)`` that fills the given empty
`SparseMatrix` ``J`` with the non-zero elements ``(i, j, df_i/dx_j)``. Three
strategies are available:

    * `JacobianMatrix`: analytical Jacobian provided by the user.
    * `JacobianMatrixShape`: the user provides the positions of the non-zero
      elements, each of them is computed by forward mode automatic
      differentiation of a single row with respect to a single state.
    * `JacobianAutomatic`: the full dense Jacobian is computed by forward
      mode automatic differentiation and converted to sparse format.
"""
import numpy as np
import jax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)


# elements of an automatically computed Jacobian below this threshold are
# considered to be zero
SPARSE_MATRIX_ELEMENT_TOLERANCE = 1e-14


class JacobianMatrix:
    """Base class for analytical Jacobian matrices.

    Subclasses override ``__call__(J, x, t)``. The matrix ``J`` is empty and
    has to be filled with the non-zero elements, e.g. ``J(0, 1, 2.0 * x[1])``.
    """
    def __call__(self, J, x, t):
        raise NotImplementedError


def _row_function(rhs):
    equations = getattr(rhs, "equations", None)
    if callable(equations):
        return equations

    def row(x, t, i):
        return jnp.asarray(rhs(x, t))[i]

    return row


class JacobianMatrixShape(JacobianMatrix):
    """Jacobian matrix computed from its shape.

    The user declares all non-zero elements with `add_element`. Each of them
    is computed by forward mode automatic differentiation of the row ``f_i``
    where only the tangent of ``x_j`` is seeded. This requires one
    differentiation pass per declared element, which pays off for narrow
    (e.g. banded) sparsity patterns.

    If `rhs` has a method ``equations(x, t, i)`` returning the single
    element ``f_i``, it is used for the differentiation. Otherwise the full
    right-hand side is evaluated and its i-th component is taken.

    Parameters
    ----------
    rhs : callable
        Right-hand side ``rhs(x, t)``, see `RHS`.
    """
    def __init__(self, rhs):
        self.rhs = rhs
        self._row = _row_function(rhs)
        self._elements = []
        # size estimation of the sparse Jacobian, updated after evaluation
        self._N_elements = 0

    @property
    def elements(self):
        return list(self._elements)

    def add_element(self, i, j):
        """Add non-zero element(s) in row ``i``.

        Parameters
        ----------
        i : int
            Row index.
        j : int or sequence of int
            Column index or a sequence of column indices.
        """
        if np.ndim(j) == 0:
            self._elements.append((int(i), int(j)))
        else:
            self._elements.extend((int(i), int(jk)) for jk in j)

    def clear(self):
        """Remove all non-zero elements."""
        self._elements.clear()

    def reserve(self, N_elements):
        """Set the expected number of non-zero elements."""
        self._N_elements = N_elements

    def __call__(self, J, x, t):
        x = jnp.asarray(x, dtype=float)

        if self._N_elements:
            J.reserve(self._N_elements)

        row = self._row
        for i, j in self._elements:
            seed = jnp.zeros_like(x).at[j].set(1.0)
            _, dfi_dxj = jax.jvp(
                lambda x_: jnp.asarray(row(x_, t, i), dtype=float),
                (x,), (seed,),
            )
            J(i, j, float(dfi_dxj))

        self._N_elements = len(self._elements)


class JacobianAutomatic(JacobianMatrix):
    """Jacobian matrix computed by automatic differentiation.

    The full right-hand side is differentiated with a single forward mode
    sweep (``jax.jacfwd``). The resulting dense matrix is converted to sparse
    format, dropping all elements with magnitude not larger than
    `SPARSE_MATRIX_ELEMENT_TOLERANCE`.

    Parameters
    ----------
    rhs : callable
        Right-hand side ``rhs(x, t)``, see `RHS`.
    """
    def __init__(self, rhs):
        self.rhs = rhs

    def __call__(self, J, x, t):
        x = jnp.asarray(x, dtype=float)
        rhs = self.rhs

        jac = np.asarray(
            jax.jacfwd(lambda x_: jnp.asarray(rhs(x_, t), dtype=float))(x)
        )

        rows, cols = np.nonzero(np.abs(jac) > SPARSE_MATRIX_ELEMENT_TOLERANCE)
        J.extend(rows, cols, jac[rows, cols])
