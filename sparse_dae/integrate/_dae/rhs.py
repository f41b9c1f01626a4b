import jax.numpy as jnp


class RHS:
    """Base class for the right-hand side ``f(x, t)`` of ``M x' = f(x, t)``.

    Any callable with the signature ``rhs(x, t)`` can be used by the solver,
    subclassing is optional. The returned vector must have the same length
    as ``x``.

    The right-hand side is evaluated with plain NumPy arrays while stepping
    and with JAX tracers while computing Jacobians automatically, hence it
    should be written with ``jax.numpy`` functions (or plain arithmetic
    only).
    """
    def __call__(self, x, t):
        raise NotImplementedError


class RHSElements(RHS):
    """Right-hand side defined element-wise.

    Subclasses implement ``equations(x, t, i)`` returning the scalar
    ``f_i(x, t)``. This allows `JacobianMatrixShape` to differentiate single
    rows without evaluating the full system.

    Parameters
    ----------
    size : int
        Number of equations.
    """
    def __init__(self, size):
        self.size = size

    def equations(self, x, t, i):
        raise NotImplementedError

    def __call__(self, x, t):
        return jnp.stack([
            jnp.asarray(self.equations(x, t, i), dtype=float)
            for i in range(self.size)
        ])
