import time
import numpy as np
import matplotlib.pyplot as plt
import jax.numpy as jnp
from sparse_dae.integrate import (
    solve_dae, MassMatrix, RHSElements, JacobianMatrixShape,
)


class HeatEquation(RHSElements):
    """Munz2019 - Section 7.2.

    Method of lines discretization of u_t = kappa u_xx with Dirichlet
    boundary conditions. The boundary values are kept as unknowns and
    determined by the algebraic equations u_0 = u0 and u_{N-1} = u1.
    """
    def __init__(self, Lx, Nx, kappa, u0, u1):
        super().__init__(Nx)
        self.dx = Lx / (Nx - 1)
        self.kappa = kappa
        self.u0 = u0
        self.u1 = u1

    def equations(self, x, t, i):
        if i == 0:
            return x[0] - self.u0
        elif i == self.size - 1:
            return x[i] - self.u1
        return self.kappa * (x[i + 1] - 2 * x[i] + x[i - 1]) / self.dx**2


class Mass(MassMatrix):
    def __init__(self, Nx):
        self.Nx = Nx

    def __call__(self, M, x, t):
        # zero rows on the boundaries
        for i in range(1, self.Nx - 1):
            M(i, i, 1.0)


def jacobian_shape(rhs):
    jac = JacobianMatrixShape(rhs)
    N = rhs.size
    jac.add_element(0, 0)
    for i in range(1, N - 1):
        jac.add_element(i, [i - 1, i, i + 1])
    jac.add_element(N - 1, N - 1)
    return jac


if __name__ == "__main__":
    # Parameters
    Lx = 1.0 # Lengths of the domain
    Nx = 50 # Number of spatial points
    kappa = 1.14
    u0 = 2
    u1 = 0.5

    rhs = HeatEquation(Lx, Nx, kappa, u0, u1)
    x = np.linspace(0, Lx, Nx)
    x0 = -1.5 * x + 2 + np.sin(np.pi * x)

    def u_exact(t, x):
        return -1.5 * x + 2 + np.exp(-1.14 * np.pi**2 * t) * np.sin(np.pi * x)

    # time span
    t0 = 0
    t1 = 0.5
    t_span = (t0, t1)
    t_output = np.linspace(t0, t1, num=6)

    # solver options
    atol = rtol = 1e-6

    start = time.time()
    sol = solve_dae(Mass(Nx), rhs, x0, t_span, jac=jacobian_shape(rhs),
                    t_output=t_output, atol=atol, rtol=rtol)
    end = time.time()
    print(f"elapsed time: {end - start}")
    t = sol.t
    y = sol.y
    print(f"success: {sol.success}")
    print(f"status: {sol.status}")
    print(f"message: {sol.message}")
    print(f"nfev: {sol.nfev}")
    print(f"njev: {sol.njev}")
    print(f"nlu: {sol.nlu}")

    # visualization
    fig, ax = plt.subplots()
    for ti, yi in zip(t, y.T):
        ax.plot(x, yi, "o", mfc="none", label=f"t = {ti:.2f}")
        ax.plot(x, u_exact(ti, x), "-k")
    ax.set_xlabel("x")
    ax.set_ylabel("u")
    ax.legend()
    ax.grid()

    plt.show()
