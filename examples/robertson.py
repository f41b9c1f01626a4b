import time
import numpy as np
import matplotlib.pyplot as plt
import jax.numpy as jnp
from scipy.sparse import diags
from sparse_dae.integrate import (
    solve_dae, MassMatrix, JacobianMatrixShape, SolutionHolder, Solution,
)


"""Robertson problem of semi-stable chemical reaction, see mathworks and Shampine2005.

The third equation is replaced by the conservation law y1 + y2 + y3 = 1,
which turns the system into an index-1 DAE with singular mass matrix.

References:
-----------
mathworks: https://de.mathworks.com/help/matlab/math/solve-differential-algebraic-equations-daes.html#bu75a7z-5 \\
Shampine2005: https://doi.org/10.1016/j.amc.2004.12.011
"""

class Mass(MassMatrix):
    def __call__(self, M, x, t):
        M(0, 0, 1.0)
        M(1, 1, 1.0)

def rhs(x, t):
    y1, y2, y3 = x[0], x[1], x[2]
    return jnp.array([
        -0.04 * y1 + 1e4 * y2 * y3,
        0.04 * y1 - 1e4 * y2 * y3 - 3e7 * y2**2,
        y1 + y2 + y3 - 1,
    ])

def jacobian_shape():
    jac = JacobianMatrixShape(rhs)
    jac.add_element(0, [0, 1, 2])
    jac.add_element(1, [0, 1, 2])
    jac.add_element(2, [0, 1, 2])
    return jac


if __name__ == "__main__":
    # time span
    t0 = 0
    t1 = 1e7
    t_span = (t0, t1)
    t_output = np.logspace(-6, 7, num=100)

    # initial conditions
    x0 = np.array([1, 0, 0], dtype=float)

    # solver options
    atol = 1e-10
    rtol = 1e-6

    ######################################
    # shape based Jacobian, mass as class
    ######################################
    holder = SolutionHolder()
    start = time.time()
    sol = solve_dae(Mass(), rhs, x0, t_span, jac=jacobian_shape(),
                    manager=Solution(holder, t_output[::10]), t_output=t_output,
                    atol=atol, rtol=rtol)
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

    holder.print([0, 2])

    ##############################################
    # automatic Jacobian, mass as sparse matrix
    ##############################################
    start = time.time()
    sol = solve_dae(diags([1.0, 1.0, 0.0], format="csc"), rhs, x0, t_span,
                    t_output=t_output, atol=atol, rtol=rtol)
    end = time.time()
    print(f"elapsed time: {end - start}")
    t_auto = sol.t
    y_auto = sol.y
    print(f"success: {sol.success}")
    print(f"nfev: {sol.nfev}")
    print(f"njev: {sol.njev}")
    print(f"nlu: {sol.nlu}")

    # visualization
    fig, ax = plt.subplots()

    ax.set_xlabel("t")
    ax.plot(t, y[0], "-ok", label="y1 (shape)", mfc="none")
    ax.plot(t, y[1] * 1e4, "-ob", label="y2 * 1e4 (shape)", mfc="none")
    ax.plot(t, y[2], "-og", label="y3 (shape)", mfc="none")
    ax.plot(t_auto, y_auto[0], "xr", label="y1 (automatic)", markersize=7)
    ax.plot(t_auto, y_auto[1] * 1e4, "xy", label="y2 * 1e4 (automatic)", markersize=7)
    ax.plot(t_auto, y_auto[2], "xm", label="y3 (automatic)", markersize=7)
    ax.set_xscale("log")
    ax.legend()
    ax.grid()

    plt.show()
