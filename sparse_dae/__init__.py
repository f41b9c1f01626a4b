from .integrate import solve_dae

__version__ = "0.1.0"
