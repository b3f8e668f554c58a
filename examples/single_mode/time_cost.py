"""Single integrator on [-1, 1] paying a unit running cost.

Every admissible trajectory costs exactly T = 1, so the relaxation is tight
and ``v(t, x) = 1 - t`` is an optimal certificate.
"""

import os
import sys

import sympy as sp

current_dir = os.path.dirname(os.path.abspath(__file__))
grandparent_dir = os.path.dirname(os.path.dirname(current_dir))
sys.path.append(grandparent_dir)

import hybridocp as ho
from hybridocp.plotting import plot_residuals, plot_value_function

t = sp.Symbol("t", real=True)
x = ho.indeterminates("x", 1)
u = ho.indeterminates("u", 1)

mode = ho.Mode(
    x=x,
    u=u,
    f=[0],
    g=[[1]],
    domain=[1 - x[0] ** 2],
    control_set=[1 - u[0] ** 2],
    target_set=[1 - x[0] ** 2],
    running_cost=1,
    terminal_cost=0,
    initial_state=[0.5],
    name="integrator",
)
system = ho.HybridSystem(t, [mode])

problem = ho.HybridOCPProblem(system, degree=2)
problem.settings.cvx.verbose = False

expected_pval = 1.0

if __name__ == "__main__":
    results = problem.solve()

    plot_value_function(results, mode=0).show()
    plot_residuals(results).show()
