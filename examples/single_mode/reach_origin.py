"""Steer a bounded single integrator towards the origin.

The terminal cost ``H(x) = x**2`` can be driven to zero from ``x0 = 0.5`` in
half the horizon, so the optimal cost and its lower bound are both zero.
"""

import os
import sys

import sympy as sp

current_dir = os.path.dirname(os.path.abspath(__file__))
grandparent_dir = os.path.dirname(os.path.dirname(current_dir))
sys.path.append(grandparent_dir)

import hybridocp as ho
from hybridocp.plotting import plot_value_function

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
    running_cost=0,
    terminal_cost=x[0] ** 2,
    initial_state=[0.5],
)
system = ho.HybridSystem(t, [mode])

problem = ho.HybridOCPProblem(system, degree=4)
problem.settings.cvx.verbose = False

expected_pval = 0.0

if __name__ == "__main__":
    results = problem.solve()
    print("Lower bound:", ho.lower_bound(results))

    plot_value_function(results, mode=0, state_range=(-1.0, 1.0)).show()
