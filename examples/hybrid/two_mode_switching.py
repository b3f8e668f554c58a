"""Two copies of the same integrator with different running costs.

Mode 0 costs 2 per unit time, mode 1 costs 1, and the guard ``1 - x**2 >= 0``
lets the system switch from mode 0 to mode 1 anywhere in the domain with an
identity reset. Switching immediately is optimal, for a total cost of 1;
without the transition the cost would be 2.
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

x = [ho.indeterminates(f"x{i}", 1) for i in range(2)]
u = [ho.indeterminates(f"u{i}", 1) for i in range(2)]

f = [[0], [0]]
g = [[[1]], [[1]]]
hX = [[1 - x[i][0] ** 2] for i in range(2)]
hU = [[1 - u[i][0] ** 2] for i in range(2)]
hXT = [[1 - x[i][0] ** 2] for i in range(2)]
h = [2, 1]
H = [0, 0]
x0 = [[0.0], []]

sX = [
    [[], [1 - x[0][0] ** 2]],
    [[], []],
]
R = None  # identity resets

options = {"freeFinalTime": False, "withInputs": True, "verbose": False}

system = ho.HybridSystem.from_arrays(t, x, u, f, g, hX, hU, sX, R, x0, hXT, h, H, names=["expensive", "cheap"])
problem = ho.HybridOCPProblem(system, degree=2, config=ho.Config.from_options(options))

expected_pval = 1.0

if __name__ == "__main__":
    results = problem.solve()

    moments_basis, moments = results.u_infos.liouville_moments(0)
    print("Occupation measure mass, mode 0:", moments[0])

    for i in range(2):
        plot_value_function(results, mode=i).show()
    plot_residuals(results).show()
