import numpy as np
import plotly.graph_objects as go

from hybridocp.config import HORIZON
from hybridocp.post_processing import evaluate_value_function
from hybridocp.results import RelaxationResults


def plot_value_function(
    results: RelaxationResults,
    mode: int,
    state_index: int = 0,
    state_range: tuple = (-1.0, 1.0),
    fixed_state=None,
    n_points: int = 50,
):
    """Heatmap of ``v_mode(t, x)`` over a grid of ``(t, x_k)``.

    Args:
        results: Output of ``HybridOCPProblem.solve``.
        mode: Mode index.
        state_index: Index ``k`` of the state component on the vertical axis.
        state_range: ``(min, max)`` of ``x_k`` on the grid.
        fixed_state: Values of the remaining state components. Defaults to zeros.
        n_points: Grid resolution along each axis.

    Returns:
        go.Figure
    """
    n = len(results.states[mode])
    if not 0 <= state_index < n:
        raise ValueError(f"state_index {state_index} out of range for a {n}-state mode")

    base = np.zeros(n) if fixed_state is None else np.asarray(fixed_state, dtype=float).copy()
    t_grid = np.linspace(0.0, HORIZON, n_points)
    x_grid = np.linspace(state_range[0], state_range[1], n_points)

    tt, xx = np.meshgrid(t_grid, x_grid)
    X = np.tile(base, (tt.size, 1))
    X[:, state_index] = xx.ravel()
    values = evaluate_value_function(results, mode, tt.ravel(), X).reshape(tt.shape)

    label = str(results.states[mode][state_index])
    fig = go.Figure(
        data=go.Heatmap(
            x=t_grid,
            y=x_grid,
            z=values,
            colorscale="Viridis",
            colorbar=dict(title="v"),
        )
    )
    fig.update_layout(
        title=f"Value function, mode {mode}",
        xaxis_title="t",
        yaxis_title=label,
        template="plotly_dark",
    )
    return fig


def plot_residuals(results: RelaxationResults):
    """Grouped bar chart of the certificate residuals of every constraint."""
    labels = []
    residuals = []
    subresiduals = []
    for k, rec in enumerate(results.infos):
        mode = f"{rec.mode}" if rec.target is None else f"{rec.mode}->{rec.target}"
        labels.append(f"{k}: {rec.kind} {mode}")
        residuals.append(rec.residual_max)
        subresiduals.append(float(np.max(rec.subresidual_max)) if len(rec.subresidual_max) else 0.0)

    fig = go.Figure()
    fig.add_trace(go.Bar(x=labels, y=residuals, name="Residual max"))
    fig.add_trace(go.Bar(x=labels, y=subresiduals, name="Subresidual max"))
    fig.update_layout(
        title="Certificate Residuals",
        barmode="group",
        yaxis_type="log",
        template="plotly_dark",
    )
    return fig
