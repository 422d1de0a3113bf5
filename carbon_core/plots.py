# MIT License
"""Plotly figure builders for the carbon estimator dashboard.

This module centralises creation of Plotly figures used by the Streamlit
frontend.  Keeping the plotting code separate from the page logic
facilitates consistent styling and keeps the pages thin.
"""

from __future__ import annotations
import pandas as pd
import plotly.graph_objects as go

from .features import FEATURE_NAMES
from .params import EstimateResult, LinearModel

FACTOR_KEYS = ["ndvi_factor", "biomass_factor", "irrigation_factor", "ph_penalty"]


def factor_table(result: EstimateResult) -> pd.DataFrame:
    """Adjustment factors of a formula estimate as a two-column table."""
    a = result.assumptions
    return pd.DataFrame({"factor": FACTOR_KEYS, "value": [float(a.get(k, 1.0)) for k in FACTOR_KEYS]})


def fig_factor_breakdown(result: EstimateResult) -> go.Figure:
    """Create a bar chart of the multiplicative adjustment factors.

    Parameters
    ----------
    result:
        A formula estimate (``assumptions['source'] == 'formula'``).

    Returns
    -------
    plotly.graph_objects.Figure
        One bar per factor with a reference line at 1.0.
    """
    df = factor_table(result)
    fig = go.Figure()
    fig.add_bar(x=df["factor"], y=df["value"], name="Factor")
    fig.add_hline(y=1.0, line_dash="dot")
    fig.update_layout(
        title="Adjustment factors",
        yaxis_title="Multiplier",
        template="plotly_white",
    )
    return fig


def fig_training_curve(history: pd.DataFrame) -> go.Figure:
    """Create a line chart of training RMSE per epoch.

    Parameters
    ----------
    history:
        Dataframe with columns 'epoch' and 'rmse'.
    """
    fig = go.Figure()
    fig.add_scatter(x=history["epoch"], y=history["rmse"], mode="lines", name="RMSE")
    fig.update_layout(
        title="Training RMSE",
        xaxis_title="Epoch",
        yaxis_title="RMSE (credits/yr)",
        template="plotly_white",
    )
    return fig


def fig_feature_weights(model: LinearModel) -> go.Figure:
    # standardised coefficients are comparable across features
    fig = go.Figure(go.Bar(x=model.coefficients, y=FEATURE_NAMES[:len(model.coefficients)], orientation="h"))
    fig.update_layout(template="plotly_white", title="Standardised feature weights", xaxis_title="Weight")
    return fig
