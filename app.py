"""Streamlit entry point for the carbon credit estimator.

This script sets up the session state (settings and a pipeline bound to
the file repository) and displays a landing page.  The estimator,
carbon-stock calculators and model pages live in separate files under
the `pages/` directory.
"""

import streamlit as st

from carbon_core import CarbonPipeline, FileRepository, PipelineSettings, RepositoryError, configure_logging

st.set_page_config(page_title="Carbon Credit Estimator", layout="wide")


def get_pipeline() -> CarbonPipeline:
    """Return the session's pipeline, creating it on first use."""
    if "pipeline" not in st.session_state:
        settings = PipelineSettings()
        configure_logging(settings.log_level)
        st.session_state.pipeline = CarbonPipeline(FileRepository(settings.store_dir), settings)
    return st.session_state.pipeline


def main() -> None:
    pipeline = get_pipeline()

    # --- SIDEBAR: STORE & MODEL STATUS --------------------------------------
    st.sidebar.header("Model status")
    try:
        info = pipeline.get_model_info()
        n_examples = pipeline.repository.count_examples()
    except RepositoryError as e:  # estimator still works
        st.sidebar.error(f"Record store unavailable: {e}")
        info, n_examples = None, 0
    if info is None:
        st.sidebar.info("No trained model yet – estimates use the rule-based formula.")
    else:
        st.sidebar.metric("Latest version", f"v{info.version}")
        st.sidebar.metric("Training RMSE", f"{info.metrics.rmse:.3f}")
        st.sidebar.metric("Training R²", f"{info.metrics.r2:.3f}")
    st.sidebar.metric("Stored examples", n_examples)
    st.sidebar.caption(f"Store: `{pipeline.settings.store_dir}`")

    # --- MAIN PAGE ----------------------------------------------------------
    st.title("Carbon Credit Estimator")
    st.markdown(
        """
        Estimate carbon-credit yield for a farm plot and improve the estimate
        over time from observed outcomes.

        - **Credit Estimator** – instant rule-based estimate with every
          adjustment factor disclosed; uses the latest trained model when one
          exists.
        - **Carbon Stock** – soil organic carbon and above-ground biomass
          calculators (t C/ha and t CO₂e/ha).
        - **Model Training** – record observed credits for a plot, train a
          new model version and inspect its fit.
        """
    )
    st.caption(
        "Climate, solar and soil covariates come from Open-Meteo, NASA POWER "
        "and ISRIC SoilGrids; when a source is unavailable a default value is used."
    )


if __name__ == "__main__":
    main()
