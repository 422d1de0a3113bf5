# MIT License
"""Closed-form carbon calculators and the rule-based credit estimator.

The soil and biomass calculators follow the standard IPCC stock-change
approach; the credit estimator is a multiplicative heuristic whose
every factor is reported back in ``assumptions`` so that an estimate can
always be explained.  None of the functions here touch the network or
the record store.
"""

from __future__ import annotations

import math
from typing import Dict

from .params import (
    CarbonOutputs,
    DirectAGBInput,
    EstimateResult,
    EstimationRequest,
    SoilPercentInput,
    AGBInput,
    SoilInput,
)
from .utils import clamp, round_to, whole_years

CO2_PER_C = 44.0 / 12.0
IPCC_CARBON_FRACTION = 0.47

# credits/ha/year before adjustment
BASELINE_CREDITS_PER_HA: Dict[str, float] = {
    "agroforestry": 3.2,
    "rice": 1.6,
    "soil": 1.8,
    "biomass": 2.0,
}

IRRIGATION_FACTORS: Dict[str, float] = {
    "drip": 1.1,
    "sprinkler": 1.05,
    "flood": 0.9,
    "rainfed": 1.0,
}

DEFAULT_NDVI = 0.7
DEFAULT_BIOMASS_T_HA = 12.0
DEFAULT_SOIL_PH = 6.8
PH_RANGE = (6.2, 7.2)
PH_PENALTY = 0.9
CREDIT_PRICE_INR = 500.0


def compute_soil_carbon(inp: SoilInput) -> CarbonOutputs:
    """Soil organic carbon stock for the given sampling depth.

    Parameters
    ----------
    inp:
        Either a :class:`SoilPercentInput` (SOC in % by weight) or a
        :class:`SoilGkgInput` (SOC in g/kg).  Bulk density in g/cm³ is
        numerically equal to t/m³.

    Returns
    -------
    CarbonOutputs
        Carbon and CO₂e stock (t/ha, rounded to 3 decimals) plus the
        rock fraction, bulk density and depth used.
    """
    rf = clamp(inp.rock_fragment_pct, 0.0, 100.0) / 100.0 if inp.rock_fragment_pct else 0.0
    bd_t_m3 = inp.bulk_density_g_cm3
    depth_m = inp.depth_cm / 100.0

    if isinstance(inp, SoilPercentInput):
        soc_t_ha = (inp.soc_percent / 100.0) * bd_t_m3 * inp.depth_cm * (1 - rf) * 10
    else:
        soc_t_ha = inp.soc_g_per_kg * bd_t_m3 * depth_m * 10 * (1 - rf)

    return CarbonOutputs(
        carbon_t_ha=round_to(soc_t_ha, 3),
        co2e_t_ha=round_to(soc_t_ha * CO2_PER_C, 3),
        details={
            "rock_fragment_fraction": round_to(rf, 4),
            "bulk_density_t_m3": round_to(bd_t_m3, 4),
            "depth_m": round_to(depth_m, 4),
        },
    )


def allometric_agb(dbh_cm: float, wood_density_g_cm3: float, height_m: float | None = None) -> float:
    """Generalised moist-tropical allometry, height term optional."""
    x = wood_density_g_cm3 * dbh_cm * dbh_cm * (height_m if height_m else 1.0)
    return 0.0673 * math.pow(max(x, 0.0), 0.976)


def compute_agb_carbon(inp: AGBInput) -> CarbonOutputs:
    """Above-ground biomass carbon from a direct AGB value or tree measurements."""
    if isinstance(inp, DirectAGBInput):
        agb_t_ha = inp.agb_t_ha
    else:
        agb_t_ha = allometric_agb(inp.dbh_cm, inp.wood_density_g_cm3, inp.height_m)

    carbon_t_ha = agb_t_ha * IPCC_CARBON_FRACTION
    return CarbonOutputs(
        carbon_t_ha=round_to(carbon_t_ha, 3),
        co2e_t_ha=round_to(carbon_t_ha * CO2_PER_C, 3),
        details={"agb_t_ha": round_to(agb_t_ha, 3), "carbon_fraction": IPCC_CARBON_FRACTION},
    )


def ndvi_factor(ndvi: float) -> float:
    return 0.7 + ndvi * 0.5


def biomass_factor(biomass_t_ha: float) -> float:
    return clamp(0.7 + (biomass_t_ha / DEFAULT_BIOMASS_T_HA) * 0.3, 0.6, 1.3)


def ph_penalty(soil_ph: float) -> float:
    return PH_PENALTY if soil_ph < PH_RANGE[0] or soil_ph > PH_RANGE[1] else 1.0


def estimate_carbon(req: EstimationRequest, price_inr: float = CREDIT_PRICE_INR) -> EstimateResult:
    """Rule-based credit estimate for a project.

    ``credits_per_year = area × baseline × ndvi_factor × biomass_factor
    × irrigation_factor × ph_penalty``; totals scale by whole years and
    the income by ``price_inr`` per credit.
    """
    area = max(0.0, req.area_ha)
    ndvi = clamp(DEFAULT_NDVI if req.ndvi is None else req.ndvi, 0.0, 1.0)
    biomass = max(0.0, DEFAULT_BIOMASS_T_HA if req.biomass_t_ha is None else req.biomass_t_ha)
    irrigation = req.irrigation or "rainfed"
    soil_ph = DEFAULT_SOIL_PH if req.soil_ph is None else req.soil_ph
    years = whole_years(req.duration_years)

    baseline = req.baseline_carbon if req.baseline_carbon else BASELINE_CREDITS_PER_HA[req.project_type]
    f_ndvi = ndvi_factor(ndvi)
    f_biomass = biomass_factor(biomass)
    f_irrigation = IRRIGATION_FACTORS.get(irrigation, 1.0)
    f_ph = ph_penalty(soil_ph)

    credits_per_year = area * baseline * f_ndvi * f_biomass * f_irrigation * f_ph
    total_credits = credits_per_year * years

    return EstimateResult(
        credits_per_year=credits_per_year,
        total_credits=total_credits,
        estimated_income_inr=total_credits * price_inr,
        assumptions={
            "source": "formula",
            "baseline_credits_per_ha": baseline,
            "ndvi_factor": f_ndvi,
            "biomass_factor": f_biomass,
            "irrigation_factor": f_irrigation,
            "ph_penalty": f_ph,
            "years": years,
            "price_inr": price_inr,
            "area_ha": area,
            "ndvi": ndvi,
            "biomass_t_ha": biomass,
            "irrigation": irrigation,
            "soil_ph": soil_ph,
            "project_type": req.project_type,
        },
    )
