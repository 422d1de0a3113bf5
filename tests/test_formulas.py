"""Unit tests for the carbon formulas.

These tests verify the soil and biomass stock calculators, the CO₂e
conversion and the rule-based credit estimator, including the
disclosure of every adjustment factor.
"""

import math

import pytest
from pydantic import ValidationError

from carbon_core.formulas import compute_agb_carbon, compute_soil_carbon, estimate_carbon
from carbon_core.params import AllometricInput, DirectAGBInput, EstimationRequest, SoilGkgInput, SoilPercentInput


def test_soil_carbon_percent_reference_plot():
    out = compute_soil_carbon(SoilPercentInput(soc_percent=2.0, bulk_density_g_cm3=1.3, depth_cm=30, rock_fragment_pct=10))
    # 2.0/100 * 1.3 * 30 * 0.9 * 10
    assert math.isclose(out.carbon_t_ha, 7.02)
    assert math.isclose(out.co2e_t_ha, 25.74)
    assert math.isclose(out.details["rock_fragment_fraction"], 0.1)
    assert math.isclose(out.details["depth_m"], 0.3)


def test_soil_carbon_gkg_matches_percent_form():
    # 20 g/kg == 2 %
    pct = compute_soil_carbon(SoilPercentInput(soc_percent=2.0, bulk_density_g_cm3=1.3, depth_cm=30))
    gkg = compute_soil_carbon(SoilGkgInput(soc_g_per_kg=20.0, bulk_density_g_cm3=1.3, depth_cm=30))
    assert math.isclose(gkg.carbon_t_ha, 20.0 * 1.3 * 0.3 * 10)
    assert math.isclose(pct.carbon_t_ha / 2.0, gkg.carbon_t_ha / 20.0, rel_tol=1e-3)


def test_rock_fragment_is_clamped():
    full = compute_soil_carbon(SoilPercentInput(soc_percent=2.0, bulk_density_g_cm3=1.3, depth_cm=30, rock_fragment_pct=150))
    assert full.carbon_t_ha == 0.0
    assert full.details["rock_fragment_fraction"] == 1.0
    none = compute_soil_carbon(SoilPercentInput(soc_percent=2.0, bulk_density_g_cm3=1.3, depth_cm=30, rock_fragment_pct=-5))
    assert none.details["rock_fragment_fraction"] == 0.0


@pytest.mark.parametrize("soc", [0.5, 1.234, 3.3, 7.77])
def test_soil_co2e_is_carbon_times_44_over_12(soc):
    out = compute_soil_carbon(SoilPercentInput(soc_percent=soc, bulk_density_g_cm3=1.1, depth_cm=20))
    assert math.isclose(out.co2e_t_ha, out.carbon_t_ha * 44 / 12, abs_tol=3e-3)


def test_agb_direct():
    out = compute_agb_carbon(DirectAGBInput(agb_t_ha=100.0))
    assert math.isclose(out.carbon_t_ha, 47.0)
    assert math.isclose(out.co2e_t_ha, round(47.0 * 44 / 12, 3))
    assert out.details["carbon_fraction"] == 0.47


def test_agb_allometric_with_and_without_height():
    no_h = compute_agb_carbon(AllometricInput(dbh_cm=30, wood_density_g_cm3=0.6))
    agb = 0.0673 * (0.6 * 30 * 30) ** 0.976
    assert math.isclose(no_h.details["agb_t_ha"], round(agb, 3))
    assert math.isclose(no_h.carbon_t_ha, agb * 0.47, abs_tol=1e-3)
    with_h = compute_agb_carbon(AllometricInput(dbh_cm=30, wood_density_g_cm3=0.6, height_m=20))
    assert with_h.carbon_t_ha > no_h.carbon_t_ha


def test_agb_negative_base_is_clamped():
    out = compute_agb_carbon(AllometricInput(dbh_cm=10, wood_density_g_cm3=-0.5))
    assert out.carbon_t_ha == 0.0


def test_estimate_reference_agroforestry_plot():
    req = EstimationRequest(area_ha=2, project_type="agroforestry", ndvi=0.8, biomass_t_ha=12,
                            irrigation="drip", soil_ph=6.8, duration_years=1)
    res = estimate_carbon(req)
    a = res.assumptions
    assert math.isclose(a["ndvi_factor"], 1.1)
    assert math.isclose(a["biomass_factor"], 1.0)
    assert math.isclose(a["irrigation_factor"], 1.1)
    assert a["ph_penalty"] == 1.0
    assert a["baseline_credits_per_ha"] == 3.2
    assert math.isclose(res.credits_per_year, 7.744)
    assert math.isclose(res.total_credits, 7.744)
    assert math.isclose(res.estimated_income_inr, 7.744 * 500)


def test_estimate_defaults_and_duration():
    res = estimate_carbon(EstimationRequest(area_ha=1, project_type="rice", duration_years=3.9))
    a = res.assumptions
    assert a["ndvi"] == 0.7 and a["biomass_t_ha"] == 12.0 and a["soil_ph"] == 6.8
    assert a["irrigation"] == "rainfed" and a["irrigation_factor"] == 1.0
    assert a["years"] == 3
    assert math.isclose(res.total_credits, res.credits_per_year * 3)


def test_estimate_ph_penalty_and_baseline_override():
    acidic = estimate_carbon(EstimationRequest(area_ha=1, project_type="soil", soil_ph=5.5))
    neutral = estimate_carbon(EstimationRequest(area_ha=1, project_type="soil", soil_ph=6.5))
    assert acidic.assumptions["ph_penalty"] == 0.9
    assert math.isclose(acidic.credits_per_year, neutral.credits_per_year * 0.9)
    custom = estimate_carbon(EstimationRequest(area_ha=1, project_type="soil", baseline_carbon=5.0))
    assert custom.assumptions["baseline_credits_per_ha"] == 5.0


def test_biomass_factor_is_clamped():
    high = estimate_carbon(EstimationRequest(area_ha=1, project_type="biomass", biomass_t_ha=500))
    low = estimate_carbon(EstimationRequest(area_ha=1, project_type="biomass", biomass_t_ha=0))
    assert high.assumptions["biomass_factor"] == 1.3
    assert math.isclose(low.assumptions["biomass_factor"], 0.7)


def test_estimate_monotone_in_area_and_ndvi():
    areas = [estimate_carbon(EstimationRequest(area_ha=a, project_type="rice")).credits_per_year for a in (0, 0.5, 1, 4, 10)]
    assert areas == sorted(areas)
    ndvis = [estimate_carbon(EstimationRequest(area_ha=1, project_type="rice", ndvi=v)).credits_per_year
             for v in (0.0, 0.2, 0.5, 0.9, 1.0)]
    assert ndvis == sorted(ndvis)


def test_negative_ndvi_is_clamped_to_zero():
    res = estimate_carbon(EstimationRequest(area_ha=1, project_type="rice", ndvi=-0.4))
    assert res.assumptions["ndvi"] == 0.0
    assert math.isclose(res.assumptions["ndvi_factor"], 0.7)


@pytest.mark.parametrize("bad", [
    dict(area_ha=-1, project_type="rice"),
    dict(area_ha=1, project_type="orchard"),
    dict(area_ha=1, project_type="rice", irrigation="canal"),
    dict(area_ha=1, project_type="rice", soil_ph=15),
    dict(area_ha=1, project_type="rice", duration_years=0),
])
def test_request_rejects_out_of_range_values(bad):
    with pytest.raises(ValidationError):
        EstimationRequest(**bad)
