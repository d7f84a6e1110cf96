"""
Unit tests for curtain worksheet enrichment
"""

import copy
import json

import pytest

from interio_estimator_core.engine import derive_curtain_worksheet, enrich_summary, is_non_curtain_treatment

pytestmark = pytest.mark.unit


class TestCurtainDerivation:
    @pytest.mark.critical
    def test_worked_example(self, curtain_summary):
        """200cm rail at 2.0 fullness in 137cm fabric needs three widths"""
        enriched = enrich_summary(curtain_summary)
        md = enriched["measurements_details"]

        assert md["required_width_cm"] == 400
        assert md["widths_required"] == 3
        assert md["seams_required"] == 2
        assert md["total_drop_per_width_cm"] == 245
        assert md["fabric_capacity_width_total_cm"] == 411
        assert md["leftover_width_total_cm"] == pytest.approx(11)
        assert md["leftover_per_panel_cm"] == pytest.approx(11 / 3)

    def test_measurements_echoed_with_cm_suffix(self, curtain_summary):
        md = enrich_summary(curtain_summary)["measurements_details"]

        assert md["rail_width_cm"] == 200
        assert md["drop_cm"] == 220
        assert md["fabric_width_cm"] == 137
        assert md["header_allowance_cm"] == 8
        assert md["bottom_hem_cm"] == 15
        assert md["pooling_amount_cm"] == 2
        assert md["fullness_ratio"] == 2.0
        assert md["curtain_type"] == "single"
        assert md["curtain_count"] == 1

    def test_fabric_details_normalized(self, curtain_summary):
        fabric = enrich_summary(curtain_summary)["fabric_details"]

        assert fabric["width_cm"] == 137
        assert fabric["width"] == 137
        assert fabric["name"] == "Linen Natural"

    def test_costs_untouched(self, curtain_summary):
        enriched = enrich_summary(curtain_summary)

        assert enriched["total_cost"] == 430.5
        assert enriched["fabric_cost"] == 310.5

    def test_input_not_mutated(self, curtain_summary):
        original = copy.deepcopy(curtain_summary)
        enrich_summary(curtain_summary)
        assert curtain_summary == original

    def test_idempotent(self, curtain_summary):
        once = enrich_summary(curtain_summary)
        assert enrich_summary(once) == once

    def test_measurements_as_json_string(self, curtain_summary):
        curtain_summary["measurements_details"] = json.dumps(curtain_summary["measurements_details"])

        md = enrich_summary(curtain_summary)["measurements_details"]
        assert isinstance(md, dict)
        assert md["widths_required"] == 3

    def test_caller_widths_required_wins(self, curtain_summary):
        curtain_summary["measurements_details"]["widths_required"] = 4

        md = enrich_summary(curtain_summary)["measurements_details"]
        assert md["widths_required"] == 4
        assert md["seams_required"] == 2

    def test_top_level_widths_required_wins(self, curtain_summary):
        curtain_summary["widths_required"] = 5
        assert enrich_summary(curtain_summary)["measurements_details"]["widths_required"] == 5

    def test_pair_doubles_side_hems(self, curtain_summary):
        curtain_summary["measurements_details"].update({"curtain_type": "pair", "side_hems": 5})

        md = enrich_summary(curtain_summary)["measurements_details"]
        assert md["curtain_count"] == 2
        assert md["total_width_with_allowances_cm"] == 420
        assert md["widths_required"] == 4

    def test_explicit_curtain_count_overrides_type(self, curtain_summary):
        curtain_summary["measurements_details"].update({"curtain_type": "pair", "curtain_count": 1, "side_hems": 5})

        md = enrich_summary(curtain_summary)["measurements_details"]
        assert md["curtain_count"] == 1
        assert md["total_width_with_allowances_cm"] == 410

    def test_zero_curtain_count_is_one_curtain(self, curtain_summary):
        curtain_summary["measurements_details"].update({"curtain_type": "pair", "curtain_count": 0, "side_hems": 5})

        md = enrich_summary(curtain_summary)["measurements_details"]
        assert md["curtain_count"] == 1
        assert md["total_width_with_allowances_cm"] == 410

    def test_measurement_fields_take_priority(self, curtain_summary):
        curtain_summary["measurements_details"]["fabric_width_cm"] = 280
        curtain_summary["measurements_details"]["fullness_ratio"] = 2.5

        md = enrich_summary(curtain_summary)["measurements_details"]
        assert md["fabric_width_cm"] == 280
        assert md["widths_required"] == 2


class TestEssentialMeasurementGate:
    """Nothing is derived unless rail width, drop, fullness and fabric width are all known"""

    @pytest.mark.parametrize("field", ["rail_width", "drop"])
    def test_missing_measurement(self, curtain_summary, field):
        del curtain_summary["measurements_details"][field]

        enriched = enrich_summary(curtain_summary)
        assert "widths_required" not in enriched["measurements_details"]
        assert enriched == curtain_summary

    def test_missing_fullness(self, curtain_summary):
        curtain_summary["template_details"] = {}
        assert "widths_required" not in enrich_summary(curtain_summary)["measurements_details"]

    def test_missing_fabric_width(self, curtain_summary):
        curtain_summary["fabric_details"] = {"name": "Linen Natural"}
        assert "widths_required" not in enrich_summary(curtain_summary)["measurements_details"]

    def test_zero_fabric_width(self, curtain_summary):
        curtain_summary["fabric_details"]["width"] = 0
        assert "widths_required" not in enrich_summary(curtain_summary)["measurements_details"]

    def test_unparseable_measurement(self, curtain_summary):
        curtain_summary["measurements_details"]["rail_width"] = "tbc"
        assert "widths_required" not in enrich_summary(curtain_summary)["measurements_details"]


class TestPassThroughGuards:
    def test_cost_summary_passes_through(self, curtain_summary):
        curtain_summary["cost_summary"] = {"total": 430.5}

        enriched = enrich_summary(curtain_summary)
        assert "widths_required" not in enriched["measurements_details"]
        assert enriched["cost_summary"] == {"total": 430.5}

    def test_cost_summary_defaults_details(self):
        enriched = enrich_summary({"window_id": "w", "cost_summary": {"total": 1}})

        assert enriched["fabric_details"] == {}
        assert enriched["measurements_details"] == {}

    @pytest.mark.parametrize(
        "category, treatment_type",
        [
            ("roller_blinds", None),
            ("roller_blind", None),
            ("blinds", "roller"),
            ("venetian_blinds", None),
            ("shutters", None),
            ("custom", "plantation_shutter"),
            ("wallpaper", None),
        ],
    )
    def test_non_curtain_costs_preserved(self, curtain_summary, category, treatment_type):
        curtain_summary["treatment_category"] = category
        curtain_summary["treatment_type"] = treatment_type
        curtain_summary["selected_options"] = [{"id": "chain", "price": 12}]
        curtain_summary["options_cost"] = 12

        enriched = enrich_summary(curtain_summary)
        assert "widths_required" not in enriched["measurements_details"]
        assert enriched["total_cost"] == 430.5
        assert enriched["options_cost"] == 12
        assert enriched["selected_options"] == [{"id": "chain", "price": 12}]

    def test_roman_blind_is_a_curtain_treatment(self):
        assert not is_non_curtain_treatment({"treatment_category": "roman_blinds"})

    def test_curtains_are_curtain_treatment(self):
        assert not is_non_curtain_treatment({"treatment_category": "curtains", "treatment_type": "curtains"})

    def test_non_mapping_returned_unchanged(self):
        assert enrich_summary(None) is None


class TestDeriveWorksheet:
    def test_seam_allowances(self):
        result = derive_curtain_worksheet(
            rail_width=300,
            drop=250,
            fullness=2.5,
            fabric_width=140,
            side_hems=4,
            seam_hems=1.5,
            return_left=5,
            return_right=5,
            curtain_count=2,
        )

        assert result["total_width_with_allowances_cm"] == 776
        assert result["widths_required"] == 6
        assert result["seams_required"] == 5
        assert result["seam_allow_total_cm"] == 15.0

    def test_single_width_has_no_seams(self):
        result = derive_curtain_worksheet(rail_width=50, drop=100, fullness=2, fabric_width=140)

        assert result["widths_required"] == 1
        assert result["seams_required"] == 0
        assert result["seam_allow_total_cm"] == 0
        assert result["leftover_width_total_cm"] == 40
