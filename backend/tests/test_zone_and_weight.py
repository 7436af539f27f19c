"""
Tests for pincode zone derivation and chargeable weight.
"""

import pytest

from app.models.schemas import Zone
from app.services.pincode_data import STATE_BY_PREFIX
from app.services import zone_resolver
from app.services.weight_calculator import chargeable_weight, volumetric_weight
from app.services.zone_resolver import is_valid_pincode, resolve_zone, state_for_pincode


# =============================================================================
# TESTS: ZONE RESOLUTION
# =============================================================================

class TestResolveZone:

    def test_same_metro_prefix_is_zone_a(self):
        assert resolve_zone("110001", "110002") == Zone.A

    def test_different_states_is_zone_c(self):
        assert resolve_zone("110001", "400001") == Zone.C

    def test_same_state_is_zone_b(self):
        # "28" and "20" both map to Uttar Pradesh
        assert resolve_zone("282001", "201001") == Zone.B

    def test_metro_to_other_city_in_same_state(self):
        assert resolve_zone("400001", "411001") == Zone.B

    def test_difficult_terrain_destination(self):
        assert resolve_zone("110001", "781001") == Zone.D
        assert resolve_zone("560001", "737101") == Zone.D

    def test_extreme_remote_destination(self):
        assert resolve_zone("110001", "744101") == Zone.E
        assert resolve_zone("400001", "194101") == Zone.E

    def test_remote_origin_does_not_make_zone_remote(self):
        assert resolve_zone("744101", "110001") == Zone.C

    def test_whitespace_is_ignored(self):
        assert resolve_zone(" 110 001", "110002 ") == Zone.A

    @pytest.mark.parametrize("origin,dest", [
        ("11000", "110002"),
        ("110001", ""),
        (None, "110002"),
        ("110001", None),
    ])
    def test_short_or_missing_pincode_has_no_zone(self, origin, dest):
        assert resolve_zone(origin, dest) is None

    def test_unknown_state_prefix_falls_through_to_zone_c(self):
        assert resolve_zone("990001", "990002") == Zone.C

    def test_same_state_comes_from_state_lookup(self, monkeypatch):
        monkeypatch.setattr(zone_resolver, "state_for_pincode", lambda p: "Maharashtra")
        assert resolve_zone("110001", "560001") == Zone.B

    @pytest.mark.parametrize("origin,dest", [
        ("110001", "560001"),
        ("1100", "560001"),
        (" 110 001 ", "560 001"),
        ("110001", None),
    ])
    def test_zone_defined_exactly_when_both_pincodes_valid(self, origin, dest):
        valid = is_valid_pincode(origin) and is_valid_pincode(dest)
        assert (resolve_zone(origin, dest) is not None) == valid


class TestPincodeHelpers:

    def test_state_lookup(self):
        assert state_for_pincode("560034") == "Karnataka"
        assert state_for_pincode("9") is None

    def test_validity(self):
        assert is_valid_pincode("110001")
        assert not is_valid_pincode("1100")

    def test_state_table_is_read_only(self):
        with pytest.raises(TypeError):
            STATE_BY_PREFIX["99"] = "Nowhere"


# =============================================================================
# TESTS: CHARGEABLE WEIGHT
# =============================================================================

class TestChargeableWeight:

    def test_dead_weight_wins(self):
        weight, volumetric = chargeable_weight(5, 30, 20, 25)
        assert volumetric == pytest.approx(3.0)
        assert weight == 5

    def test_volumetric_wins(self):
        weight, volumetric = chargeable_weight(2, 30, 20, 25)
        assert weight == pytest.approx(3.0)
        assert volumetric == pytest.approx(3.0)

    def test_no_dimensions(self):
        assert chargeable_weight(1.2) == (1.2, None)

    @pytest.mark.parametrize("dims", [(30, 20, None), (30, 0, 25), (-1, 20, 25)])
    def test_incomplete_dimensions_are_ignored(self, dims):
        assert volumetric_weight(*dims) is None
        assert chargeable_weight(1.2, *dims) == (1.2, None)

    def test_volumetric_is_rounded_for_reporting(self):
        weight, volumetric = chargeable_weight(0, 11, 13, 17)
        assert weight == pytest.approx(11 * 13 * 17 / 5000)
        assert volumetric == round(11 * 13 * 17 / 5000, 3)
