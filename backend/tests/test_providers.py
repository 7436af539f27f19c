"""
Tests for provider classification, the partial audit and batch orchestration.
"""

import pytest

from app.models.schemas import ContractRules
from app.services.discrepancy_engine import DUPLICATE_CHARGE
from app.services.partial_auditor import UNKNOWN_PROVIDER_PREFIX, partial_audit
from app.services.processor import (
    ALL_ROWS_LABEL,
    contracts_by_provider,
    merge_results,
    reaudit_provider,
    run_audit,
)
from app.services.provider_classifier import OTHER_LABEL, classify, group_rows, similarity


# =============================================================================
# TESTS: CLASSIFICATION
# =============================================================================

class TestClassify:

    def test_alias_match(self):
        match = classify("Delhivery Ltd")
        assert match.canonical == "Delhivery"
        assert match.confidence >= 0.7

    def test_spacing_and_case_ignored(self):
        match = classify("  BLUE   DART ")
        assert match.canonical == "BlueDart"
        assert match.confidence == 1.0

    def test_close_misspelling(self):
        assert classify("Shadowfaxx").canonical == "Shadowfax"

    @pytest.mark.parametrize("raw,expected", [
        ("Blue Star", "BlueDart"),
        ("Express", "Ecom Express"),
        ("Delta", "Delhivery"),
        ("Delhivery Surface", None),
    ])
    def test_similar_looking_names(self, raw, expected):
        match = classify(raw)
        assert (match.canonical if match else None) == expected

    @pytest.mark.parametrize("raw", ["XYZ Couriers", "", "   ", None])
    def test_no_match(self, raw):
        assert classify(raw) is None

    def test_similarity_bounds(self):
        assert similarity("Ecom Express", "ecom  express") == 1.0
        assert similarity("", "ecom") == 0.0
        assert 0.0 < similarity("ecomexpres", "ecomexpress") < 1.0


class TestGroupRows:

    def test_known_and_unknown_groups(self, make_row):
        rows = [
            make_row(awb="1", provider="Delhivery"),
            make_row(awb="2", provider="delhivery ltd"),
            make_row(awb="3", provider="XYZ Couriers"),
            make_row(awb="4"),
        ]
        groups = group_rows(rows)

        assert [r.awb for r in groups.known["Delhivery"]] == ["1", "2"]
        assert [r.awb for r in groups.unknown["XYZ Couriers"]] == ["3"]
        assert [r.awb for r in groups.unknown[OTHER_LABEL]] == ["4"]


# =============================================================================
# TESTS: PARTIAL AUDIT
# =============================================================================

class TestPartialAudit:

    def test_weight_and_zone_findings_carry_no_money(self, make_row):
        rows = [make_row(billed_weight=1.02, actual_weight=1.0, billed_zone="B", actual_zone="C",
                         total_billed_amount=120)]
        result = partial_audit(rows)

        d = result.discrepancies[0]
        assert d.issue_type == UNKNOWN_PROVIDER_PREFIX + "Weight Overcharge, Zone Mismatch"
        assert d.issue_type.startswith("Unknown Provider — ")
        assert d.difference == 0
        assert d.correct_amount == 120
        assert result.total_overcharge == 0

    def test_one_percent_weight_tolerance(self, make_row):
        assert partial_audit([make_row(billed_weight=1.005, actual_weight=1.0)]).discrepancies == []

    def test_blank_zone_is_not_a_mismatch(self, make_row):
        assert partial_audit([make_row(billed_zone="B", actual_zone="")]).discrepancies == []

    def test_duplicates_match_full_audit(self, make_row):
        rows = [make_row(awb="D1", total_billed_amount=70), make_row(awb="D1", total_billed_amount=70)]
        result = partial_audit(rows)

        assert len(result.discrepancies) == 1
        assert result.discrepancies[0].issue_type == DUPLICATE_CHARGE
        assert result.discrepancies[0].difference == 70.0
        assert result.total_overcharge == 70.0
        assert result.total_billed == 140.0


# =============================================================================
# TESTS: BATCH ORCHESTRATION
# =============================================================================

class TestRunAudit:

    def test_single_contract_without_providers(self, contract, make_row):
        rows = [make_row(awb="1"), make_row(awb="2", order_type="COD", total_billed_amount=100)]
        report = run_audit(rows, contract)

        assert len(report.groups) == 1
        assert report.groups[0].provider == ALL_ROWS_LABEL
        assert report.groups[0].mode == "full"
        assert report.combined.total_rows == 2
        assert report.combined.total_overcharge == pytest.approx(30.06)
        assert report.unknown_providers == []

    def test_mixed_providers(self, contract, make_row):
        rows = [
            make_row(awb="1", provider="Delhivery", order_type="COD", total_billed_amount=100),
            make_row(awb="2", provider="XYZ Couriers", billed_zone="B"),
            make_row(awb="3", provider="XYZ Couriers"),
        ]
        report = run_audit(rows, contract)
        by_provider = {g.provider: g for g in report.groups}

        assert by_provider["Delhivery"].mode == "full"
        assert by_provider["Delhivery"].known
        assert by_provider["Delhivery"].confidence == 1.0
        assert by_provider["XYZ Couriers"].mode == "partial"
        assert not by_provider["XYZ Couriers"].known
        assert [(u.name, u.row_count) for u in report.unknown_providers] == [("XYZ Couriers", 2)]
        assert report.combined.total_rows == 3
        assert len(report.combined.discrepancies) == 2

    def test_known_provider_without_contract_is_partial(self, make_row):
        report = run_audit([make_row(provider="BlueDart")])
        assert report.groups[0].mode == "partial"
        assert report.unknown_providers == []

    def test_provider_specific_contract(self, contract, make_row):
        cheap = contract.model_copy(update={"zone_a_rate": 10})
        rows = [make_row(awb="1", provider="Delhivery"), make_row(awb="2", provider="BlueDart")]
        report = run_audit(rows, contract, provider_contracts={"Delhivery": cheap})
        by_provider = {g.provider: g for g in report.groups}

        assert len(by_provider["Delhivery"].result.discrepancies) == 1
        assert by_provider["BlueDart"].result.discrepancies == []

    def test_custom_contract_promotes_unknown_provider(self, contract, make_row):
        rows = [make_row(provider="XYZ Couriers", order_type="COD", total_billed_amount=100)]
        report = run_audit(rows, custom_contracts={"xyz couriers": contract})

        assert report.groups[0].mode == "full"
        assert report.groups[0].known is False
        assert report.unknown_providers == []
        assert report.combined.discrepancies[0].issue_type == "Rate Overcharge"

    def test_reaudit(self, contract, make_row):
        result = reaudit_provider([make_row(order_type="COD", total_billed_amount=100)], contract)
        assert result.total_overcharge == pytest.approx(30.06)


class TestHelpers:

    def test_contracts_keyed_by_canonical_name(self, contract):
        keyed = contracts_by_provider({"delhivery ltd": contract, "Acme Logistics": contract})
        assert set(keyed) == {"Delhivery", "Acme Logistics"}

    def test_merge_results(self, contract, make_row):
        a = run_audit([make_row(awb="1", order_type="COD", total_billed_amount=100)], contract).combined
        b = run_audit([make_row(awb="2", order_type="COD", total_billed_amount=130)], contract).combined
        merged = merge_results([a, b])

        assert merged.total_rows == 2
        assert merged.total_billed == pytest.approx(230.0)
        assert merged.total_overcharge == pytest.approx(90.12)

    def test_contract_defaults(self):
        c = ContractRules(zone_a_rate=1, zone_b_rate=2, zone_c_rate=3)
        assert c.fuel_surcharge_percentage == 12
        assert c.docket_charge == 25
        assert c.gst_percentage == 18
        assert c.zone_d_rate is None
