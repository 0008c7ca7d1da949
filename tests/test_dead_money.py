"""Unit tests for dead money configuration and cut impact."""

import json

import pytest

from ffcm.constants import DEFAULT_DEAD_MONEY_CONFIG, LEGACY_DEAD_MONEY_CONFIG
from ffcm.dead_money import (
    build_dead_money_records,
    calculate_cut_impact,
    is_legacy_default,
    parse_dead_money_config,
    serialize_dead_money_config,
    validate_dead_money_config,
)
from ffcm.errors import INVALID_DEAD_MONEY_CONFIG, ValidationError
from ffcm.schemas import DeadMoneyConfig, default_dead_money_config

GENTLE = {'currentSeason': 0.5, 'futureSeasons': {'1': 0.25, '2': 0.25, '3': 0.25, '4': 0.25}}


class TestValidateDeadMoneyConfig:
    """Tests for validating a dead money table before saving."""

    def test_valid_table(self):
        """Test that a well-formed table is accepted without warnings."""
        config, warnings = validate_dead_money_config(GENTLE)
        assert config.current_season == 0.5
        assert config.future_seasons == {'1': 0.25, '2': 0.25, '3': 0.25, '4': 0.25}
        assert warnings == []

    def test_missing_bucket_rejected(self):
        """Test that all four future buckets are required."""
        raw = {'currentSeason': 1.0, 'futureSeasons': {'1': 0.25, '2': 0.25, '3': 0.25}}
        with pytest.raises(ValidationError) as exc_info:
            validate_dead_money_config(raw)
        assert exc_info.value.code == INVALID_DEAD_MONEY_CONFIG
        assert '4' in exc_info.value.message

    def test_current_season_above_one_rejected(self):
        """Test that percentages are limited to [0, 1]."""
        raw = {**DEFAULT_DEAD_MONEY_CONFIG, 'currentSeason': 1.5}
        with pytest.raises(ValidationError):
            validate_dead_money_config(raw)

    def test_negative_future_rejected(self):
        raw = {'currentSeason': 1.0, 'futureSeasons': {'1': -0.1, '2': 0.25, '3': 0.25, '4': 0.25}}
        with pytest.raises(ValidationError):
            validate_dead_money_config(raw)

    @pytest.mark.parametrize('value', ['0.25', True, None])
    def test_non_numeric_rejected(self, value):
        """Test that strings, booleans and nulls are not percentages."""
        raw = {'currentSeason': 1.0, 'futureSeasons': {'1': value, '2': 0.25, '3': 0.25, '4': 0.25}}
        with pytest.raises(ValidationError):
            validate_dead_money_config(raw)

    def test_unknown_bucket_rejected(self):
        raw = {
            'currentSeason': 1.0,
            'futureSeasons': {'1': 0.25, '2': 0.25, '3': 0.25, '4': 0.25, '5': 0.25},
        }
        with pytest.raises(ValidationError):
            validate_dead_money_config(raw)

    def test_not_an_object_rejected(self):
        with pytest.raises(ValidationError):
            validate_dead_money_config([1.0, 0.25])

    def test_integer_keys_normalized(self):
        """Test that numeric bucket keys are accepted and stored as strings."""
        config, _ = validate_dead_money_config(
            {'currentSeason': 0.5, 'futureSeasons': {1: 0.1, 2: 0.2, 3: 0.3, 4: 0.4}}
        )
        assert config.future_seasons['3'] == 0.3

    def test_over_one_hundred_percent_warns(self):
        """Test that charging more than the salary warns but is accepted."""
        config, warnings = validate_dead_money_config(DEFAULT_DEAD_MONEY_CONFIG)
        assert config.current_season == 1.0
        assert len(warnings) == 4
        assert 'more than 100%' in warnings[0]


class TestParseDeadMoneyConfig:
    """Tests for lenient reading of stored tables."""

    @pytest.mark.parametrize('raw', [None, '', 'not json', '{"currentSeason": 2}', {'bad': 1}])
    def test_unreadable_falls_back_to_default(self, raw):
        """Test that corrupt or missing tables never raise."""
        config = parse_dead_money_config(raw)
        assert config == default_dead_money_config()

    def test_serialized_string(self):
        config = parse_dead_money_config(json.dumps(GENTLE))
        assert config.current_season == 0.5

    def test_mapping(self):
        assert parse_dead_money_config(GENTLE).current_season == 0.5

    def test_serialize_round_trip(self):
        """Test that the stored form uses the camelCase keys."""
        config = DeadMoneyConfig.model_validate(GENTLE)
        stored = serialize_dead_money_config(config)
        assert json.loads(stored) == GENTLE
        assert parse_dead_money_config(stored) == config

    def test_legacy_default_detected(self):
        assert is_legacy_default(DeadMoneyConfig.model_validate(LEGACY_DEAD_MONEY_CONFIG))
        assert not is_legacy_default(default_dead_money_config())


class TestDeadMoneyRecords:
    """Tests for the charges created by a cut."""

    def test_one_record_per_season(self, make_contract):
        """Test a current-season charge plus one per remaining year."""
        contract = make_contract(current_salary=1_000_000.0, years_remaining=2)
        records = build_dead_money_records(contract, default_dead_money_config(), 2025)

        assert [(r.year, r.amount) for r in records] == [
            (2025, 1_000_000.0),
            (2026, 250_000.0),
            (2027, 250_000.0),
        ]
        assert all(r.team_id == 't1' and r.contract_id == contract.id for r in records)

    def test_zero_charges_skipped(self, make_contract):
        """Test that the legacy table creates no future record for one year left."""
        config = DeadMoneyConfig.model_validate(LEGACY_DEAD_MONEY_CONFIG)
        contract = make_contract(years_remaining=1, original_years=1)
        records = build_dead_money_records(contract, config, 2025)
        assert [r.year for r in records] == [2025]

    def test_override_amount(self, make_contract):
        """Test that an override replaces the computed charges."""
        records = build_dead_money_records(
            make_contract(years_remaining=3), default_dead_money_config(), 2025, override_amount=123.456
        )
        assert len(records) == 1
        assert records[0].amount == 123.46
        assert records[0].year == 2025

    def test_zero_override_charges_nothing(self, make_contract):
        records = build_dead_money_records(
            make_contract(), default_dead_money_config(), 2025, override_amount=0
        )
        assert records == []

    def test_negative_override_rejected(self, make_contract):
        with pytest.raises(ValidationError):
            build_dead_money_records(
                make_contract(), default_dead_money_config(), 2025, override_amount=-1
            )


class TestCutImpact:
    """Tests for previewing a cut."""

    def test_impact_with_cap(self, make_contract):
        """Test that the impact shows the team's cap as it would be after the cut."""
        cut = make_contract(id='cut', current_salary=1_000_000.0, years_remaining=2)
        keep = make_contract(id='keep', player_id='p2', current_salary=2_000_000.0)

        impact = calculate_cut_impact(
            cut,
            default_dead_money_config(),
            2025,
            salary_cap=10_000_000.0,
            team_contracts=[cut, keep],
        )

        assert impact.total_amount == 1_500_000.0
        assert impact.cap_savings == 0.0
        assert impact.cap_after_cut.active_salaries == 2_000_000.0
        assert impact.cap_after_cut.dead_money == 1_000_000.0
        assert impact.cap_after_cut.used_cap == 3_000_000.0

    def test_savings_with_partial_current_charge(self, make_contract):
        """Test that savings are the salary freed minus the charge this season."""
        config = DeadMoneyConfig.model_validate(GENTLE)
        impact = calculate_cut_impact(make_contract(current_salary=1_000_000.0), config, 2025)

        assert impact.cap_savings == 500_000.0
        assert impact.cap_after_cut is None

    def test_impact_does_not_modify_contract(self, make_contract):
        contract = make_contract()
        calculate_cut_impact(contract, default_dead_money_config(), 2025)
        assert contract.status == 'ACTIVE'
