"""Settings validation and the policy snapshots derived from them."""

from decimal import Decimal

from pydantic import ValidationError
import pytest

from lessonbook.core.config import Settings
from lessonbook.core.policies import (
    LifecyclePolicy,
    PricingPolicy,
    default_lifecycle_policy,
    default_pricing_policy,
)


def make_settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


class TestSettings:
    def test_defaults(self) -> None:
        cfg = make_settings()

        assert cfg.commission_rate == Decimal("0.2")
        assert cfg.tax_rate == Decimal("0.1")
        assert cfg.trial_price == Decimal("5")
        assert cfg.max_trial_teachers == 3
        assert cfg.trial_lookup_basis == "price"
        assert cfg.package_discount_ladder == {
            5: Decimal("0.05"),
            10: Decimal("0.1"),
            20: Decimal("0.15"),
        }
        assert cfg.auto_complete_delay_hours == 48
        assert cfg.reminder_lead_minutes == 30
        assert cfg.free_cancellation_window_hours == 12

    def test_ladder_keys_from_json_strings(self) -> None:
        cfg = make_settings(package_discount_ladder={"5": "0.07", "12": "0.12"})

        assert cfg.package_discount_ladder == {5: Decimal("0.07"), 12: Decimal("0.12")}

    def test_ladder_values_must_be_fractions(self) -> None:
        with pytest.raises(ValidationError):
            make_settings(package_discount_ladder={5: "1.5"})

    def test_package_bounds_must_be_ordered(self) -> None:
        with pytest.raises(ValidationError):
            make_settings(package_min_lessons=10, package_max_lessons=5)

    def test_commission_rate_below_one(self) -> None:
        with pytest.raises(ValidationError):
            make_settings(commission_rate="1.2")

    def test_unknown_trial_lookup_basis(self) -> None:
        with pytest.raises(ValidationError):
            make_settings(trial_lookup_basis="guess")

    def test_legacy_postgres_scheme_is_normalised(self) -> None:
        cfg = make_settings(database_url="postgres://u:p@db:5432/lessons")

        assert cfg.get_database_url() == "postgresql+psycopg2://u:p@db:5432/lessons"

    @pytest.mark.parametrize(
        "environment,expected", [("production", True), ("Prod", True), ("dev", False)]
    )
    def test_is_production(self, environment, expected) -> None:
        assert make_settings(environment=environment).is_production is expected


class TestPolicies:
    def test_pricing_policy_from_settings(self) -> None:
        cfg = make_settings(commission_rate="0.25", trial_price="7.5", max_trial_teachers=2)

        policy = PricingPolicy.from_settings(cfg)

        assert policy.commission_rate == Decimal("0.25")
        assert policy.trial_price == Decimal("7.5")
        assert policy.max_trial_teachers == 2

    def test_lifecycle_policy_from_settings(self) -> None:
        cfg = make_settings(auto_complete_delay_hours=24, max_teacher_reschedules=2)

        policy = LifecyclePolicy.from_settings(cfg)

        assert policy.auto_complete_delay_hours == 24
        assert policy.max_teacher_reschedules == 2
        assert policy.reschedule_window_days == 7

    def test_defaults_match_dataclass_defaults(self) -> None:
        assert default_pricing_policy() == PricingPolicy()
        assert default_lifecycle_policy() == LifecyclePolicy()

    @pytest.mark.parametrize(
        "quantity,expected",
        [(1, "0"), (4, "0"), (5, "0.05"), (12, "0.10"), (20, "0.15"), (99, "0.15")],
    )
    def test_ladder_discount(self, quantity, expected) -> None:
        assert PricingPolicy().ladder_discount(quantity) == Decimal(expected)

    def test_policies_are_frozen(self) -> None:
        policy = LifecyclePolicy()

        with pytest.raises(AttributeError):
            policy.auto_complete_delay_hours = 1  # type: ignore[misc]
