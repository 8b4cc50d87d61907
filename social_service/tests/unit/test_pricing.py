# social_service/tests/unit/test_pricing.py
from decimal import Decimal

import pytest

from social_service.domain.errors import ValidationError
from social_service.domain.pricing import (
    AD_CONTENT_TYPES,
    AD_ELEMENTS,
    AD_MODELS,
    check_targeting_limits,
    rate_table_for,
)


def test_every_tier_has_full_price_grid():
    for model in AD_MODELS:
        for element in AD_ELEMENTS:
            for content in AD_CONTENT_TYPES:
                rates = rate_table_for(model, element, content)
                assert rates.CPM > 0
                assert rates.CPC > 0


def test_free_app_installation_image_rates():
    rates = rate_table_for("free", "app_installation", "image")
    assert rates.CPM == Decimal(145)
    assert rates.CPC == Decimal(5)
    assert rates.CPI == Decimal(0)


def test_elite_rates():
    rates = rate_table_for("elite", "app_installation", "video")
    assert rates.CPI == Decimal(60)
    assert rates.CPV == Decimal("0.75")


def test_unknown_combination_raises():
    with pytest.raises(ValidationError):
        rate_table_for("platinum", "form", "image")


def test_targeting_within_limits():
    assert check_targeting_limits("free", ["18-24"], ["a", "b"]) is None
    assert check_targeting_limits("premium", ["18-24"], [str(i) for i in range(6)]) is None
    assert check_targeting_limits("elite", [], [str(i) for i in range(26)]) is None
    assert (
        check_targeting_limits("ultimate", ["18-24", "25-34", "35-44"], [str(i) for i in range(31)])
        is None
    )


def test_free_allows_only_one_age_group():
    assert check_targeting_limits("free", ["18-24", "25-34"], []) == "Free: Only 1 age group allowed"


def test_free_interest_cap():
    assert check_targeting_limits("free", ["18-24"], [str(i) for i in range(6)]) == (
        "Free: Max 5 interests allowed"
    )


def test_premium_interest_range():
    assert check_targeting_limits("premium", ["18-24"], ["a"]) == "Premium: Interests 6-25 allowed"


def test_elite_age_group_cap():
    message = check_targeting_limits("elite", ["a", "b", "c"], [str(i) for i in range(30)])
    assert message == "Elite: Max 2 age groups"


def test_ultimate_minimums():
    assert check_targeting_limits("ultimate", [], []) == "Ultimate: At least 1 age group"
    assert check_targeting_limits("ultimate", ["a"], ["x"]) == "Ultimate: At least 31 interests"


def test_unknown_model():
    assert check_targeting_limits("gold", [], []) == "Unknown ad model: gold"
