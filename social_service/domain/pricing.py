# social_service/domain/pricing.py
from social_service.domain.errors import ValidationError
from social_service.domain.ledger import RateTable

AD_MODELS = ("free", "premium", "elite", "ultimate")
AD_ELEMENTS = ("app_installation", "form", "webpage")
AD_CONTENT_TYPES = ("image", "video")

# tier -> element -> content kind -> per-unit rates
AD_PRICING: dict[str, dict[str, dict[str, dict[str, float]]]] = {
    "free": {
        "app_installation": {
            "image": {"CPC": 5, "CPM": 145},
            "video": {"CPC": 8, "CPM": 170, "CPV": 0.5},
        },
        "form": {
            "image": {"CPC": 3, "CPM": 110, "CPA": 4},
            "video": {"CPC": 6, "CPM": 150, "CPV": 0.75, "CPA": 7},
        },
        "webpage": {
            "image": {"CPC": 1.5, "CPM": 85},
            "video": {"CPC": 4, "CPM": 125, "CPV": 0.4},
        },
    },
    "premium": {
        "app_installation": {
            "image": {"CPC": 6, "CPM": 140, "CPE": 1.25, "CPI": 40},
            "video": {"CPC": 9, "CPM": 170, "CPV": 0.6, "CPA": 4, "CPE": 2, "CPI": 55},
        },
        "form": {
            "image": {"CPC": 3.5, "CPM": 115, "CPA": 4.5, "CPE": 0.9},
            "video": {"CPC": 7, "CPM": 150, "CPV": 0.9, "CPA": 8, "CPE": 1.25},
        },
        "webpage": {
            "image": {"CPC": 1.75, "CPM": 90, "CPE": 0.6},
            "video": {"CPC": 4.5, "CPM": 130, "CPV": 0.45, "CPE": 1.25},
        },
    },
    "elite": {
        "app_installation": {
            "image": {"CPC": 7, "CPM": 145, "CPV": 0, "CPA": 0, "CPE": 1.5, "CPI": 45},
            "video": {"CPC": 10, "CPM": 180, "CPV": 0.75, "CPA": 5, "CPE": 2.5, "CPI": 60},
        },
        "form": {
            "image": {"CPC": 4, "CPM": 120, "CPV": 0, "CPA": 5, "CPE": 1, "CPI": 0},
            "video": {"CPC": 8, "CPM": 160, "CPV": 1, "CPA": 9, "CPE": 1.5, "CPI": 0},
        },
        "webpage": {
            "image": {"CPC": 2, "CPM": 95, "CPV": 0, "CPA": 0, "CPE": 0.75, "CPI": 0},
            "video": {"CPC": 5, "CPM": 135, "CPV": 0.5, "CPA": 0, "CPE": 1.5, "CPI": 0},
        },
    },
    "ultimate": {
        "app_installation": {
            "image": {"CPC": 8, "CPM": 160, "CPE": 1.75, "CPI": 50},
            "video": {"CPC": 12, "CPM": 200, "CPV": 0.9, "CPA": 6, "CPE": 3, "CPI": 70},
        },
        "form": {
            "image": {"CPC": 5, "CPM": 135, "CPA": 6, "CPE": 1.25},
            "video": {"CPC": 9, "CPM": 180, "CPV": 1.2, "CPA": 10, "CPE": 1.75},
        },
        "webpage": {
            "image": {"CPC": 2.5, "CPM": 110, "CPE": 1},
            "video": {"CPC": 6, "CPM": 150, "CPV": 0.6, "CPE": 1.75},
        },
    },
}


def rate_table_for(ad_model: str, ad_elements: str, content_type: str) -> RateTable:
    try:
        rates = AD_PRICING[ad_model][ad_elements][content_type]
    except KeyError:
        raise ValidationError(
            f"No pricing for {ad_model}/{ad_elements}/{content_type}"
        ) from None
    return RateTable.from_mapping(rates)


# tier -> (min age groups, max age groups, min interests, max interests); None = unbounded
TARGETING_LIMITS: dict[str, tuple[int, int | None, int, int | None]] = {
    "free": (1, 1, 0, 5),
    "premium": (1, 1, 6, 25),
    "elite": (0, 2, 26, 60),
    "ultimate": (1, None, 31, None),
}


def check_targeting_limits(
    ad_model: str, age_groups: list[str], interests: list[str]
) -> str | None:
    """Return a human readable violation, or None when targeting fits the tier."""
    if ad_model not in TARGETING_LIMITS:
        return f"Unknown ad model: {ad_model}"
    min_ages, max_ages, min_interests, max_interests = TARGETING_LIMITS[ad_model]
    label = ad_model.capitalize()
    if len(age_groups) < min_ages or (max_ages is not None and len(age_groups) > max_ages):
        if max_ages is None:
            return f"{label}: At least {min_ages} age group"
        if min_ages == max_ages:
            return f"{label}: Only {max_ages} age group allowed"
        return f"{label}: Max {max_ages} age groups"
    if len(interests) < min_interests or (
        max_interests is not None and len(interests) > max_interests
    ):
        if max_interests is None:
            return f"{label}: At least {min_interests} interests"
        if min_interests == 0:
            return f"{label}: Max {max_interests} interests allowed"
        return f"{label}: Interests {min_interests}-{max_interests} allowed"
    return None
