# social_service/tests/unit/test_billing_interactor.py
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.orm.exc import StaleDataError

from social_service.domain.errors import ConflictError, NotFoundError, ValidationError
from social_service.infrastructure import schemas
from social_service.interactors.billing_interactor import BillingInteractor, parse_actions


def ad_payload(**overrides):
    fields = {
        "business_name": "Acme Apps",
        "about_business": "We build apps",
        "type_of_ad_content": "image",
        "ad_elements": "app_installation",
        "ad_model": "free",
        "targeted_age_group": ["18-24"],
        "interests": ["tech"],
    }
    fields.update(overrides)
    return schemas.AdCreate(**fields)


@pytest.fixture
def billing(uow, ad_gateway, app_config, logger):
    return BillingInteractor(uow, ad_gateway, app_config, logger)


@pytest.fixture
async def free_ad(billing, test_user):
    return await billing.create_ad(test_user.id, ad_payload())


async def test_create_ad_starts_with_initial_wallet(free_ad):
    assert free_ad.wallet == 2500
    assert free_ad.is_active is True
    assert free_ad.ad_model == "free"


async def test_create_ad_checks_targeting(billing, test_user):
    with pytest.raises(ValidationError, match="Free: Only 1 age group allowed"):
        await billing.create_ad(
            test_user.id, ad_payload(targeted_age_group=["18-24", "25-34"])
        )


async def test_first_batch_is_deducted(billing, free_ad):
    result = await billing.track_event(free_ad.id, {"impressions": 1000, "clicks": 10})

    assert result.wallet_before == 2500
    assert result.cost == 195
    assert result.wallet_after == 2305
    assert result.overage == 0


async def test_shortfall_becomes_overage_and_free_ad_stops(billing, free_ad):
    await billing.track_event(free_ad.id, {"impressions": 1000, "clicks": 10})

    result = await billing.track_event(free_ad.id, {"clicks": 500})

    assert result.wallet_before == 2305
    assert result.cost == 2500
    assert result.wallet_after == 0
    assert result.overage == 195

    analytics = await billing.get_analytics(free_ad.id)
    assert analytics.is_active is False
    assert analytics.billing.total_spent == 2695
    assert analytics.analytics.clicks == 510
    assert analytics.analytics.impressions == 1000


async def test_paid_ad_keeps_running_at_zero(billing, test_user):
    ad = await billing.create_ad(
        test_user.id,
        ad_payload(ad_model="elite", targeted_age_group=[], interests=[f"i{n}" for n in range(26)]),
    )

    result = await billing.track_event(ad.id, {"installs": 100})

    assert result.wallet_after == 0
    assert result.overage == 2000
    assert (await billing.get_analytics(ad.id)).is_active is True


@pytest.mark.parametrize(
    "actions",
    [{"clicks": -1}, {"clicks": 2, "bogus": 1}, {"clicks": "many"}],
)
async def test_invalid_batches_change_nothing(billing, free_ad, actions):
    with pytest.raises(ValidationError):
        await billing.track_event(free_ad.id, actions)

    analytics = await billing.get_analytics(free_ad.id)
    assert analytics.wallet == 2500
    assert analytics.analytics.clicks == 0


async def test_oversized_batch_is_rejected_before_billing(billing, free_ad, app_config):
    limit = app_config.MAX_EVENTS_PER_BATCH

    with pytest.raises(ValidationError, match=f"at most {limit} events per batch"):
        await billing.track_event(free_ad.id, {"impressions": limit, "clicks": 1})

    analytics = await billing.get_analytics(free_ad.id)
    assert analytics.wallet == 2500
    assert analytics.analytics.impressions == 0


async def test_unknown_ad(billing):
    with pytest.raises(NotFoundError):
        await billing.track_event(4242, {"clicks": 1})


async def test_convenience_trackers(billing, free_ad, test_user2):
    await billing.track_install(free_ad.id, test_user2.id)
    await billing.track_website_click(free_ad.id, test_user2.id)
    await billing.track_form_submit(free_ad.id, test_user2.id, {"email": "x@example.com"})
    await billing.track_engagement(free_ad.id, test_user2.id, "love")

    analytics = await billing.get_analytics(free_ad.id)
    assert analytics.analytics.installs == 1
    assert analytics.analytics.clicks == 1
    assert analytics.analytics.form_submits == 1
    assert analytics.analytics.engagements == 1
    # free/app_installation/image only charges clicks and impressions
    assert analytics.wallet == 2495


async def test_stale_write_is_retried(billing, app_config):
    expected = schemas.BillingResult(wallet_before=10, wallet_after=5, cost=5, overage=0)
    billing._bill = AsyncMock(side_effect=[StaleDataError("stale"), expected])

    result = await billing.track_event(1, {"clicks": 1})

    assert result == expected
    assert billing._bill.await_count == 2


async def test_conflict_after_retries(billing, app_config):
    billing._bill = AsyncMock(side_effect=StaleDataError("stale"))

    with pytest.raises(ConflictError):
        await billing.track_event(1, {"clicks": 1})
    assert billing._bill.await_count == app_config.BILLING_MAX_RETRIES


async def test_metrics(billing, free_ad, test_user2):
    await billing.track_event(free_ad.id, {"impressions": 1000, "clicks": 10})
    await billing.track_engagement(free_ad.id, test_user2.id, "like")

    metrics = await billing.get_metrics(free_ad.id)

    assert metrics.metrics.CPM.count == 1000
    assert metrics.metrics.CPM.amount == 145
    assert metrics.metrics.CPC.amount == 50
    assert metrics.total_bill == 195
    assert metrics.ad.name == "Acme Apps"
    assert metrics.ad.user_base == 0
    assert metrics.engagement.total == 1
    assert metrics.engagement.reactions == {"like": 1}
    assert metrics.engagement.users[0].reaction == "like"


def test_parse_actions_defaults_to_zero():
    counts = parse_actions({"views": 3})
    assert counts.views == 3
    assert counts.total == 3


def test_parse_actions_caps_batch_size():
    assert parse_actions({"clicks": 3, "views": 2}, max_events=5).total == 5
    with pytest.raises(ValidationError, match="at most 5 events per batch"):
        parse_actions({"clicks": 3, "views": 3}, max_events=5)
