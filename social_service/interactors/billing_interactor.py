# social_service/interactors/billing_interactor.py
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional

import pydantic
from sqlalchemy.orm.exc import StaleDataError

from social_service.config import AppConfig
from social_service.domain.errors import ConflictError, NotFoundError, ValidationError
from social_service.domain.ledger import (
    MILLE,
    EventCounts,
    apply_cost,
    compute_cost,
    to_decimal,
)
from social_service.domain.pricing import check_targeting_limits, rate_table_for
from social_service.gateways.interfaces import IAdGateway
from social_service.infrastructure import schemas
from social_service.infrastructure.models import utcnow
from social_service.infrastructure.uow import UnitOfWork, UoWModel


def parse_actions(actions: Any, max_events: Optional[int] = None) -> EventCounts:
    """Validate an event batch.

    Unknown keys, negative counts and batches above ``max_events`` units are
    rejected.
    """
    if isinstance(actions, EventCounts):
        counts = actions
    else:
        try:
            validated = schemas.AdActions.model_validate(actions)
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid actions: {e.errors()[0]['msg']}") from None
        counts = EventCounts(**validated.model_dump())
    if max_events is not None and counts.total > max_events:
        raise ValidationError(
            f"Invalid actions: at most {max_events} events per batch"
        )
    return counts


class BillingInteractor:
    def __init__(
        self,
        uow: UnitOfWork,
        ad_gateway: IAdGateway,
        config: AppConfig,
        logger: logging.Logger,
    ):
        self.uow = uow
        self.ad_gateway = ad_gateway
        self.config = config
        self.logger = logger

    async def _get_ad(self, ad_id: int) -> UoWModel:
        ad = await self.ad_gateway.get_ad(ad_id)
        if ad is None:
            raise NotFoundError("Ad not found")
        return ad

    async def create_ad(
        self, owner_id: int, payload: schemas.AdCreate
    ) -> schemas.Advertisement:
        violation = check_targeting_limits(
            payload.ad_model, payload.targeted_age_group, payload.interests
        )
        if violation:
            raise ValidationError(violation)
        # unknown tier/element/content combinations have no price and are refused
        rate_table_for(payload.ad_model, payload.ad_elements, payload.type_of_ad_content)

        ad = await self.ad_gateway.create_ad(
            owner_id, payload, to_decimal(self.config.AD_INITIAL_WALLET)
        )
        await self.uow.commit()
        self.logger.info(f"Ad {ad.id} created for user {owner_id} ({ad.ad_model})")
        return schemas.Advertisement.model_validate(ad._model)

    async def track_event(
        self,
        ad_id: int,
        actions: Any,
        actor_id: Optional[int] = None,
        reaction: Optional[str] = None,
        form_data: Optional[Mapping[str, Any]] = None,
    ) -> schemas.BillingResult:
        counts = parse_actions(actions, self.config.MAX_EVENTS_PER_BATCH)

        for attempt in range(1, self.config.BILLING_MAX_RETRIES + 1):
            try:
                result = await self._bill(ad_id, counts, actor_id, reaction, form_data)
            except StaleDataError:
                await self.uow.rollback()
                self.logger.warning(
                    f"Ad {ad_id} changed concurrently, retrying ({attempt})"
                )
                continue
            except Exception:
                await self.uow.rollback()
                raise
            return result

        raise ConflictError("Ad is being updated concurrently, try again")

    async def _bill(
        self,
        ad_id: int,
        counts: EventCounts,
        actor_id: Optional[int],
        reaction: Optional[str],
        form_data: Optional[Mapping[str, Any]],
    ) -> schemas.BillingResult:
        ad = await self._get_ad(ad_id)
        rates = rate_table_for(ad.ad_model, ad.ad_elements, ad.type_of_ad_content)

        for field, count in counts.items():
            if count:
                setattr(ad, field, (getattr(ad, field) or 0) + count)
        await self.ad_gateway.record_events(
            ad_id, counts, actor_id=actor_id, reaction=reaction, at=utcnow()
        )
        if form_data is not None:
            await self.ad_gateway.record_form_submission(ad_id, actor_id, form_data)

        wallet_before = to_decimal(ad.wallet)
        cost = compute_cost(rates, counts)
        ledger = apply_cost(wallet_before, ad.overage, ad.total_spent, cost)
        ad.wallet = ledger.wallet
        ad.overage = ledger.overage
        ad.total_spent = ledger.total_spent
        if ledger.wallet == 0 and ad.ad_model == "free" and ad.is_active:
            ad.is_active = False
            self.logger.info(f"Free ad {ad_id} ran out of wallet and was deactivated")

        await self.uow.commit()
        return schemas.BillingResult(
            wallet_before=float(wallet_before),
            wallet_after=float(ledger.wallet),
            cost=float(cost),
            overage=float(ledger.overage),
        )

    async def track_install(
        self, ad_id: int, actor_id: Optional[int] = None
    ) -> schemas.BillingResult:
        return await self.track_event(ad_id, EventCounts(installs=1), actor_id)

    async def track_website_click(
        self, ad_id: int, actor_id: Optional[int] = None
    ) -> schemas.BillingResult:
        return await self.track_event(ad_id, EventCounts(clicks=1), actor_id)

    async def track_form_submit(
        self,
        ad_id: int,
        actor_id: Optional[int] = None,
        form_data: Optional[Mapping[str, Any]] = None,
    ) -> schemas.BillingResult:
        return await self.track_event(
            ad_id, EventCounts(form_submits=1), actor_id, form_data=form_data
        )

    async def track_engagement(
        self, ad_id: int, actor_id: Optional[int] = None, reaction: Optional[str] = None
    ) -> schemas.BillingResult:
        return await self.track_event(
            ad_id, EventCounts(engagements=1), actor_id, reaction=reaction
        )

    async def get_metrics(self, ad_id: int) -> schemas.AdMetrics:
        ad = await self._get_ad(ad_id)
        rates = rate_table_for(ad.ad_model, ad.ad_elements, ad.type_of_ad_content)

        cpm_amount = ((rates.CPM / MILLE) * ad.impressions).quantize(
            Decimal(1), rounding=ROUND_HALF_UP
        )
        lines = {
            "CPM": (ad.impressions, cpm_amount),
            "CPC": (ad.clicks, rates.CPC * ad.clicks),
            "CPI": (ad.installs, rates.CPI * ad.installs),
            "CPE": (ad.engagements, rates.CPE * ad.engagements),
            "CPV": (ad.views, rates.CPV * ad.views),
            "CPA": (ad.form_submits, rates.CPA * ad.form_submits),
        }
        metrics = schemas.Metrics(
            **{
                name: schemas.MetricLine(count=count, amount=float(amount))
                for name, (count, amount) in lines.items()
            }
        )
        total_bill = sum((amount for _, amount in lines.values()), Decimal(0))

        reactions = await self.ad_gateway.reaction_counts(ad_id)
        recent = await self.ad_gateway.recent_engagements(
            ad_id, self.config.ENGAGEMENT_USERS_LIMIT
        )
        users = []
        for event in recent:
            user = event.user
            users.append(
                schemas.EngagementUser(
                    name=(user and (user.full_name or user.username)) or "Account Name",
                    age=user.age if user else None,
                    gender=user.gender if user else None,
                    city=user.city if user else None,
                    date=event.timestamp,
                    reaction=event.reaction or "",
                    profile_pic=(user.profile_pic if user else None) or "",
                )
            )

        business = ad.business
        return schemas.AdMetrics(
            ad=schemas.AdSummary(
                name=(business and business.business_name) or "App_name",
                created_at=ad.created_at,
                about=(business and business.about_business) or "",
                ad_content=ad.ad_content_url,
                ad_content_type=ad.type_of_ad_content,
                ad_element=ad.ad_elements,
                ad_model=ad.ad_model,
                user_base=ad.user_base or 0,
            ),
            metrics=metrics,
            total_bill=float(total_bill),
            engagement=schemas.Engagement(
                total=ad.engagements, reactions=reactions, users=users
            ),
        )

    async def get_analytics(self, ad_id: int) -> schemas.AdAnalytics:
        ad = await self._get_ad(ad_id)
        return schemas.AdAnalytics(
            analytics=schemas.AdCounters.model_validate(ad._model),
            billing=schemas.AdBilling(
                total_spent=float(ad.total_spent), overage=float(ad.overage)
            ),
            wallet=float(ad.wallet),
            is_active=ad.is_active,
        )
