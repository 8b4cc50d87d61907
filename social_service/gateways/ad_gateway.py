# social_service/gateways/ad_gateway.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from social_service.domain.ledger import EventCounts
from social_service.gateways.interfaces import IAdGateway
from social_service.infrastructure import models, schemas
from social_service.infrastructure.data_mappers import (
    AdEventMapper,
    AdFormSubmissionMapper,
    AdvertisementMapper,
    BusinessProfileMapper,
)
from social_service.infrastructure.uow import UnitOfWork, UoWModel

# counter field -> event_type stored on AdEvent rows
EVENT_TYPES = {
    "impressions": "impression",
    "clicks": "click",
    "views": "view",
    "engagements": "engagement",
    "installs": "install",
    "form_submits": "formSubmit",
}


class AdGateway(IAdGateway):
    def __init__(self, session: AsyncSession, uow: UnitOfWork):
        self.session = session
        self.uow = uow
        uow.mappers[models.Advertisement] = AdvertisementMapper(session)
        uow.mappers[models.BusinessProfile] = BusinessProfileMapper(session)
        uow.mappers[models.AdEvent] = AdEventMapper(session)
        uow.mappers[models.AdFormSubmission] = AdFormSubmissionMapper(session)

    async def get_ad(self, ad_id: int) -> Optional[UoWModel]:
        # populate_existing so a retry after a version conflict sees fresh values
        stmt = (
            select(models.Advertisement)
            .filter(models.Advertisement.id == ad_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        ad = result.scalar_one_or_none()
        return UoWModel(ad, self.uow) if ad else None

    async def create_ad(self, owner_id: int, ad: schemas.AdCreate, wallet) -> UoWModel:
        business = models.BusinessProfile(
            user_id=owner_id,
            business_name=ad.business_name,
            about_business=ad.about_business,
            industrial_sector=ad.industrial_sector,
            business_website=ad.business_website,
        )
        db_ad = models.Advertisement(
            business=business,
            type_of_ad_content=ad.type_of_ad_content,
            ad_content_url=ad.ad_content_url,
            ad_elements=ad.ad_elements,
            app_store_link=ad.app_store_link,
            play_store_link=ad.play_store_link,
            ad_model=ad.ad_model,
            targeted_age_group=list(ad.targeted_age_group),
            interests=list(ad.interests),
            form_fields=list(ad.form_fields),
            wallet=wallet,
        )
        self.uow.register_new(business)
        return self.uow.register_new(db_ad)

    async def record_events(
        self,
        ad_id: int,
        counts: EventCounts,
        actor_id: Optional[int] = None,
        reaction: Optional[str] = None,
        at: Optional[datetime] = None,
    ) -> int:
        """Append one AdEvent row per unit event; returns the number of rows."""
        at = at or models.utcnow()
        rows = []
        for field, count in counts.items():
            event_type = EVENT_TYPES[field]
            rows.extend(
                {
                    "ad_id": ad_id,
                    "event_type": event_type,
                    "user_id": actor_id,
                    "reaction": reaction if event_type == "engagement" else None,
                    "timestamp": at,
                }
                for _ in range(count)
            )
        if rows:
            await self.session.execute(insert(models.AdEvent), rows)
        return len(rows)

    async def record_form_submission(
        self, ad_id: int, user_id: Optional[int], form_data: dict
    ) -> UoWModel:
        submission = models.AdFormSubmission(
            ad_id=ad_id, user_id=user_id, form_data=dict(form_data)
        )
        return self.uow.register_new(submission)

    async def reaction_counts(self, ad_id: int) -> dict[str, int]:
        reaction = func.coalesce(func.nullif(models.AdEvent.reaction, ""), "other")
        stmt = (
            select(reaction.label("reaction"), func.count(models.AdEvent.id))
            .filter(
                models.AdEvent.ad_id == ad_id,
                models.AdEvent.event_type == "engagement",
            )
            .group_by(reaction)
        )
        result = await self.session.execute(stmt)
        return {name: count for name, count in result.all()}

    async def recent_engagements(
        self, ad_id: int, limit: int
    ) -> List[models.AdEvent]:
        stmt = (
            select(models.AdEvent)
            .filter(
                models.AdEvent.ad_id == ad_id,
                models.AdEvent.event_type == "engagement",
            )
            .order_by(models.AdEvent.timestamp.desc(), models.AdEvent.id.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.unique().scalars().all())
