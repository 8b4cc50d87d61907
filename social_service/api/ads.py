# social_service/api/ads.py

from fastapi import APIRouter, Depends

from social_service.api.dependencies import (
    get_billing_interactor,
    get_current_active_user,
)
from social_service.infrastructure import schemas
from social_service.interactors.billing_interactor import BillingInteractor

router = APIRouter()


@router.post("/create", response_model=schemas.Advertisement)
async def create_ad(
    body: schemas.AdCreate,
    billing_interactor: BillingInteractor = Depends(get_billing_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await billing_interactor.create_ad(current_user.id, body)


@router.post("/track-event", response_model=schemas.BillingResult)
async def track_event(
    body: schemas.TrackEventRequest,
    billing_interactor: BillingInteractor = Depends(get_billing_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await billing_interactor.track_event(
        body.ad_id, body.actions, actor_id=current_user.id
    )


@router.post("/metrics", response_model=schemas.AdMetrics)
async def ad_metrics(
    body: schemas.AdRef,
    billing_interactor: BillingInteractor = Depends(get_billing_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await billing_interactor.get_metrics(body.ad_id)


@router.post("/analytics", response_model=schemas.AdAnalytics)
async def ad_analytics(
    body: schemas.AdRef,
    billing_interactor: BillingInteractor = Depends(get_billing_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await billing_interactor.get_analytics(body.ad_id)


@router.post("/install", response_model=schemas.BillingResult)
async def track_install(
    body: schemas.AdRef,
    billing_interactor: BillingInteractor = Depends(get_billing_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await billing_interactor.track_install(body.ad_id, current_user.id)


@router.post("/website-click", response_model=schemas.BillingResult)
async def track_website_click(
    body: schemas.AdRef,
    billing_interactor: BillingInteractor = Depends(get_billing_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await billing_interactor.track_website_click(body.ad_id, current_user.id)


@router.post("/submit-form", response_model=schemas.BillingResult)
async def submit_form(
    body: schemas.FormSubmitRequest,
    billing_interactor: BillingInteractor = Depends(get_billing_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await billing_interactor.track_form_submit(
        body.ad_id, current_user.id, body.form_data
    )


@router.post("/engage", response_model=schemas.BillingResult)
async def engage(
    body: schemas.EngageRequest,
    billing_interactor: BillingInteractor = Depends(get_billing_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await billing_interactor.track_engagement(
        body.ad_id, current_user.id, body.reaction
    )
