# social_service/api/groups.py
from typing import List

from fastapi import APIRouter, Depends

from social_service.api.dependencies import (
    get_chat_interactor,
    get_current_active_user,
    get_room_interactor,
    resolve_acting_user,
)
from social_service.infrastructure import schemas
from social_service.interactors.chat_interactor import ChatInteractor
from social_service.interactors.room_interactor import RoomInteractor

router = APIRouter()


@router.post("/create-group", response_model=schemas.Chat)
async def create_group(
    body: schemas.GroupCreate,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    admin_id = resolve_acting_user(body.admin_id, current_user)
    return await chat_interactor.create_group(admin_id, body)


@router.post("/add-member", response_model=schemas.StatusMessage)
async def add_member(
    body: schemas.GroupMemberUpdate,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.add_member(
        body.group_id, body.member_id, current_user.id
    )


@router.post("/remove-member", response_model=schemas.StatusMessage)
async def remove_member(
    body: schemas.GroupMemberUpdate,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.remove_member(
        body.group_id, body.member_id, current_user.id
    )


@router.post("/my-groups", response_model=List[schemas.Chat])
async def my_groups(
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.my_groups(current_user.id)


@router.post("/update-profile", response_model=schemas.Chat)
async def update_profile(
    body: schemas.GroupProfileUpdate,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.update_group_profile(body, current_user.id)


@router.post("/pin-message", response_model=schemas.PinResponse)
async def pin_message(
    body: schemas.PinRequest,
    room_interactor: RoomInteractor = Depends(get_room_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    await room_interactor.set_pin(
        body.chat_id, body.message_id, current_user.id, body.action
    )
    return schemas.PinResponse(message_id=body.message_id, action=body.action)


@router.post("/exit", response_model=schemas.StatusMessage)
async def exit_group(
    body: schemas.GroupRef,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.exit_group(body.group_id, current_user.id)
