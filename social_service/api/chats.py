# social_service/api/chats.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from social_service.api.dependencies import (
    get_chat_interactor,
    get_current_active_user,
    resolve_acting_user,
)
from social_service.infrastructure import schemas
from social_service.interactors.chat_interactor import ChatInteractor

router = APIRouter()


@router.post("/messages", response_model=List[schemas.Message])
async def chat_messages(
    body: schemas.ChatRef,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.get_chat_messages(body.chat_id, current_user.id)


@router.post("/create-private-chat", response_model=schemas.PrivateChatResponse)
async def create_private_chat(
    body: schemas.PrivateChatCreate,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    if current_user.id not in (body.user_id1, body.user_id2):
        raise HTTPException(
            status_code=403, detail="You can only create chats you take part in"
        )
    return await chat_interactor.create_private_chat(body.user_id1, body.user_id2)


@router.post("/filter-messages", response_model=List[schemas.Message])
async def filter_messages(
    body: schemas.MessageFilter,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.filter_messages(
        body.chat_id, current_user.id, body.year, body.month, body.day
    )


@router.post("/set-auto-delete-setting", response_model=schemas.AutoDeleteSetting)
async def set_auto_delete_setting(
    body: schemas.AutoDeleteSetting,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.set_auto_delete(
        body.chat_id, current_user.id, body.auto_delete_time
    )


@router.post("/get-auto-delete-setting", response_model=schemas.AutoDeleteSetting)
async def get_auto_delete_setting(
    body: schemas.ChatRef,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.get_auto_delete(body.chat_id, current_user.id)


@router.post("/block-user", response_model=schemas.StatusMessage)
async def block_user(
    body: schemas.BlockUpdate,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    user_id = resolve_acting_user(body.user_id, current_user)
    return await chat_interactor.update_block(user_id, body.target_user_id, body.action)


@router.post("/restrict-user", response_model=schemas.StatusMessage)
async def restrict_user(
    body: schemas.RestrictUpdate,
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    user_id = resolve_acting_user(body.user_id, current_user)
    return await chat_interactor.update_restriction(
        user_id, body.target_user_id, body.action
    )


@router.post("/list-blocked-users", response_model=schemas.RelationList)
async def list_blocked_users(
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.list_blocked(current_user.id)


@router.post("/list-restricted-users", response_model=schemas.RelationList)
async def list_restricted_users(
    chat_interactor: ChatInteractor = Depends(get_chat_interactor),
    current_user: schemas.User = Depends(get_current_active_user),
):
    return await chat_interactor.list_restricted(current_user.id)
