"""Matches and chat messages API router."""

from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from gymbuddy.database import get_db
from gymbuddy.models import User
from gymbuddy.routers.auth import get_current_user
from gymbuddy.schemas import (
    ApiResponse,
    MatchMessages,
    MatchSummary,
    MessageCreate,
    MessageResponse,
)
from gymbuddy.services.match_service import MatchService
from gymbuddy.services.notification_service import PushDispatcher, get_push_dispatcher
from gymbuddy.sockets.chat_socket import ConnectionManager, get_connection_manager

router = APIRouter(prefix="/matches", tags=["matches"])


@router.get("", response_model=ApiResponse[List[MatchSummary]])
def list_matches(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List the caller's matches with the other user and last message."""
    return ApiResponse(data=MatchService(db).list_matches(user))


@router.get("/{match_id}/messages", response_model=ApiResponse[MatchMessages])
def list_messages(
    match_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Get a match summary and its full message history."""
    return ApiResponse(data=MatchService(db).list_messages(match_id, user))


@router.post("/{match_id}/messages", response_model=ApiResponse[MessageResponse], status_code=201)
async def send_message(
    match_id: int,
    payload: MessageCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    dispatcher: PushDispatcher = Depends(get_push_dispatcher),
    connections: ConnectionManager = Depends(get_connection_manager),
):
    """
    Send a message in a match.
    
    The message is stored and broadcast to the open chat room; the push
    to the other user is queued after the response.
    """
    service = MatchService(db)
    match, message = service.create_message(match_id, user, payload.text)
    response = MessageResponse.model_validate(message)
    
    await connections.emit_to_room(
        connections.chat_room(match.id),
        "new_message",
        response.model_dump(mode="json", by_alias=True),
    )
    background_tasks.add_task(dispatcher.dispatch, service.message_push(match, user, message))
    
    return ApiResponse(data=response)
