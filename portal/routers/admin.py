# portal/routers/admin.py
"""
Admin Endpoints

Agency-side client management: client list and detail, account deletion,
webhook re-delivery, chat oversight, milestones and gift recommendations.
Every endpoint requires the admin role.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy import case, func
from sqlalchemy.orm import Session
from typing import Any, Dict, Optional
from uuid import UUID
import logging

from portal.config import Settings
from portal.database import get_db
from portal.dependencies import (
    PaginationParams, get_generator, get_notifier, get_settings, require_admin
)
from portal.errors import InvalidArgument, NotFoundError
from portal.models.activity import ActivityLog, ActivityType
from portal.models.chat import ChatMessage
from portal.models.client import ClientProfile
from portal.models.document import GeneratedDocument
from portal.models.link import Link
from portal.models.notification import NotificationChannel
from portal.models.user import User
from portal.schemas.admin import (
    AdminChatListResponse,
    AdminChatTranscriptResponse,
    AdminClientDetail,
    AdminClientDetailResponse,
    AdminClientListItem,
    AdminClientListResponse,
    ChatStats,
    ClientChatSummary,
    DeleteClientResponse,
    DeletedClient,
    GiftRecommendationRequest,
    GiftRecommendationResponse,
    ResendWebhookResponse
)
from portal.schemas.chat import ChatFlagUpdate, ChatMessageUpdateResponse
from portal.schemas.milestone import (
    MilestoneCreate,
    MilestoneDetailResponse,
    MilestoneListResponse,
    MilestoneSuggestRequest,
    MilestoneSuggestResponse,
    MilestoneUpdate
)
from portal.services.activity import record_activity
from portal.services.chat import ChatSession
from portal.services.gifts import GiftAdvisor
from portal.services.milestones import MilestoneService
from portal.services.notifications import Notifier, onboarding_payload
from portal.services.profiles import ProfileStore

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(require_admin)])

RECENT_ACTIVITY_LIMIT = 50


# =============================================================================
# CLIENTS
# =============================================================================

@router.get("/clients", response_model=AdminClientListResponse)
async def list_clients(
    search: Optional[str] = Query(None, description="Match company name or client reference"),
    pagination: PaginationParams = Depends(),
    db: Session = Depends(get_db)
):
    """
    List clients, newest first.

    Supports pagination via query parameters:
    - page: Page number (default: 1)
    - page_size: Items per page (default: 20, max: 100)
    """
    profiles, total = ProfileStore(db).list(skip=pagination.skip, limit=pagination.limit, search=search)

    document_counts = dict(
        db.query(GeneratedDocument.client_id, func.count(GeneratedDocument.document_id))
          .filter(GeneratedDocument.client_id.in_([p.client_id for p in profiles]))
          .group_by(GeneratedDocument.client_id)
          .all()
    ) if profiles else {}

    clients = []
    for profile in profiles:
        item = AdminClientListItem.model_validate(profile)
        item.email = profile.user.email
        item.document_count = document_counts.get(profile.client_id, 0)
        clients.append(item)

    logger.info(f"Found {total} clients, returning page {pagination.page}")
    return AdminClientListResponse(
        clients=clients,
        total=total,
        page=pagination.page,
        page_size=pagination.page_size
    )


@router.get("/clients/{client_id}", response_model=AdminClientDetailResponse)
async def get_client(
    client_id: UUID,
    db: Session = Depends(get_db)
):
    """Full onboarding answers grouped by survey step, shared links and recent activity."""
    profile = ProfileStore(db).require(client_id)

    links = db.query(Link)\
              .filter(Link.client_id == client_id)\
              .order_by(Link.created_at.desc())\
              .all()
    activities = db.query(ActivityLog)\
                   .filter(ActivityLog.client_id == client_id)\
                   .order_by(ActivityLog.created_at.desc())\
                   .limit(RECENT_ACTIVITY_LIMIT)\
                   .all()

    return AdminClientDetailResponse(
        client=AdminClientDetail.from_profile(profile),
        links=links,
        activity_logs=activities
    )


@router.delete("/clients/{client_id}", response_model=DeleteClientResponse)
async def delete_client(
    client_id: UUID,
    db: Session = Depends(get_db)
):
    """
    Delete a client account.

    Removes the profile, its documents, chat messages, milestones, links,
    activity logs and notifications, and the owning user.
    """
    deleted = ProfileStore(db).delete(client_id)
    logger.info(f"🗑️  Client {deleted['unique_client_id']} ({deleted['company_name']}) deleted")
    return DeleteClientResponse(
        message="Client account deleted",
        deleted=DeletedClient(**deleted)
    )


@router.post("/clients/{client_id}/resend-webhook", response_model=ResendWebhookResponse)
async def resend_webhook(
    client_id: UUID,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Re-deliver the onboarding webhook now.

    A new outbox row is written and delivered inline; the response reports
    whether delivery succeeded rather than failing the request.

    Raises:
        400: No webhook URL configured
        404: Unknown client
    """
    if not settings.N8N_WEBHOOK_URL:
        raise InvalidArgument("N8N webhook URL not configured")

    profile = ProfileStore(db).require(client_id)

    notification = notifier.enqueue(
        db, NotificationChannel.WEBHOOK, "onboarding_completed",
        settings.N8N_WEBHOOK_URL,
        onboarding_payload(profile, profile.user.email, resent=True),
        client_id=profile.client_id,
    )
    record_activity(
        db, profile.client_id, ActivityType.N8N_WEBHOOK_RESENT,
        "Onboarding webhook re-sent by admin",
        {"notification_id": str(notification.notification_id)},
    )
    db.commit()

    delivered = await notifier.deliver_notification(db, notification)
    db.refresh(notification)

    return ResendWebhookResponse(
        delivered=delivered,
        message="Webhook delivered" if delivered else "Webhook delivery failed",
        notification=notification
    )


# =============================================================================
# LINKS
# =============================================================================

@router.delete("/links/{link_id}")
async def delete_link(
    link_id: UUID,
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    link = db.query(Link).filter(Link.link_id == link_id).first()
    if not link:
        raise NotFoundError("Link not found")

    db.delete(link)
    db.commit()
    logger.info(f"🗑️  Link {link_id} deleted")
    return {"success": True, "message": "Link deleted"}


# =============================================================================
# CHATS
# =============================================================================

@router.get("/chats")
async def list_chats(
    client_id: Optional[UUID] = Query(None),
    db: Session = Depends(get_db),
    generator = Depends(get_generator)
):
    """
    Chat oversight.

    Without ``client_id``: message statistics for every client that has
    chatted, most recent conversation first. With ``client_id``: that
    client's full transcript.
    """
    if client_id:
        profile = ProfileStore(db).require(client_id)
        messages = ChatSession(db, generator).transcript(client_id)
        return AdminChatTranscriptResponse(
            client=profile,
            messages=messages,
            total_messages=len(messages)
        )

    rows = db.query(
        ChatMessage.client_id,
        func.count(ChatMessage.message_id),
        func.sum(case((ChatMessage.role == "user", 1), else_=0)),
        func.sum(case((ChatMessage.role == "assistant", 1), else_=0)),
        func.sum(case((ChatMessage.flagged == True, 1), else_=0)),
        func.max(ChatMessage.created_at)
    ).group_by(ChatMessage.client_id).all()

    stats_by_client = {
        row[0]: ChatStats(
            total_messages=row[1],
            user_messages=row[2] or 0,
            assistant_messages=row[3] or 0,
            flagged_messages=row[4] or 0,
            last_message_at=row[5]
        )
        for row in rows
    }

    profiles = db.query(ClientProfile, User.email)\
                 .join(User, ClientProfile.user_id == User.user_id)\
                 .filter(ClientProfile.client_id.in_(list(stats_by_client)))\
                 .all() if stats_by_client else []

    summaries = [
        ClientChatSummary(
            client_id=profile.client_id,
            unique_client_id=profile.unique_client_id,
            company_name=profile.company_name,
            email=email,
            chat_stats=stats_by_client[profile.client_id]
        )
        for profile, email in profiles
    ]
    summaries.sort(key=lambda s: s.chat_stats.last_message_at, reverse=True)

    return AdminChatListResponse(
        clients=summaries,
        total_clients_with_chats=len(summaries),
        total_messages=sum(s.chat_stats.total_messages for s in summaries)
    )


@router.patch("/chats/messages/{message_id}", response_model=ChatMessageUpdateResponse)
async def flag_chat_message(
    message_id: UUID,
    request: ChatFlagUpdate,
    db: Session = Depends(get_db)
):
    """Set or clear the review flag on a chat message."""
    message = db.query(ChatMessage).filter(ChatMessage.message_id == message_id).first()
    if not message:
        raise NotFoundError("Message not found")

    message.flagged = request.flagged
    db.commit()
    db.refresh(message)

    logger.info(f"🚩 Message {message_id} flagged={request.flagged}")
    return ChatMessageUpdateResponse(message=message)


# =============================================================================
# MILESTONES
# =============================================================================

@router.get("/milestones", response_model=MilestoneListResponse)
async def list_milestones(
    client_id: UUID = Query(...),
    db: Session = Depends(get_db)
):
    """A client's milestones in display order."""
    ProfileStore(db).require(client_id)
    return MilestoneListResponse(milestones=MilestoneService(db).list(client_id))


@router.post("/milestones", response_model=MilestoneDetailResponse)
async def create_milestone(
    request: MilestoneCreate,
    db: Session = Depends(get_db)
):
    milestone = MilestoneService(db).create(
        request.client_id,
        request.title,
        description=request.description,
        due_date=request.due_date,
        ai_suggested=request.ai_suggested
    )
    return MilestoneDetailResponse(milestone=milestone)


@router.patch("/milestones", response_model=MilestoneDetailResponse)
async def update_milestone(
    request: MilestoneUpdate,
    db: Session = Depends(get_db)
):
    """Partial update; only the fields present in the body change."""
    fields = request.model_dump(exclude_unset=True, exclude={"id"})
    milestone = MilestoneService(db).update(request.id, fields)
    return MilestoneDetailResponse(milestone=milestone)


@router.delete("/milestones")
async def delete_milestone(
    id: UUID = Query(...),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    MilestoneService(db).delete(id)
    return {"success": True, "message": "Milestone deleted"}


@router.post("/milestones/suggest", response_model=MilestoneSuggestResponse)
async def suggest_milestones(
    request: MilestoneSuggestRequest,
    db: Session = Depends(get_db),
    generator = Depends(get_generator)
):
    """
    Suggest onboarding milestones for a client.

    With ``apply`` set the suggestions are also inserted, after any
    existing milestones.
    """
    result = await MilestoneService(db, generator).suggest(request.client_id, apply=request.apply)
    return MilestoneSuggestResponse(
        suggestions=result["suggestions"],
        milestones=result["milestones"]
    )


# =============================================================================
# GIFTS
# =============================================================================

@router.post("/gift-recommendation", response_model=GiftRecommendationResponse)
async def recommend_gift(
    request: GiftRecommendationRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    generator = Depends(get_generator),
    notifier: Notifier = Depends(get_notifier)
):
    """Recommend a welcome gift for a client; the recommendation is emailed to the admin."""
    result = await GiftAdvisor(db, generator, notifier).recommend(request.client_id)
    background_tasks.add_task(notifier.deliver, result["notification_id"])
    return GiftRecommendationResponse(recommendation=result["recommendation"])
