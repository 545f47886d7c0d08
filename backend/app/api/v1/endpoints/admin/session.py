"""
Staff session endpoints: credential check, logout, heartbeat and the online list.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_activity_ledger, get_presence_tracker
from app.core.database import get_db
from app.core.exceptions import AuthenticationError
from app.core.logging_config import logger
from app.core.rate_limiter import staff_verify_rate_limit
from app.core.security import StaffDirectory, StaffIdentity
from app.models.activity_log import ActivityAction
from app.modules.auth.dependencies import get_current_staff, get_staff_directory
from app.schemas.admin import (
    StaffVerifyRequest,
    StaffIdentityResponse,
    OnlineStaffResponse,
    OnlineStaffListResponse,
    SessionAck,
)
from app.services.activity_ledger import ActivityLedger
from app.services.presence_tracker import PresenceTracker

router = APIRouter()


@router.post("/verify", response_model=StaffIdentityResponse)
@staff_verify_rate_limit()
async def verify_staff(
    request: Request,
    payload: StaffVerifyRequest,
    db: AsyncSession = Depends(get_db),
    directory: StaffDirectory = Depends(get_staff_directory),
    presence: PresenceTracker = Depends(get_presence_tracker),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    """Exchange a staff secret for the identity it maps to and mark the staff member online"""
    identity = directory.resolve(payload.password)
    if identity is None:
        logger.log_auth_event("login", success=False, reason="unknown credential")
        raise AuthenticationError("Invalid password")

    logger.log_auth_event("login", success=True, staff_label=identity.label)
    presence.mark_online(identity)
    await ledger.append(db, identity, ActivityAction.LOGIN, request=request)

    return StaffIdentityResponse(**identity.to_dict())


@router.post("/logout", response_model=SessionAck)
async def logout(
    request: Request,
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    presence: PresenceTracker = Depends(get_presence_tracker),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    presence.mark_offline(staff.label)
    await ledger.append(db, staff, ActivityAction.LOGOUT, request=request)
    logger.log_auth_event("logout", success=True, staff_label=staff.label)
    return SessionAck(message="Logged out")


@router.post("/session-ended", response_model=SessionAck)
async def session_ended(
    request: Request,
    db: AsyncSession = Depends(get_db),
    staff: StaffIdentity = Depends(get_current_staff),
    presence: PresenceTracker = Depends(get_presence_tracker),
    ledger: ActivityLedger = Depends(get_activity_ledger),
):
    """Dashboard closed without logging out"""
    presence.mark_offline(staff.label)
    await ledger.append(db, staff, ActivityAction.SESSION_ENDED, request=request)
    return SessionAck(message="Session ended")


@router.post("/heartbeat", response_model=SessionAck)
async def heartbeat(
    staff: StaffIdentity = Depends(get_current_staff),
    presence: PresenceTracker = Depends(get_presence_tracker),
):
    presence.heartbeat(staff)
    return SessionAck(message="ok")


@router.get("/online", response_model=OnlineStaffListResponse)
async def list_online_staff(
    staff: StaffIdentity = Depends(get_current_staff),
    presence: PresenceTracker = Depends(get_presence_tracker),
):
    """Staff seen within the presence window"""
    records = presence.list_online()
    return OnlineStaffListResponse(
        items=[
            OnlineStaffResponse(
                role=r.role,
                label=r.label,
                color=r.color,
                last_seen=r.last_seen,
                login_time=r.login_time,
            )
            for r in records
        ],
        count=len(records),
    )
