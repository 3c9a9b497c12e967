"""Webhook Routes - inbound Twilio SMS (opt-out / opt-in keywords).

Invariants:
    - The response is always the empty TwiML document as application/xml, whatever the body
    - STOP/UNSUBSCRIBE/CANCEL/END/QUIT turn SMS off; START/YES/UNSTOP turn it on
    - With signature validation enabled, a bad X-Twilio-Signature -> 403 before any lookup
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import PermissionDeniedError
from app.core.sms_rules import EMPTY_TWIML, sms_opt_in_from_keyword
from app.infrastructure.database import get_db
from app.infrastructure.sms_gateway import validate_signature
from app.models.user import User
from app.services import notification_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


def _twiml() -> Response:
    return Response(content=EMPTY_TWIML, media_type="application/xml")


@router.post("/twilio")
async def twilio_inbound(request: Request, db: AsyncSession = Depends(get_db)):
    form = await request.form()
    params = {key: str(value) for key, value in form.items()}
    if not validate_signature(
        str(request.url), params, request.headers.get("X-Twilio-Signature"),
    ):
        logger.warning("Rejected Twilio webhook with invalid signature")
        raise PermissionDeniedError("Invalid Twilio signature")

    opt_in = sms_opt_in_from_keyword(params.get("Body"))
    sender = (params.get("From") or "").strip()
    if opt_in is None or not sender:
        return _twiml()

    user = await db.scalar(select(User).where(User.phone_number == sender))
    if user is None:
        logger.info("SMS keyword from unknown number ignored")
        return _twiml()

    preference = await notification_service.find_or_create_preference(db, user.id)
    preference.sms = opt_in
    await db.commit()
    logger.info(f"SMS {'opt-in' if opt_in else 'opt-out'} via keyword", extra={"user_id": user.id})
    return _twiml()
