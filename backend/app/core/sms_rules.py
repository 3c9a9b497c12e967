"""SMS Rules - phone number format, daily quota and opt-in/opt-out keywords."""

import re

E164_PATTERN = re.compile(r"^\+[1-9]\d{1,14}$")
MAX_SMS_PER_DAY = 5

OPT_OUT_KEYWORDS = frozenset({"STOP", "UNSUBSCRIBE", "CANCEL", "END", "QUIT"})
OPT_IN_KEYWORDS = frozenset({"START", "YES", "UNSTOP"})

EMPTY_TWIML = '<?xml version="1.0" encoding="UTF-8"?><Response></Response>'


def is_valid_phone_number(value: str | None) -> bool:
    return bool(value) and E164_PATTERN.match(value) is not None


def sms_opt_in_from_keyword(body: str | None) -> bool | None:
    """True for opt-in keywords, False for opt-out, None when the message is neither."""
    keyword = (body or "").strip().upper()
    if keyword in OPT_OUT_KEYWORDS:
        return False
    if keyword in OPT_IN_KEYWORDS:
        return True
    return None


def remaining_sms_quota(sent_today: int) -> int:
    return max(0, MAX_SMS_PER_DAY - sent_today)
