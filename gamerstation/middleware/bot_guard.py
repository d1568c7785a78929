"""
Bot guard for routes that spend upstream quota.

Crawler requests get a cheap 200 instead of triggering Riot / hiscores work.
"""

from fastapi import Request

from calc_core.utils.identity import is_likely_bot_user_agent
from gamerstation.core.config import flag


def wants_json(request: Request) -> bool:
    accept = request.headers.get("accept") or ""
    return accept == "" or "application/json" in accept or "*/*" in accept


def is_bot_request(request: Request, require_json: bool = False) -> bool:
    """
    True when the caller looks like a crawler (FEATURE_BOT_GUARD on).

    Args:
        require_json: also treat non-JSON ``Accept`` headers as bot traffic.
    """
    if not flag("FEATURE_BOT_GUARD"):
        return False
    if is_likely_bot_user_agent(request.headers.get("user-agent")):
        return True
    return require_json and not wants_json(request)
