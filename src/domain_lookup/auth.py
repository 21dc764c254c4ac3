"""
Caller identification and shared-secret authentication.
"""

import hmac
from typing import Mapping, Optional

from .config import AuthConfig
from .enums import AuthMode
from .models import AuthDecision, CallerIdentity

# Checked in order; the first present header wins
CLIENT_IP_HEADERS = ("cf-connecting-ip", "x-real-ip")
FORWARDED_FOR_HEADER = "x-forwarded-for"

UNKNOWN_CALLER = "unknown"


def identify_caller(
    headers: Mapping[str, str], credential: Optional[str] = None
) -> CallerIdentity:
    """
    Derive the caller identity from network-layer headers.

    Header names are matched case-insensitively.
    """
    lowered = {key.lower(): value for key, value in headers.items()}

    for name in CLIENT_IP_HEADERS:
        value = (lowered.get(name) or "").strip()
        if value:
            return CallerIdentity(source_ip=value, credential=credential)

    forwarded = lowered.get(FORWARDED_FOR_HEADER) or ""
    first_hop = forwarded.split(",")[0].strip()
    return CallerIdentity(source_ip=first_hop or UNKNOWN_CALLER, credential=credential)


def authenticate(credential: Optional[str], config: AuthConfig) -> AuthDecision:
    """
    Compare a supplied credential with the configured secret.

    Admin and personal modes are both fully exempt from quotas; the mode is
    a deployment setting, not something the caller chooses.
    """
    if not credential or not config.admin_password:
        return AuthDecision(authenticated=False, mode=AuthMode.NONE)

    if not hmac.compare_digest(
        credential.encode("utf-8"), config.admin_password.encode("utf-8")
    ):
        return AuthDecision(authenticated=False, mode=AuthMode.NONE)

    mode = AuthMode.ADMIN if config.admin_mode else AuthMode.PERSONAL
    return AuthDecision(authenticated=True, mode=mode)
