"""
Caller identity resolution.

Authentication is performed upstream; this module maps the headers the auth
layer forwards to an Identity. Anonymous callers are keyed by a salted hash of
their client IP.

X-User-Id and X-Subscription-Status are trusted as-is, so they must be set
(or stripped from client requests) by the authenticating proxy in front of
this service. A client that can reach the service directly can claim any
account and the subscriber tier.

Dependencies: hashlib, flowchart_ai.configs
System role: Identity classification for the admission controller
"""

import hashlib
from collections.abc import Mapping

from flowchart_ai.configs.quota import QuotaSettings
from flowchart_ai.models.usage import Identity, IdentityClass

USER_ID_HEADER = "x-user-id"
SUBSCRIPTION_HEADER = "x-subscription-status"

# Statuses that grant the paid tier; canceled_at_period_end keeps it until the period ends.
ACTIVE_SUBSCRIPTION_STATUSES = frozenset({"active", "trialing", "canceled_at_period_end"})

FALLBACK_IP = "127.0.0.1"


def client_ip(headers: Mapping[str, str], peer_host: str | None = None) -> str:
    """
    Best-effort client IP.

    Order: first X-Forwarded-For hop, X-Real-IP, X-Remote-Addr, socket peer,
    then 127.0.0.1.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    for header in ("x-real-ip", "x-remote-addr"):
        value = headers.get(header)
        if value:
            return value.strip()
    return peer_host or FALLBACK_IP


def hash_fingerprint(ip: str, secret: str) -> str:
    return hashlib.sha256(f"{ip}{secret}".encode("utf-8")).hexdigest()


def resolve_identity(
    headers: Mapping[str, str],
    settings: QuotaSettings,
    peer_host: str | None = None,
) -> Identity:
    """
    Classify a caller.

    Args:
        headers: Request headers (case-insensitive mapping)
        settings: Quota settings (fingerprint secret)
        peer_host: Socket peer address

    Returns:
        Identity: anonymous, authenticated_free or authenticated_subscriber
    """
    user_id = (headers.get(USER_ID_HEADER) or "").strip()
    if not user_id:
        ip = client_ip(headers, peer_host)
        return Identity(
            identity_class=IdentityClass.ANONYMOUS,
            key=hash_fingerprint(ip, settings.fingerprint_secret),
        )

    status = (headers.get(SUBSCRIPTION_HEADER) or "").strip().lower()
    identity_class = (
        IdentityClass.AUTHENTICATED_SUBSCRIBER
        if status in ACTIVE_SUBSCRIPTION_STATUSES
        else IdentityClass.AUTHENTICATED_FREE
    )
    return Identity(identity_class=identity_class, key=user_id, user_id=user_id)
