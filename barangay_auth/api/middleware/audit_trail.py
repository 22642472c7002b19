# =============================================================================
# BARANGAY AUTH SERVICE - AUDIT TRAIL
# =============================================================================
# File: api/middleware/audit_trail.py
# Description: Route-level audit trail, written after the response is sent
# =============================================================================

from typing import Any, Callable, Dict, Optional
import logging

from fastapi import BackgroundTasks, Request

from barangay_auth.auth.dependencies import AuthContext, get_client_ip
from barangay_auth.auth.repository import AuditLogRepository
from barangay_auth.db.factory import DBFactory
from barangay_auth.utils.helpers import redact_sensitive, safe_json_loads, truncate_string


logger = logging.getLogger(__name__)


async def write_audit_entry(
    request: Request,
    action_type: str,
    snapshot: Dict[str, Any],
) -> None:
    """
    Append one audit entry for the request's authenticated caller.

    Uses its own database session. Errors are logged, never raised: the
    response has already gone out.
    """
    auth: Optional[AuthContext] = getattr(request.state, "auth", None)
    if auth is None:
        return

    try:
        adapter = DBFactory.get_db_adapter()
        async with adapter.get_session() as session:
            await AuditLogRepository(session).create(
                action_type=action_type,
                user_id=auth.user_id,
                resource_type=request.url.path,
                details=snapshot,
                ip_address=get_client_ip(request),
                user_agent=truncate_string(request.headers.get("User-Agent")),
            )
    except Exception as e:
        logger.error(f"Audit trail write failed for {action_type}: {e}")


def audit_trail(action_type: str) -> Callable:
    """
    Build a dependency that records ``action_type`` once the route succeeds.

    Background tasks only run when the route returned normally, so failed
    requests (any raised error) leave no entry.

    Usage:
        @router.post("/logout", dependencies=[Depends(audit_trail("USER_LOGOUT"))])
    """

    async def record(request: Request, background_tasks: BackgroundTasks) -> None:
        body = safe_json_loads(await request.body(), default=None)
        snapshot = redact_sensitive({
            "body": body,
            "query": dict(request.query_params),
        })
        background_tasks.add_task(write_audit_entry, request, action_type, snapshot)

    return record
