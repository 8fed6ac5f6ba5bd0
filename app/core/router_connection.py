"""
Per-request router connection.

resolve_router looks up the router named in the path for the caller's tenant
and decrypts its credentials; router_connection then opens (or borrows) a
logged-in client and hands it to the route. The client is always returned to
the pool or closed once the response is produced.
"""
import asyncio
import logging

from fastapi import Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.deps import CurrentUser, require_dashboard_user
from app.core.errors import DashboardError, DashboardNotFoundError, RouterUnavailableError
from app.core.security import PasswordDecryptionError
from app.db.database import get_db
from app.services.connection_pool import connection_pool
from app.services.mikrotik_api import MikroTikAPI, RouterOSError
from app.services.router_helpers import RouterCredentials, get_router_by_id, router_credentials

logger = logging.getLogger(__name__)


async def resolve_router(
    router_id: int,
    user: CurrentUser = Depends(require_dashboard_user),
    db: AsyncSession = Depends(get_db),
) -> RouterCredentials:
    router = await get_router_by_id(db, router_id, user.tenant_id, user.is_super_admin)
    if not router:
        raise DashboardNotFoundError(
            "Router not found",
            f"Router {router_id} does not exist or belongs to another tenant",
        )

    try:
        return router_credentials(router)
    except PasswordDecryptionError as e:
        logger.error(f"Could not decrypt password for router {router_id}: {e}")
        raise DashboardError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Could not decrypt router password. Please check settings.",
            str(e),
        )


async def router_connection(credentials: RouterCredentials = Depends(resolve_router)):
    try:
        api: MikroTikAPI = await asyncio.to_thread(connection_pool.checkout, credentials)
    except RouterOSError as e:
        logger.error(f"Could not connect to router {credentials.name} ({credentials.host}:{credentials.port}): {e}")
        raise RouterUnavailableError(f"Could not connect to router: {credentials.name}", str(e))

    reusable = True
    try:
        yield api
    except Exception:
        # a failed operation may leave unread replies on the socket
        reusable = False
        raise
    finally:
        connection_pool.checkin(credentials, api, reusable=reusable)
