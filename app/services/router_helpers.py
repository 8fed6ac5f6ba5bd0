from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.config import settings
from app.core.security import decrypt_router_password
from app.db.models import Router
from app.services.mikrotik_api import MikroTikAPI


@dataclass(frozen=True)
class RouterCredentials:
    router_id: int
    name: str
    host: str
    port: int
    username: str
    password: str
    use_ssl: bool = False

    @property
    def pool_key(self) -> tuple:
        # Edited credentials must not reuse sockets logged in with the old ones
        return (self.router_id, self.host, self.port, self.username, self.password, self.use_ssl)


async def get_router_by_id(
    db: AsyncSession,
    router_id: int,
    tenant_id: int | None = None,
    is_super_admin: bool = False
) -> Router | None:
    stmt = select(Router).where(Router.id == router_id)
    if not is_super_admin:
        stmt = stmt.where(Router.tenant_id == tenant_id)
    res = await db.execute(stmt)
    return res.scalar_one_or_none()


def router_credentials(router: Router) -> RouterCredentials:
    """Raises PasswordDecryptionError when the stored password cannot be read."""
    return RouterCredentials(
        router_id=router.id,
        name=router.name,
        host=router.ip_address,
        port=router.port or 8728,
        username=router.username,
        password=decrypt_router_password(router.password),
        use_ssl=bool(router.use_ssl),
    )


def connect_to_router(
    credentials: RouterCredentials,
    connect_timeout: float | None = None,
    timeout: float | None = None
) -> MikroTikAPI:
    """Open and log in a client for the given router. Blocking; run it in a thread."""
    api = MikroTikAPI(
        credentials.host,
        credentials.username,
        credentials.password,
        credentials.port,
        timeout=timeout if timeout is not None else settings.MIKROTIK_TIMEOUT,
        connect_timeout=connect_timeout if connect_timeout is not None else settings.MIKROTIK_CONNECT_TIMEOUT,
        use_ssl=credentials.use_ssl,
    )
    api.connect()
    return api
