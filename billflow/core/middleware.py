from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from typing import Callable, Iterable
import logging

from billflow.core.config import settings

logger = logging.getLogger(__name__)

def resolve_tenant(headers, header_names: Iterable[str], fallback: str) -> str:
    """First non-empty identity header set by the reverse proxy, else the single-user fallback."""
    for name in header_names:
        value = (headers.get(name) or "").strip()
        if value:
            return value
    return fallback

class TenantMiddleware(BaseHTTPMiddleware):
    """
    Derives the tenant from trusted reverse-proxy headers (Authelia, Authentik,
    generic forwarders) and exposes it as request.state.tenant_id.
    """

    def __init__(self, app, header_names: Iterable[str] = None, fallback: str = None):
        super().__init__(app)
        self.header_names = list(header_names or settings.TENANT_HEADERS)
        self.fallback = fallback or settings.DEFAULT_TENANT

    async def dispatch(self, request: Request, call_next: Callable):
        tenant_id = resolve_tenant(request.headers, self.header_names, self.fallback)
        request.state.tenant_id = tenant_id

        # Static assets are too noisy to log
        if request.url.path.startswith(settings.API_PREFIX):
            logger.info(f"{request.method} {request.url.path} user={tenant_id}")

        return await call_next(request)

def get_tenant_id(request: Request) -> str:
    return getattr(request.state, "tenant_id", settings.DEFAULT_TENANT)
