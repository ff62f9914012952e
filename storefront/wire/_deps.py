"""
Route dependencies: the container, rate limits, admin access.
"""

import hmac
from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, Response

from storefront._container import Storefront
from storefront.log import SecurityEvent, log_security_event
from storefront.ratelimit import ADMIN, RateLimit, client_id


def get_storefront(request: Request) -> Storefront:
    return request.app.state.storefront


StorefrontDep = Annotated[Storefront, Depends(get_storefront)]


def get_client_id(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded is None and request.client is not None:
        forwarded = request.client.host
    return client_id(forwarded, request.headers.get("user-agent"))


ClientIdDep = Annotated[str, Depends(get_client_id)]


def rate_limited(
    scope: str,
    limit: RateLimit,
    message: str = "Too many requests. Please wait before trying again.",
) -> Callable[..., Awaitable[None]]:
    """Dependency counting one request against `limit`, keyed by scope and client."""

    async def dependency(
        response: Response,
        storefront: StorefrontDep,
        client: ClientIdDep,
    ) -> None:
        limiter = storefront.limiter
        decision = limiter.check(f"{scope}:{client}", limit)
        if not decision.allowed:
            retry_after = decision.retry_after(limiter.now())
            log_security_event(
                SecurityEvent.RATE_LIMIT_EXCEEDED,
                f"Rate limit exceeded for {scope}",
                client_id=client,
                limit=limit.max_requests,
            )
            raise HTTPException(
                status_code=429,
                detail=message,
                headers={
                    "Retry-After": str(retry_after),
                    "X-RateLimit-Limit": str(limit.max_requests),
                    "X-RateLimit-Remaining": "0",
                },
            )
        response.headers["X-RateLimit-Limit"] = str(limit.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)

    return dependency


async def require_admin(
    request: Request,
    storefront: StorefrontDep,
    client: ClientIdDep,
    x_admin_token: Annotated[str | None, Header()] = None,
) -> None:
    expected = storefront.settings.admin_token
    if not expected:
        raise HTTPException(status_code=403, detail="Admin access is disabled")

    if x_admin_token is None or not hmac.compare_digest(x_admin_token.encode(), expected.encode()):
        log_security_event(
            SecurityEvent.UNAUTHORIZED_ACCESS,
            "Unauthorized admin request",
            client_id=client,
            endpoint=request.url.path,
        )
        raise HTTPException(status_code=401, detail="Unauthorized")

    decision = storefront.limiter.check(f"admin:{client}", ADMIN)
    if not decision.allowed:
        raise HTTPException(
            status_code=429,
            detail="Too many requests. Please wait before trying again.",
            headers={"Retry-After": str(decision.retry_after(storefront.limiter.now()))},
        )


AdminDep = Depends(require_admin)


__all__ = (
    "get_storefront",
    "StorefrontDep",
    "get_client_id",
    "ClientIdDep",
    "rate_limited",
    "require_admin",
    "AdminDep",
)
