from fastapi import APIRouter, Depends, Request

from spontaneity.core.auth import extract_credentials, require_tenant
from spontaneity.core.rate_limit import enforce_rate_limit
from spontaneity.schemas.cards import TenantResolveResponse
from spontaneity.services.rate_limiter import RateLimitOperation
from spontaneity.services.tenant_resolver import TenantIdentity

router = APIRouter(tags=["Tenant"])

_resolve_limits = [Depends(enforce_rate_limit(RateLimitOperation.REQUESTS))]


async def _describe_identity(request: Request, identity: TenantIdentity) -> TenantResolveResponse:
    """Secrets are never echoed; ``sources`` only reports which surfaces carried a value."""
    credentials = await extract_credentials(request)
    return TenantResolveResponse(
        tenant_id=identity.tenant_id,
        source=identity.source,
        sources=credentials.describe_sources(),
    )


@router.get(
    "/tenant/resolve",
    response_model=TenantResolveResponse,
    response_model_by_alias=True,
    dependencies=_resolve_limits,
)
async def resolve_tenant(
    request: Request,
    identity: TenantIdentity = Depends(require_tenant),
) -> TenantResolveResponse:
    """Report which tenant the request's credentials resolve to.

    Lets widget and plugin integrations verify their configuration before
    requesting cards.
    """
    return await _describe_identity(request, identity)


@router.post(
    "/tenant/resolve",
    response_model=TenantResolveResponse,
    response_model_by_alias=True,
    dependencies=_resolve_limits,
)
async def resolve_tenant_from_body(
    request: Request,
    identity: TenantIdentity = Depends(require_tenant),
) -> TenantResolveResponse:
    """Same as GET, for integrations that send credentials in a JSON body."""
    return await _describe_identity(request, identity)
