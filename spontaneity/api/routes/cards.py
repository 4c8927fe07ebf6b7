import math
from typing import Any

from fastapi import APIRouter, Depends, Query, Request

from spontaneity.core.auth import read_json_body, require_tenant
from spontaneity.core.config import settings
from spontaneity.core.errors import ValidationAppError
from spontaneity.core.rate_limit import enforce_rate_limit
from spontaneity.core.services import get_orchestrator
from spontaneity.schemas.cards import SpontaneousCardsResponse
from spontaneity.services.orchestrator import AggregationOrchestrator
from spontaneity.services.rate_limiter import RateLimitOperation
from spontaneity.services.tenant_resolver import TenantIdentity

router = APIRouter(tags=["Spontaneous"])

_card_limits = enforce_rate_limit(
    RateLimitOperation.REQUESTS,
    RateLimitOperation.REQUESTS_HOUR,
    RateLimitOperation.AI_EVENTS,
)


def parse_coordinates(lat: Any, lng: Any) -> tuple[float, float]:
    """Parse and range-check a coordinate pair from query or body values.

    Raises:
        ValidationAppError: If either value is missing, non-numeric or out of range.
    """
    try:
        lat_value = float(lat)
        lng_value = float(lng)
    except (TypeError, ValueError) as exc:
        raise ValidationAppError(
            code="invalid_coordinates",
            message="lat and lng are required numeric query or body fields",
        ) from exc

    if not (math.isfinite(lat_value) and math.isfinite(lng_value)):
        raise ValidationAppError(code="invalid_coordinates", message="lat and lng must be finite numbers")
    if not -90 <= lat_value <= 90 or not -180 <= lng_value <= 180:
        raise ValidationAppError(
            code="invalid_coordinates",
            message="lat must be within [-90, 90] and lng within [-180, 180]",
        )
    return lat_value, lng_value


def _mood(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return settings.app.default_mood


@router.get(
    "/spontaneous-cards",
    response_model=SpontaneousCardsResponse,
    response_model_by_alias=True,
    dependencies=[Depends(_card_limits)],
)
async def get_spontaneous_cards(
    lat: str | None = Query(None, description="Latitude in degrees"),
    lng: str | None = Query(None, description="Longitude in degrees"),
    lon: str | None = Query(None, description="Alias of lng"),
    mood: str | None = Query(None, description="Traveler mood, defaults to 'adventurous'"),
    identity: TenantIdentity = Depends(require_tenant),
    orchestrator: AggregationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Return up to five spontaneous experience cards near a point.

    Raises:
        ValidationAppError: 400 for missing or invalid coordinates.
    """
    lat_value, lng_value = parse_coordinates(lat, lng if lng is not None else lon)
    return await orchestrator.run(identity.tenant_id, lat_value, lng_value, _mood(mood))


@router.post(
    "/spontaneous-cards",
    response_model=SpontaneousCardsResponse,
    response_model_by_alias=True,
    dependencies=[Depends(_card_limits)],
)
async def post_spontaneous_cards(
    request: Request,
    identity: TenantIdentity = Depends(require_tenant),
    orchestrator: AggregationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Body variant: ``{lat, lng, mood, tenantId?, apiKey?}``."""
    body = await read_json_body(request)
    lng = body.get("lng", body.get("lon"))
    lat_value, lng_value = parse_coordinates(body.get("lat"), lng)
    return await orchestrator.run(identity.tenant_id, lat_value, lng_value, _mood(body.get("mood")))
