# storefront_core/api/routers/healthz.py
from fastapi import APIRouter, Depends

from storefront_core.api.deps import get_resolver
from storefront_core.core.exceptions import ServiceUnavailableError
from storefront_core.core.resolver import Resolver
from storefront_core.schemas.common import OkResponse

router = APIRouter(tags=["health"])


@router.get(
    "/healthz",
    response_model=OkResponse,
    summary="Liveness probe",
    description="Returns 200 without touching any collaborator",
)
async def healthz():
    return {"ok": True}


@router.get(
    "/readyz",
    response_model=OkResponse,
    summary="Readiness probe",
    description="Resolves every registered collaborator; 503 if one cannot be built",
)
def readyz(resolver: Resolver = Depends(get_resolver)):
    for key in resolver.keys():
        try:
            resolver.resolve(key)
        except Exception as exc:
            raise ServiceUnavailableError(
                f"Collaborator not ready: {key}", service=key, cause=exc
            ) from exc
    return {"ok": True}
