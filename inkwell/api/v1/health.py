"""Health check endpoint with database connectivity check."""

from fastapi import APIRouter

from inkwell.api.deps import DbSession
from inkwell.core.config import settings
from inkwell.core.database import check_db_connected
from inkwell.schemas.common import ApiResponse
from inkwell.schemas.health import HealthStatus

router = APIRouter()


@router.get("", response_model=ApiResponse[HealthStatus])
def get_health(db: DbSession) -> ApiResponse[HealthStatus]:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring; a lost database reports "degraded".
    """
    connected = check_db_connected(db)
    return ApiResponse(
        data=HealthStatus(
            status="ok" if connected else "degraded",
            environment=settings.APP_ENV,
            database="connected" if connected else "disconnected",
            api_prefix=settings.API_PREFIX,
        )
    )
