"""
Health check endpoint.

A liveness check for load balancers and orchestrators. It answers as long
as the process is serving HTTP and deliberately does not touch storage,
so a misconfigured or unreachable backend never fails it.
"""

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse

router = APIRouter()

HEALTH_MESSAGE = "🔒 Gardiyan is on duty and the prison is secure! 👮‍♂️"


@router.get(
    "",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> PlainTextResponse:
    """Liveness check - is the process alive?"""
    return PlainTextResponse(HEALTH_MESSAGE, status_code=status.HTTP_200_OK)
