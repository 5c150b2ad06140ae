from fastapi import APIRouter

from app.schemas.common import OkResponse

router = APIRouter(prefix="/healthz", tags=["health"])


@router.get(
    "",
    response_model=OkResponse,
    summary="Liveness probe",
    description="Answers as long as the process is up; the backend is not contacted.",
)
async def healthz():
    return OkResponse(ok=True)
