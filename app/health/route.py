from fastapi import APIRouter

from app.vars import SERVICE_NAME

router = APIRouter()


@router.get("/health")
async def health():
    return {"status": "ok", "message": f"{SERVICE_NAME} is operational."}
