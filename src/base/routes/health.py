from fastapi import APIRouter

router = APIRouter(tags=["Health"], prefix="")


@router.get("/health")
async def health():
    """
    Liveness probe. Returns 200 OK while the process is serving requests.
    """
    return {"status": "ok"}
