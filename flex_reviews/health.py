# flex_reviews/health.py
from fastapi import APIRouter

from flex_reviews.services.dates import utc_now_iso

router = APIRouter()


@router.get("/api/health")
@router.get("/api/healthz")
def health():
    return {"service": "flex-reviews-backend", "status": "ok", "time": utc_now_iso()}
