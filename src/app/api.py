from fastapi import APIRouter

from app.modules.documents import router as documents_router
from app.modules.documents import verify_router
from app.modules.notifications import router as notifications_router
from app.modules.transfer_requests import router as transfer_requests_router

api_router = APIRouter()

api_router.include_router(documents_router, prefix="/documents", tags=["Transfer Documents"])

api_router.include_router(verify_router, prefix="/verify", tags=["Verification"])

api_router.include_router(
    transfer_requests_router, prefix="/transfer-requests", tags=["Transfer Requests"]
)

api_router.include_router(
    notifications_router, prefix="/notifications", tags=["Notifications"]
)
