from fastapi import APIRouter
from app.api.v1.endpoints import auth, wallet, deals, admin, notifications

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
router.include_router(deals.router, prefix="/deals", tags=["deals"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
