from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.services.payment_bridge import handle_payment_webhook

router = APIRouter()


@router.post("/payment")
async def payment_webhook(request: Request, db: Session = Depends(get_db)):
    body = await request.body()
    row = handle_payment_webhook(db, body, request.headers.get("x-paystack-signature"))
    if row is None:
        return {"received": True}
    return {"received": True, "transaction_id": row.id}
