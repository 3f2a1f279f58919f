# shopcart/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from shopcart.data.database import get_db
from shopcart.domain.errors import NotFoundError
from shopcart.domain.schemas import MAX_ID, OrderOut
from shopcart.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session):
    return OrderService(db)


@router.get("", response_model=List[OrderOut])
def list_orders(user_id: int = Query(..., gt=0, le=MAX_ID), db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.list_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int = Path(..., gt=0, le=MAX_ID),
    user_id: int = Query(..., gt=0, le=MAX_ID),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.get_order(order_id, user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
