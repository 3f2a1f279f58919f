#shopcart/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from shopcart.data.database import get_db
from shopcart.domain.errors import (
    EmptyCartError,
    InsufficientStockError,
    NotFoundError,
    OutOfRangeError,
    TransactionAbortError,
)
from shopcart.domain.schemas import (
    CartOut,
    CartTotalOut,
    CheckoutOut,
    ItemIn,
    MAX_ID,
    QuantityIn,
)
from shopcart.services.cart_service import CartService
from shopcart.services.checkout_service import CheckoutService

router = APIRouter(prefix="/cart", tags=["cart"])

BUSY_MESSAGE = "Cart is busy, please try again"


def get_service(db: Session):
    return CartService(db)


@router.get("", response_model=CartOut)
def get_cart(user_id: int = Query(..., gt=0, le=MAX_ID), db: Session = Depends(get_db)):
    svc = get_service(db)
    return svc.get_cart(user_id)


@router.get("/total", response_model=CartTotalOut)
def get_total(user_id: int = Query(..., gt=0, le=MAX_ID), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        return {"user_id": user_id, "total": svc.get_total(user_id)}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/items", response_model=CartOut, status_code=201)
def add_item(
    payload: ItemIn,
    user_id: int = Query(..., gt=0, le=MAX_ID),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.add_item(user_id, payload.product_id, payload.quantity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OutOfRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransactionAbortError:
        raise HTTPException(status_code=503, detail=BUSY_MESSAGE)


@router.patch("/items/{product_id}", response_model=CartOut)
def update_item(
    payload: QuantityIn,
    product_id: int = Path(..., gt=0, le=MAX_ID),
    user_id: int = Query(..., gt=0, le=MAX_ID),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        return svc.update_item(user_id, product_id, payload.quantity)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except OutOfRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except TransactionAbortError:
        raise HTTPException(status_code=503, detail=BUSY_MESSAGE)


@router.delete("/items/{product_id}", status_code=204)
def remove_item(
    product_id: int = Path(..., gt=0, le=MAX_ID),
    user_id: int = Query(..., gt=0, le=MAX_ID),
    db: Session = Depends(get_db),
):
    svc = get_service(db)
    try:
        svc.remove_item(user_id, product_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransactionAbortError:
        raise HTTPException(status_code=503, detail=BUSY_MESSAGE)
    return Response(status_code=204)


@router.delete("", status_code=204)
def clear_cart(user_id: int = Query(..., gt=0, le=MAX_ID), db: Session = Depends(get_db)):
    svc = get_service(db)
    try:
        svc.clear(user_id)
    except TransactionAbortError:
        raise HTTPException(status_code=503, detail=BUSY_MESSAGE)
    return Response(status_code=204)


@router.post("/checkout", response_model=CheckoutOut, status_code=201)
def checkout(user_id: int = Query(..., gt=0, le=MAX_ID), db: Session = Depends(get_db)):
    """
    Converts the user's cart into an order.
    Either the order exists, stock is reduced and the cart is empty,
    or nothing changed at all.
    """
    svc = CheckoutService(db)
    try:
        order = svc.checkout(user_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except EmptyCartError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OutOfRangeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InsufficientStockError as e:
        return JSONResponse(
            status_code=409,
            content={
                "message": "Insufficient stock",
                "product_id": e.product_id,
                "requested": e.requested,
                "available": e.available,
            },
        )
    except TransactionAbortError:
        raise HTTPException(status_code=503, detail="Checkout could not be completed, please try again")

    return {
        "order_id": order.id,
        "total": order.total,
        "message": f"Order created, total {order.total}",
    }
