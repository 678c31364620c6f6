# contest_portal/api/routers/cart.py
from fastapi import APIRouter, Depends, Query

from contest_portal.api.deps import get_cart_service, get_current_user
from contest_portal.api.responses import ok
from contest_portal.data.models.user import UserModel
from contest_portal.domain.schemas import AddToCartIn, CartItemAddedOut, CartOut
from contest_portal.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("")
def get_cart(
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    return ok(CartOut.model_validate(svc.get_cart(user.id)))


@router.post("/add")
def add_to_cart(
    payload: AddToCartIn,
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    result = svc.add_item(
        user_id=user.id,
        competition_id=payload.competition_id,
        registration_type_id=payload.registration_type_id,
        country=payload.country,
        participant_type=payload.participant_type,
        members=[m.model_dump() for m in payload.members],
        agreements=payload.agreements.model_dump(),
        referral_source=payload.referral_source,
    )
    return ok(CartItemAddedOut.model_validate(result), message="Item added to cart")


@router.delete("/remove")
def remove_from_cart(
    item_id: int = Query(..., alias="itemId", gt=0),
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    result = svc.remove_item(user.id, item_id)
    return ok({"cartDeleted": result["cart_deleted"]}, message="Item removed from cart")


@router.delete("")
def clear_cart(
    user: UserModel = Depends(get_current_user),
    svc: CartService = Depends(get_cart_service),
):
    result = svc.clear_cart(user.id)
    return ok({"removed": result["removed"]}, message="Cart cleared")
