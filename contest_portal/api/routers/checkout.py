# contest_portal/api/routers/checkout.py
from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from contest_portal.api.deps import checkout_rate_limit, get_checkout_service, get_current_user, get_verification_service
from contest_portal.api.responses import ok
from contest_portal.data.models.user import UserModel
from contest_portal.domain.schemas import CheckoutIn, CheckoutOut
from contest_portal.services.checkout_service import CheckoutService
from contest_portal.services.payment_verification_service import PaymentVerificationService

router = APIRouter(tags=["checkout"])


@router.post("/checkout", dependencies=[Depends(checkout_rate_limit)])
def checkout(
    payload: CheckoutIn,
    user: UserModel = Depends(get_current_user),
    svc: CheckoutService = Depends(get_checkout_service),
):
    customer = payload.customer_info.model_dump() if payload.customer_info else {}
    result = svc.checkout(
        user,
        customer,
        payment_method=payload.payment_method,
        bank_slip_url=payload.bank_slip_url,
        bank_slip_file_name=payload.bank_slip_file_name,
        will_send_via_whatsapp=payload.will_send_via_whatsapp,
    )
    return ok(CheckoutOut.model_validate(result))


@router.post("/payment/notify")
async def payment_notify(
    request: Request,
    svc: PaymentVerificationService = Depends(get_verification_service),
):
    # PayHere wysyla application/x-www-form-urlencoded
    form = await request.form()
    result = await run_in_threadpool(svc.handle_gateway_notification, dict(form))
    return ok({"orderId": result["order_id"], "status": result["status"]})
