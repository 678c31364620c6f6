# contest_portal/utils/retry.py
from tenacity import retry, stop_after_attempt, wait_fixed, retry_if_exception_type

from contest_portal.domain.errors import OrderIdCollision
from contest_portal.utils.settings import ORDER_ID_MAX_ATTEMPTS, ORDER_ID_RETRY_DELAY


def order_id_retry():
    # max ORDER_ID_MAX_ATTEMPTS prob, potem OrderIdCollision leci dalej (500)
    return retry(
        reraise=True,
        stop=stop_after_attempt(ORDER_ID_MAX_ATTEMPTS),
        wait=wait_fixed(ORDER_ID_RETRY_DELAY),
        retry=retry_if_exception_type(OrderIdCollision),
    )
