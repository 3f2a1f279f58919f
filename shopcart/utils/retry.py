# shopcart/utils/retry.py
import logging

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from shopcart.domain.errors import TransactionAbortError
from shopcart.utils.settings import (
    CART_MAX_ATTEMPTS,
    CHECKOUT_MAX_ATTEMPTS,
    CHECKOUT_RETRY_MAX_WAIT,
    CHECKOUT_RETRY_MIN_WAIT,
)
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


#only storage conflicts are retried, domain errors go straight to the caller
def checkout_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(CHECKOUT_MAX_ATTEMPTS),
        wait=wait_exponential(
            multiplier=CHECKOUT_RETRY_MIN_WAIT,
            min=CHECKOUT_RETRY_MIN_WAIT,
            max=CHECKOUT_RETRY_MAX_WAIT,
        ),
        retry=retry_if_exception_type(TransactionAbortError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )


def cart_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(CART_MAX_ATTEMPTS),
        wait=wait_exponential(multiplier=0.02, min=0.02, max=0.5),
        retry=retry_if_exception_type(TransactionAbortError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
