"""
Discount processor: takes a fixed fraction off every order amount.
"""

from typing import Optional

from src.batch.interfaces import ItemProcessor
from src.core.config import DEFAULT_DISCOUNT_RATE
from src.core.errors import TransformError
from src.core.models import OrderRecord
from src.observability.logger import get_logger

logger = get_logger(__name__)


class DiscountProcessor(ItemProcessor[OrderRecord, OrderRecord]):
    """
    Applies ``amount * (1 - discount_rate)`` to each order.

    Returns a new record; the input record is left untouched.
    """

    def __init__(self, discount_rate: float = DEFAULT_DISCOUNT_RATE):
        if not 0.0 <= discount_rate < 1.0:
            raise ValueError(f"discount_rate must be in [0, 1), got {discount_rate}")
        self.discount_rate = discount_rate

    def process(self, item: OrderRecord) -> Optional[OrderRecord]:
        if item.amount is None:
            raise TransformError(item.order_id, "amount is missing")

        discounted = item.amount * (1 - self.discount_rate)

        logger.debug(
            f"Processing order {item.order_id} -> discounted amount {discounted}",
            extra={"order_id": item.order_id, "original_amount": item.amount, "discounted_amount": discounted},
        )

        return item.model_copy(update={"amount": discounted})

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(discount_rate={self.discount_rate})"
