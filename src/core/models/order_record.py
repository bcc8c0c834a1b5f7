"""
OrderRecord model representing one order flowing from the source file to the store.
"""

from typing import Any

from pydantic import BaseModel, Field


class OrderRecord(BaseModel):
    """
    A single order read from the input file (ephemeral, not retained after commit).

    Attributes:
        order_id: Business key, unique within one source file
        customer_name: Free-text customer name
        amount: Order amount; always set by the reader, may be absent on
                records built elsewhere
    """

    order_id: int
    customer_name: str
    amount: float | None = Field(default=None, allow_inf_nan=False)

    def to_params(self) -> dict[str, Any]:
        """Return the record keyed by persisted column name, for named-parameter binding."""
        return {
            "order_id": self.order_id,
            "customer_name": self.customer_name,
            "amount": self.amount,
        }

    class Config:
        json_schema_extra = {
            "example": {
                "order_id": 1,
                "customer_name": "Alice",
                "amount": 100.0,
            }
        }
