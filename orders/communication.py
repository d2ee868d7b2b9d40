import logging
from typing import Any

from errors import InternalError, ValidationError
from store.base import Store

logger = logging.getLogger(__name__)


class CustomerMessenger:
    """
    Records messages sent to customers (order updates, delivery notes).
    """

    def __init__(self, store: Store):
        self.store = store

    def communicate(self, customer_id: Any, message: Any) -> str:
        if customer_id is None or str(customer_id).strip() == "":
            raise ValidationError("customerId is required")
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("message must be a non-empty string")

        if not self.store.insert_communication(str(customer_id).strip(), message.strip()):
            logger.error(f"Failed to insert communication record for customer {customer_id}")
            raise InternalError("Failed to insert communication record")
        return "Communication sent successfully"
