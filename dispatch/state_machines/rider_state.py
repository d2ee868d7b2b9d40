from errors import ConflictError, RiderUnavailable
from riders.models import Rider


class RiderStateException(ConflictError):
    """Raised when a rider operation conflicts with its current assignment."""
    pass


def ensure_assignable(rider: Rider, has_active_order: bool) -> None:
    """
    A rider can take a new order only while ACTIVE and free.
    """
    if not rider.is_active:
        raise RiderUnavailable(f"Rider {rider.id} is {rider.status.value}")
    if has_active_order:
        raise RiderUnavailable(f"Rider {rider.id} already holds an assigned order")


def ensure_deletable(rider: Rider, has_active_order: bool) -> None:
    """
    Deleting a rider mid-delivery would orphan the order, so it is rejected
    until the order is delivered or cancelled.
    """
    if has_active_order:
        raise RiderStateException(
            f"Rider {rider.id} holds an assigned order and cannot be deleted"
        )
