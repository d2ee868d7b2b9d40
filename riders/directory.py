"""
Purpose: Rider Directory service.
What it does:
- Rider CRUD on top of the injected Store
- Activation status changes
- Rating intake (score range enforced by RatingPolicy)

Rule: Validation and business rules live here, persistence lives in the Store.
"""

from __future__ import annotations

import logging
import math
from numbers import Real
from typing import Any, Dict, List, Mapping, Optional

from dispatch.state_machines.rider_state import ensure_deletable
from errors import NotFound, ValidationError
from store.base import Store

from .models import RIDER_FIELDS, Rating, Rider, RiderStatus
from .policy import RatingPolicy, default_rating_policy

logger = logging.getLogger(__name__)


def parse_rider_status(value: Any) -> RiderStatus:
    try:
        return RiderStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid rider status: {value!r}") from None


def clean_rider_fields(fields: Mapping[str, Any], *, partial: bool) -> Dict[str, Any]:
    """
    Normalise caller input into store fields.

    partial=False (create): name is required.
    partial=True (update): any subset of RIDER_FIELDS.
    """
    if not isinstance(fields, Mapping):
        raise ValidationError("Rider data must be an object")

    if "id" in fields or "rider_id" in fields:
        raise ValidationError("Rider id is immutable")

    unknown = set(fields) - set(RIDER_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown rider fields: {', '.join(sorted(unknown))}")

    if not partial and "name" not in fields:
        raise ValidationError("Rider name is required")
    if partial and not fields:
        raise ValidationError("Nothing to update")

    cleaned: Dict[str, Any] = {}
    for key, value in fields.items():
        if key == "status":
            cleaned[key] = parse_rider_status(value)
            continue
        if value is None and key != "name":
            value = ""
        if not isinstance(value, str):
            raise ValidationError(f"Rider {key} must be a string")
        value = value.strip()
        if key == "name" and not value:
            raise ValidationError("Rider name must not be blank")
        cleaned[key] = value
    return cleaned


class RiderDirectory:
    """
    Rider management on an explicitly injected store handle.
    """

    def __init__(self, store: Store, rating_policy: Optional[RatingPolicy] = None):
        self.store = store
        self.rating_policy = rating_policy or default_rating_policy()

    def list_riders(self) -> List[Rider]:
        return self.store.list_riders()

    def get_rider(self, rider_id: int) -> Rider:
        return self.store.get_rider(rider_id)

    def create_rider(self, fields: Mapping[str, Any]) -> int:
        cleaned = clean_rider_fields(fields, partial=False)
        rider_id = self.store.insert_rider(cleaned)
        logger.info(f"Rider {rider_id} registered")
        return rider_id

    def update_rider(self, rider_id: int, fields: Mapping[str, Any]) -> Rider:
        cleaned = clean_rider_fields(fields, partial=True)
        if not self.store.update_rider(rider_id, cleaned):
            raise NotFound(f"Rider {rider_id} not found")
        return self.store.get_rider(rider_id)

    def delete_rider(self, rider_id: int) -> None:
        with self.store.transaction():
            rider = self.store.get_rider(rider_id)
            ensure_deletable(rider, self.store.rider_has_active_order(rider_id))
            if not self.store.delete_rider(rider_id):
                raise NotFound(f"Rider {rider_id} not found")
        logger.info(f"Rider {rider_id} deleted")

    def set_status(self, rider_id: int, status: Any) -> Rider:
        new_status = parse_rider_status(status)
        if not self.store.set_rider_status(rider_id, new_status):
            raise NotFound(f"Rider {rider_id} not found")
        logger.info(f"Rider {rider_id} is now {new_status.value}")
        return self.store.get_rider(rider_id)

    def add_rating(self, rider_id: int, score: Any, feedback: Optional[str] = "") -> int:
        """
        Append an immutable rating. The score is checked before anything is
        written, so a rejected rating leaves no record behind.
        """
        if isinstance(score, bool) or not isinstance(score, Real) or math.isnan(score):
            raise ValidationError(f"Rating score must be a number, got {score!r}")
        if not self.rating_policy.accepts(score):
            raise ValidationError(
                f"Rating score {score} outside "
                f"{self.rating_policy.min_score:g}-{self.rating_policy.max_score:g}"
            )
        if feedback is None:
            feedback = ""
        if not isinstance(feedback, str):
            raise ValidationError("Rating feedback must be a string")

        return self.store.insert_rating(rider_id, score, feedback)

    def list_ratings(self, rider_id: int) -> List[Rating]:
        self.store.get_rider(rider_id)
        return self.store.list_ratings(rider_id)
