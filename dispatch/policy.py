"""
Purpose: Central configuration for batch dispatch.
What it does:

Stores the knobs that decide how a dispatch run commits:

DISPATCH_ATOMIC_BATCH = true     one transaction for the whole run
DISPATCH_SKIP_CONFLICTS = true   a rider/order lost to a concurrent run is skipped

default_dispatch_policy() reads them from the environment (.env is loaded
on import).

Rule: Only switches live here; the dispatcher decides what they mean.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class DispatchPolicy:
    """
    Central configuration for the dispatcher.
    """

    # --- Commit mode ---
    # True: the whole batch is one store transaction, a failure rolls every
    # assignment of the run back.
    # False: every pair commits on its own; pairs committed before a failure
    # stay assigned and the next run picks up the remaining pending orders.
    atomic_batch: bool = True

    # --- Concurrency ---
    # When the store's compare-and-swap reports that a rider was taken or an
    # order already left PENDING (another run got there first), move on
    # instead of aborting the batch.
    skip_conflicts: bool = True

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if not isinstance(self.atomic_batch, bool) or not isinstance(self.skip_conflicts, bool):
            raise ValueError("DispatchPolicy flags must be booleans")


def default_dispatch_policy() -> DispatchPolicy:
    """
    Convenience factory for the default policy.
    """
    p = DispatchPolicy(
        atomic_batch=_env_flag("DISPATCH_ATOMIC_BATCH", "true"),
        skip_conflicts=_env_flag("DISPATCH_SKIP_CONFLICTS", "true"),
    )
    p.validate()
    return p
