#Expose the high-level pipeline pieces:
#Candidate filtering (hard rules)
#First-fit matching
#Dispatcher orchestrator (the "one call" entry point)

from .candidate_filter import build_base_candidates
from .matching import first_fit
from .policy import DispatchPolicy, default_dispatch_policy
from .dispatcher import Dispatcher, DispatchResult #the main entry point to run a batch dispatch

__all__ = [
    "build_base_candidates",
    "first_fit",
    "DispatchPolicy",
    "default_dispatch_policy",
    "Dispatcher",
    "DispatchResult",
]
