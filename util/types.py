# util/types.py
from typing import Literal


# Flow: Narrow types for what a sweep can do with one pending record.
SweepOutcome = Literal[
    "deleted",
    "skipped_already_confirmed",
    "deletion_failed",
    "malformed",
]

ConfirmReason = Literal["NOT_FOUND", "MEDIA_MISMATCH"]
