from enum import Enum


class TransitionOutcome(Enum):
    APPLIED = "APPLIED"        # Conditional update changed the row
    UNCHANGED = "UNCHANGED"    # Already in target or in a terminal status
