"""Domain errors raised by the decision core.

All of them are ValueError subclasses so callers that only care about
"bad input" can keep catching ValueError.
"""


class InvalidSelectionError(ValueError):
    """An ineligible houseguest was chosen (veto save, replacement nominee)."""

    def __init__(self, houseguest_id: str, reason: str) -> None:
        self.houseguest_id = houseguest_id
        self.reason = reason
        super().__init__(f"Invalid selection {houseguest_id}: {reason}")


class EmptyParticipantsError(ValueError):
    """A competition was started without participants."""


class DealTransitionError(ValueError):
    """A deal status change that the lifecycle does not allow."""

    def __init__(self, deal_id: str, old_status: str, new_status: str) -> None:
        self.deal_id = deal_id
        self.old_status = old_status
        self.new_status = new_status
        super().__init__(
            f"Deal {deal_id}: cannot transition {old_status} -> {new_status}"
        )
