"""Event type constants."""


class EventTypes:
    """Event type string constants"""

    # relationship
    RELATIONSHIP_CHANGED = "relationship_changed"
    RELATIONSHIP_MILESTONE = "relationship_milestone"

    # deals
    DEAL_PROPOSED = "deal_proposed"
    DEAL_ACCEPTED = "deal_accepted"
    DEAL_DECLINED = "deal_declined"
    DEAL_FULFILLED = "deal_fulfilled"
    DEAL_BROKEN = "deal_broken"
    DEAL_EXPIRED = "deal_expired"
    OBLIGATION_WARNING = "obligation_warning"

    # competitions
    COMPETITION_COMPLETED = "competition_completed"

    # decisions
    NOMINATIONS_MADE = "nominations_made"
    VOTE_CAST = "vote_cast"
    VETO_DECIDED = "veto_decided"
    NOMINEE_REPLACED = "nominee_replaced"
    FINALIST_SELECTED = "finalist_selected"

    # engine
    PHASE_CHANGED = "phase_changed"
