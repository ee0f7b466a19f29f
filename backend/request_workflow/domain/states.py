"""Request states, actions, authority tiers and capability names."""
import enum


class RequestStatus(str, enum.Enum):
    pending_review = "pending-review"
    review_accepted = "review-accepted"
    review_rejected = "review-rejected"
    review_rescheduled = "review-rescheduled"
    creator_confirmed = "creator-confirmed"
    creator_declined = "creator-declined"
    completed = "completed"
    rejected = "rejected"
    cancelled = "cancelled"
    expired = "expired"


class Action(str, enum.Enum):
    view = "view"
    accept = "accept"
    reject = "reject"
    reschedule = "reschedule"
    confirm = "confirm"
    decline = "decline"
    revise = "revise"
    edit = "edit"
    manage_staff = "manage-staff"
    cancel = "cancel"
    delete = "delete"
    expire = "expire"


class Outcome(str, enum.Enum):
    approved = "approved"
    rejected = "rejected"
    cancelled = "cancelled"
    expired = "expired"


class AuthorityTier(enum.IntEnum):
    BASIC_USER = 20
    STAKEHOLDER = 30
    COORDINATOR = 60
    OPERATIONAL_ADMIN = 80
    SYSTEM_ADMIN = 100

    @classmethod
    def of(cls, authority: int) -> "AuthorityTier":
        """Highest tier whose threshold does not exceed ``authority``."""
        for tier in sorted(cls, reverse=True):
            if authority >= tier:
                return tier
        return cls.BASIC_USER


TOP_AUTHORITY = AuthorityTier.SYSTEM_ADMIN


def is_top_authority(authority: int) -> bool:
    return authority >= TOP_AUTHORITY


def is_bottom_tier(authority: int) -> bool:
    """Stakeholders and basic users."""
    return authority < AuthorityTier.COORDINATOR


# Capability names
CAP_CREATE = "request.create"
CAP_REVIEW = "request.review"
CAP_RESCHEDULE = "request.reschedule"

ALL_CAPABILITIES = frozenset({CAP_CREATE, CAP_REVIEW, CAP_RESCHEDULE})

# Only meaningful inside the reviewer's coverage area
SCOPED_CAPABILITIES = frozenset({CAP_REVIEW, CAP_RESCHEDULE})

REVIEWER_ACTIONS = frozenset({Action.accept, Action.reject, Action.reschedule})

TERMINAL_STATUSES = frozenset({
    RequestStatus.completed,
    RequestStatus.rejected,
    RequestStatus.cancelled,
    RequestStatus.expired,
})

# Recorded in history on the way to a resolution, never left as current status
TRANSIENT_STATUSES = frozenset({RequestStatus.creator_confirmed, RequestStatus.creator_declined})

AWAITING_RESPONSE_STATUSES = frozenset({
    RequestStatus.review_accepted,
    RequestStatus.review_rejected,
    RequestStatus.review_rescheduled,
})

# Requests in these states do not hold their day for conflict checks
NON_OCCUPYING_STATUSES = frozenset({
    RequestStatus.review_rejected,
    RequestStatus.rejected,
    RequestStatus.cancelled,
    RequestStatus.expired,
    RequestStatus.creator_declined,
})

SYSTEM_ACTOR_ID = "system"
