from enum import Enum


class UserRole(str, Enum):
    CREATOR = "creator"
    SUBSCRIBER = "subscriber"
    ADMIN = "admin"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class StreamStatus(str, Enum):
    OFFLINE = "offline"
    LIVE = "live"
    ENDED = "ended"


class ContentType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
