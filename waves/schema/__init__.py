"""Schema package exports."""

from .community import Event, EventMessage, EventMessageKind, Profile, Rsvp, RsvpStatus
from .notifications import DeliveryChannel, DeliveryStatus, NotificationDelivery

__all__ = ["DeliveryChannel", "DeliveryStatus", "Event", "EventMessage", "EventMessageKind", "NotificationDelivery", "Profile", "Rsvp", "RsvpStatus"]
