from .dispatch import NotificationDispatch
from .models import PushMessage, is_expo_push_token
from .push_sender import ExpoPushSender, PushSender
from .templates import NotificationTemplates
from .tokens import PushTokenLookup, RepositoryTokenLookup

__all__ = [
    "ExpoPushSender",
    "NotificationDispatch",
    "NotificationTemplates",
    "PushMessage",
    "PushSender",
    "PushTokenLookup",
    "RepositoryTokenLookup",
    "is_expo_push_token",
]
