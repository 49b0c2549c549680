from eonchat.models.user import User
from eonchat.models.message import Message
from eonchat.models.friend_request import FriendRequest
from eonchat.models.notification import Notification
from eonchat.models.otp import Otp

__all__ = [
    "User",
    "Message",
    "FriendRequest",
    "Notification",
    "Otp"
]
