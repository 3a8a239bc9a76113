from .campus import Campus
from .counter import Counter
from .user import User

__all__ = [
    "Campus",
    "Counter",
    "User",
]
