from prepwise.models.user import User
from prepwise.models.interview import Interview
from prepwise.models.feedback import Feedback

__all__ = ["User", "Interview", "Feedback"]
