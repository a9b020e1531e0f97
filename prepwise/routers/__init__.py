from prepwise.routers.users import router as users_router
from prepwise.routers.interviews import router as interviews_router
from prepwise.routers.feedback import router as feedback_router
from prepwise.routers.call import router as call_router

__all__ = ["users_router", "interviews_router", "feedback_router", "call_router"]
