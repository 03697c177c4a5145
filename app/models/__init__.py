from app.models.chat import ChatKind, ChatRecord
from app.models.user import User

__all__ = ["ChatKind", "ChatRecord", "User"]
