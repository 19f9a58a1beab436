from app.models.user import User, watch_history
from app.models.video import Video

__all__ = ["User", "Video", "watch_history"]
