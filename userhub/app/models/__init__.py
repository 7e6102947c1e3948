from userhub.app.models.user import User

__all__ = ["User"]
