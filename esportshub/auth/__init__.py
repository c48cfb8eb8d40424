"""Session guards for admin actions."""

from .decorators import login_required

__all__ = ["login_required"]
