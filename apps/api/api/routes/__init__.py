from . import auth, comments, health, tickets, users

__all__ = ["auth", "comments", "health", "tickets", "users"]
