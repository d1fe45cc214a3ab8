from . import messages, profiles, tasks

__all__ = ["messages", "profiles", "tasks"]
