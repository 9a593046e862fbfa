"""CLI command modules."""

from .daily import daily
from .pitfalls import pitfalls
from .profile import profile
from .project import project
from .status import status
from .timeline import timeline

__all__ = [
    "daily",
    "pitfalls",
    "profile",
    "project",
    "status",
    "timeline",
]
