"""
Repository layer for the review widgets backend.

All SQL lives here and ONLY here. No database access outside this module.
"""

from backend.repos.company_repo import CompanyRepo
from backend.repos.review_repo import ReviewRepo
from backend.repos.user_repo import UserRepo
from backend.repos.widget_repo import WidgetRepo

__all__ = [
    "UserRepo",
    "CompanyRepo",
    "WidgetRepo",
    "ReviewRepo",
]
