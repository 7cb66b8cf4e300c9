"""
Core models package: users and the audited base class.
"""

from .user_info.user import User

__all__ = [
    'User',
]
