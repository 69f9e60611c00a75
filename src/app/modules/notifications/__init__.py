"""
Notifications Module

In-app notifications for transfer requests and issued documents.
Directors receive notifications addressed to their school; students
receive those addressed to them.
"""

from .router import router

__all__ = ["router"]
