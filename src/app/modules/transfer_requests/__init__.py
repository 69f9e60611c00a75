"""
Transfer Requests Module

Students ask to transfer to another school; directors of the origin
school approve or reject. Each request is decided exactly once.
"""

from .router import router

__all__ = ["router"]
