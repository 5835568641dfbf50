"""
Utility modules for the comparables service.
"""

from .config import Config

__all__ = ["Config"]
