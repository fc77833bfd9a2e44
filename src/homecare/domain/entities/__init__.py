"""
Domain entities.
"""

from .chart import PatientChart
from .profile import Profile

__all__ = ["PatientChart", "Profile"]
