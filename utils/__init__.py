"""
Utility modules for the Family Schedule Assistant
"""

from .logger import FamilyScheduleLogger
from .validators import RequestValidator, DataSanitizer, ValidationError
from .schedule_logger import ScheduleLogger

__all__ = ['FamilyScheduleLogger', 'RequestValidator', 'DataSanitizer', 'ValidationError', 'ScheduleLogger']
