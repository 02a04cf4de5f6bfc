"""
ORM models. Both are imported here so that string-based relationship
targets resolve regardless of which module is imported first.
"""

from devcamper.models.bootcamp import Bootcamp
from devcamper.models.course import Course

__all__ = ["Bootcamp", "Course"]
