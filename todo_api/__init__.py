"""
Todo API: a persistence-backed REST service for personal todo items.
"""

__version__ = "1.0.0"
