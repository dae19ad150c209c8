"""
Core module - settings, exception hierarchy, and shared pydantic models.
"""
