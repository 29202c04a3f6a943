"""
SQLAlchemy models. Import here so init_db and the app can use them.
"""
from weather_api.models.user import User, Role
from weather_api.models.reading import Reading

__all__ = ["User", "Role", "Reading"]
