"""
CRUD operations (Create, Read, Update, Delete) for database models.

This layer provides a clean separation between API routes and database operations,
following the Repository pattern.

Write helpers only flush. The caller owns the transaction and wraps related
writes in ``app.core.database.atomic`` so they commit or roll back together.
"""

from app.crud import user, job, application, interview, notification, calendar_connection

__all__ = ["user", "job", "application", "interview", "notification", "calendar_connection"]
