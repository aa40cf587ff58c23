"""
Persistence adapters.

Services depend on SQLRepository rather than touching SQLAlchemy sessions
directly; uniqueness (emails, like pairs) is enforced by the database.
"""
