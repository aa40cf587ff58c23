"""
Use cases for the Pawprint API.

Each service orchestrates the repository and the validation rules to
implement business behaviour (create/edit accounts, guests, likes).
Routers call these services instead of touching the database directly.
"""
