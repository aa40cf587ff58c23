"""
FastAPI routers grouped by domain (users, comments, posts).

Each module exposes an APIRouter included by pawprint.app. Endpoints only
translate HTTP payloads to service calls; errors are mapped to responses by
the handlers registered in the app.
"""
