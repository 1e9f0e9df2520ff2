"""
FastAPI routers.

Each module exposes an APIRouter that app.py includes. Routers only translate
HTTP calls into store operations; errors are mapped to status codes by the
exception handlers registered in app.py.
"""
