# Middleware package init
"""
VideoTube Backend — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request, plus the auth dependencies.

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [Body Limit] → [GZip] → [CORS] → Route Handler

    1. Request ID first: every later log line and error body carries it
    2. Logging: records status and duration, including 413 rejections
    3. Body limit: refuses oversized JSON/urlencoded bodies before routing
    4. CORS: FastAPI's CORSMiddleware (credentials allowed for token cookies)

auth.py is not Starlette middleware: it holds the FastAPI dependencies
(get_current_user, get_optional_user) that resolve the logged-in user.
"""
