# Routes package init
"""
Flock Backend — API Routes Package
===================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - auth.py:           /api/auth/signup, /login, /logout, /me
    - posts.py:          /api/posts/... (feeds, create, like, comment, delete)
    - users.py:          /api/users/... (profile, suggested, follow, update)
    - notifications.py:  /api/notifications
    - files.py:          GET /api/files/{path}   (stored images)
    - health.py:         GET /health

Routes are THIN: read the request, call a service, return its result.
Business rules and their error messages live in the services.
"""
