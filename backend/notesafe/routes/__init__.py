# Routes package init
"""
NoteSafe Backend — API Routes Package
=======================================

Route Inventory:
    - accounts.py: DELETE /api/users/{user_id}  (cascade account deletion)
    - health.py:   GET    /health               (service health check)

Routes stay THIN: extract parameters, call the service, shape the response.
"""
