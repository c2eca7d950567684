# Routes package init
"""
Shared Todo Backend — API Routes Package
=========================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each module owns one resource; main.py mounts them under
       `settings.api_prefix` (default /api/v1), except /health.

Route Inventory:
    - auth.py:         /auth/register, /auth/login, /auth/logout, /auth/me
    - notes.py:        /notes CRUD, /notes/{id}/invite, /notes/{id}/users
    - invitations.py:  /invitations/{token} read, accept, decline
    - tasks.py:        /tasks global list, /tasks/notes/{noteId}, /tasks/{id}
    - health.py:       /health, and the API info document at the prefix root

Design Principle:
    Routes stay thin: extract input, call a service, wrap the result in the
    response envelope. Business rules and permission checks live in the
    services and the policy module.
"""
