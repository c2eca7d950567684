# Services package init
"""
Shared Todo Backend — Services Layer
=====================================

What:  Business logic layer sitting between routes (HTTP) and the database.
How:   Services receive the request's AsyncSession and the acting user,
       apply the authorization policy, issue ORM queries and return ORM
       objects. Routes shape those objects into response schemas.

Service Inventory:
    - AuthService: register, login, profile
    - NoteService: note CRUD and listing (+ `get_accessible_note`, the
      access-filtered fetch shared by the other services)
    - CollaboratorService: invite, list, change role, remove
    - InvitationService: read, accept, decline by token
    - TaskService: task CRUD, per-note and cross-note listings

Services flush; the session dependency commits once the route returns, so
each request is one transaction. The one exception is the stale-invitation
cleanup in InvitationService.accept, which commits before raising.
"""
