# Services package init
"""
NoteSafe Backend — Services Layer
===================================

What:  Business logic between routes (HTTP) and the stores (persistence).

Service Inventory:
    - CascadeResolver: Finds a user's notes inside the cascade's session
    - TransactionCoordinator: All-or-nothing delete of a user and their notes
    - ImageCleanupWorker: Post-commit, bounded, best-effort image deletion
    - AccountService: Retries write conflicts; dispatches background cleanup
"""
