# Middleware package init
"""
NoteSafe Backend — Middleware Package
=======================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → Route Handler

    Request ID runs first so the logging middleware (and every log line
    written while handling the request) can read it from the ContextVar.
"""
