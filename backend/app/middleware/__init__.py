# Middleware package init
"""
Superhero Registry Backend — Middleware Package
================================================

Middleware Chain:
    Request → [Rate Limit] → [Request ID] → [Logging] → [GZip] → [CORS] → Route

    1. Rate Limit first: abusive clients are rejected before any other work
    2. Request ID: correlation ID available to everything downstream
    3. Logging: access line with status and duration, tagged with the ID
"""
