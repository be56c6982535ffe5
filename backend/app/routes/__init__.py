# Routes package init
"""
Superhero Registry Backend — API Routes Package
================================================

Route Inventory:
    - superheroes.py: /api/superheroes CRUD and /api/superheroes/{id}/images
    - health.py:      GET /health

Routes stay thin: they read the request, call SuperheroService, and return
its response models. Business rules live in the service.
"""
