# Services package init
"""
Superhero Registry Backend — Services Layer
============================================

Business logic between routes (HTTP) and the database (persistence).

Service Inventory:
    - SuperheroService: CRUD, pagination/search and the image list codec
"""
