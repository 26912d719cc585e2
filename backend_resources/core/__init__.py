"""Core business logic, independent of Flask.

Module Structure:
    - keycloak/     : Low-level Keycloak Admin API client
    - gateway.py    : Identity gateway (create user, get user, whoami)
    - models.py     : Request/response value objects
    - errors.py     : Domain errors carrying an HTTP status
    - validators.py : UserRequest payload validation
    - rbac.py       : Role collection and checks on token claims

Import explicitly when needed:
    from backend_resources.core.gateway import UserGateway
    from backend_resources.core.validators import validate_user_request
"""
