"""backend-resources: user management API backed by Keycloak.

To use the Flask app:
    from backend_resources.flask_app import create_app

To use the Keycloak admin client directly:
    from backend_resources.core.keycloak import KeycloakClient, UserService
"""
