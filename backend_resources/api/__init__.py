"""HTTP layer: blueprints, auth guard and error handlers."""
