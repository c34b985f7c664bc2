"""HTTP blueprints for world creation, inspection and visitor events."""
