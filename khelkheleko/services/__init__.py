"""Domain services shared by the blueprints."""
