"""Core types shared across blueprints."""
