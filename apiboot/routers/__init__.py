"""Route tables for the service.

Each module exposes plain `Route` lists instead of decorated functions:
- health: service status and uptime
- echo: request-validation diagnostics
"""
