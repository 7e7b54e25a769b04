"""Core configuration, logging and Pydantic models.

Contains:
- config.py: startup configuration loaded from the environment
- logs.py: stdout logging setup (text or JSON lines)
- models_io.py: error and diagnostic schemas used across routers
"""
