"""
Todo Lens Bot package.

A chat bot that decorates actionable phrases with a 'Todo' lens, lets users
accept them as todos, toggle completion and list them back as cards. The
FastAPI application lives in ``todolens.main`` (``create_app`` / ``app``).
"""

__version__ = "0.1.0"
