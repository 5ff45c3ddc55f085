"""Top-level package for Django configuration.

This package holds the settings modules for the venue booking platform
(one per environment) and the WSGI/ASGI entry points.
"""
