"""
Web application module.

JSON API over the resolution service.
"""
