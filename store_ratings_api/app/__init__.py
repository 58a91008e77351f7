"""
Application package initializer.

The API is organised into a handful of layers: ``core`` (settings,
database handle, security, errors, access policy), ``services``
(business logic per domain), ``schemas`` (request and response
models) and ``api`` (versioned routers).  Handlers stay thin and
delegate data rules to the services.
"""

from .main import app  # noqa: F401
