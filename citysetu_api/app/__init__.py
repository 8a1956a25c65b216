"""
Application package initializer.

The backend is organised into small pieces: ``core`` holds settings,
logging, security, the error taxonomy and the storage backends;
``services`` implements the per-domain operations on top of the
record repository; ``api`` exposes them over HTTP.
"""

from .main import app  # noqa: F401
