"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
application can start with nothing but an ``ADMIN_TOKEN`` (and, for
the GitHub backend, the repository coordinates and a token).
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "CitySetu API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")

    # Static bearer token guarding the admin routes.  When empty, every
    # admin request is rejected.
    admin_token: str = os.getenv("ADMIN_TOKEN", "")

    # Which document store backs the collections: ``github`` (JSON
    # files committed to a repository), ``sqlite`` (one row per
    # document) or ``memory`` (process-local, for development).
    storage_backend: str = os.getenv("STORAGE_BACKEND", "github")

    github_token: str = os.getenv("GITHUB_TOKEN", "")
    github_owner: str = os.getenv("GITHUB_OWNER", "")
    github_repo: str = os.getenv("GITHUB_REPO", "")
    github_branch: str = os.getenv("GITHUB_BRANCH", "main")
    github_api_url: str = os.getenv("GITHUB_API_URL", "https://api.github.com")

    # Directory inside the store holding one ``<collection>.json`` per
    # collection.
    data_dir: str = os.getenv("DATA_DIR", "data")

    # Seconds before a remote read or write is abandoned.
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "15"))

    # Read-modify-write attempts per operation when the store rejects a
    # write because the document changed underneath it.
    write_retries: int = int(os.getenv("WRITE_RETRIES", "5"))
    retry_backoff: float = float(os.getenv("RETRY_BACKOFF", "0.2"))

    # SQLite file used by the ``sqlite`` backend.  Relative paths are
    # resolved against the current working directory.
    database_url: str = os.getenv("DATABASE_URL", "citysetu.db")

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "10000"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before importing this module.
settings = Settings()
