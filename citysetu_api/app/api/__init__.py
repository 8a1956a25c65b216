"""
API package containing the HTTP routes.

``router.py`` aggregates the domain routers defined in ``endpoints``;
``deps.py`` provides the FastAPI dependencies that hand each request
the repository and services built at application start.
"""
