"""Pydantic schemas for request bodies and stored records."""
