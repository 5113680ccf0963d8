"""
Web layer - FastAPI JSON API.
"""
