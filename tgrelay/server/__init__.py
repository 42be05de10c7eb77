"""HTTP API for the converter.

WHY: Exposes convert() and render_reply() to non-Python callers.

HOW: app.py defines the FastAPI app, models.py the Pydantic schemas.
"""
