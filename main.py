"""
Entry point for `uvicorn main:app`
"""
from workhub.main import app  # noqa: F401
