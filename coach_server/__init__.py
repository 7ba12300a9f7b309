"""
Interview Coach Server
----------------------
FastAPI service that keeps one durable coaching session per user and
drives either a free-form conversation or a five-stage mock interview.
"""

__version__ = "1.0.0"
