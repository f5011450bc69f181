"""Application package for the school records admin backend.

This package exposes the service, repository and model modules used by
the FastAPI application for students, teachers, courses and their
enrollments. Individual modules contain the concrete implementations
and documentation.
"""
