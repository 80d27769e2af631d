"""Core utilities shared across the service.

- logging: Structured logging configuration and helpers
"""
