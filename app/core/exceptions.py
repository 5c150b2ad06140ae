"""Errors raised by services; the API layer maps each class to a status code."""

from __future__ import annotations


class DomainError(Exception):
    """Base class; the message is safe to show to API clients."""


class NotFoundError(DomainError):
    """Unknown waste type, user row or other missing record."""


class ConflictError(DomainError):
    """A write clashed with existing data."""


class ValidationError(DomainError):
    """Input that passed request parsing but makes no sense to the service."""


class AuthError(DomainError):
    """The auth backend rejected the credentials or the session token."""


class InfrastructureError(DomainError):
    """The backend is unconfigured, unreachable or answered with garbage."""
