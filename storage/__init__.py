"""
Storage Package.

This package owns the two collections the service persists:
submissions keyed by id, and published stats keyed by
(subject, window).

Modules:
- models/: ORM models
- repositories/: Data access layer
"""
