"""
Performance Review Package.

Submission intake and the review-to-publish pipeline.

Components:
- schemas: Request validation and response models
- registry: Submission creation and reads
- state_machine: PENDING -> APPROVED | REJECTED rules
- coordinator: Atomic review and publication
- router: Submit and reviewer HTTP endpoints
"""
