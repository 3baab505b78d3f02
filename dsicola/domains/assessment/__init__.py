# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Assessment domain package."""

from dsicola.domains.assessment.posting_window import (
    PostingWindowClosedError,
    PostingWindowConflictError,
    PostingWindowError,
    PostingWindowForbiddenError,
    PostingWindowNotFoundError,
    PostingWindowService,
    PostingWindowValidationError,
)
from dsicola.domains.assessment.service import (
    AssessmentForbiddenError,
    AssessmentNotFoundError,
    AssessmentService,
    AssessmentServiceError,
    AssessmentValidationError,
)

__all__ = [
    "AssessmentForbiddenError",
    "AssessmentNotFoundError",
    "AssessmentService",
    "AssessmentServiceError",
    "AssessmentValidationError",
    "PostingWindowClosedError",
    "PostingWindowConflictError",
    "PostingWindowError",
    "PostingWindowForbiddenError",
    "PostingWindowNotFoundError",
    "PostingWindowService",
    "PostingWindowValidationError",
]
