# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared API model building blocks."""

from pydantic import BaseModel, ConfigDict, Field


class ORMModel(BaseModel):
    """Base for response models built from ORM instances."""

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


class PaginationParams(BaseModel):
    """Page-based pagination."""

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1, le=200)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size
