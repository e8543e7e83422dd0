# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared schema helpers."""

from pydantic import BaseModel, ConfigDict


class ORMModel(BaseModel):
    """Response model populated from ORM attributes."""

    model_config = ConfigDict(from_attributes=True)


class ErrorResponse(BaseModel):
    detail: str
    code: str
