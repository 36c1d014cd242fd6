# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Remedial task lifecycle."""

from src.domains.intervention.service import InterventionService

__all__ = ["InterventionService"]
