# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer.

Domains:
    engagement: Check-ins, focus violations, state machine and escalation.
    intervention: Remedial task assignment and completion.
"""
