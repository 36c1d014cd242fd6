"""Student engagement intervention engine.

Tracks each student's engagement state, escalates to a mentor when
check-ins or focus sessions fail, and manages remedial tasks.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
