"""Completion Orchestrator.

Reacts to a learner finishing a problem, unlocking an achievement or
completing a goal, and keeps XP, streak, goal and challenge progress
consistent across those events.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
