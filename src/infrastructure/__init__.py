# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer.

This package contains in-process plumbing:
- Event bus for domain events
- UI notification dispatch
"""
