"""DSICOLA Backend.

Multi-tenant school management platform for secondary schools and
higher-education institutions: academic records, enrollment, grading,
attendance, tuition billing, HR and library.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
