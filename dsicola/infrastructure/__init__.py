# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Infrastructure layer for DSICOLA.

- database: PostgreSQL access with SQLAlchemy async
"""
