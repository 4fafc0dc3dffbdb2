# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package of the learning engine.

- config: Settings
- intelligence: Embedding generation
- memory: Skills, episodic memory and learner context
- exercises: Catalog, performance tracking and review scheduling
- recommendations: Multi-strategy recommendation scoring
"""
