"""Aves Learning Engine.

Personalized exercise recommendations and spaced review scheduling for
the Aves ornithology learning platform.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
