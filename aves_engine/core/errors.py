# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Error taxonomy for the recommendation engine.

Write paths (skill updates, episode recording, attempt recording, exercise
indexing) raise StorageError or PersistError to the caller. Read and
recommendation paths never surface errors: RetrievalDegraded and
ValidationSkip are raised inside components and converted to empty
results there.
"""


class EngineError(Exception):
    """Base exception for engine operations.

    Attributes:
        message: Error description.
        original_error: Original exception if any.
    """

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class StorageError(EngineError):
    """Skill or episode persistence failed. Not retried locally."""


class PersistError(StorageError):
    """The vector store rejected an episode or exercise write."""


class RetrievalDegraded(EngineError):
    """Semantic retrieval was unreachable or returned nothing usable.

    Never propagated past a component boundary; callers treat it as an
    empty result and log a warning.
    """


class ValidationSkip(EngineError):
    """A candidate could not be scored and is dropped from the result set.

    Attributes:
        exercise_id: Identifier of the skipped candidate.
    """

    def __init__(
        self,
        message: str,
        exercise_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.exercise_id = exercise_id
        super().__init__(message, original_error)
