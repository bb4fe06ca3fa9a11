"""Prompt assembly helpers for provider payloads.

Responsibilities:
- Prepend reference source files to the user message.
- Merge system and user prompts for models without system-role support.

Both operations are pure string transforms: no file access, no truncation.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from ..models.datatypes import ReferenceFile


MERGE_DELIMITER = "\n\n--- USER REQUEST ---\n\n"
_REFERENCE_HEADER = "Reference source files provided as additional context:"


def _dedupe_by_path(files: Iterable[ReferenceFile]) -> list[ReferenceFile]:
    """Drop later entries whose path was already seen, keeping input order."""

    seen: set[str] = set()
    unique: list[ReferenceFile] = []
    for reference in files:
        if reference.path in seen:
            continue
        seen.add(reference.path)
        unique.append(reference)
    return unique


def _format_reference_file(reference: ReferenceFile) -> str:
    """Render one reference file as a labelled fenced block."""

    return f"// File: {reference.path}\n```\n{reference.content}\n```"


class PromptManager:
    """Merge and augment prompts for a translation request."""

    def __init__(self, reference_files: Sequence[ReferenceFile] = ()) -> None:
        """Initialize the manager with an optional configured reference set."""

        self.reference_files: tuple[ReferenceFile, ...] = tuple(
            _dedupe_by_path(reference_files)
        )

    def prepend_reference_files(
        self,
        files: Iterable[ReferenceFile],
        user_message: str,
    ) -> str:
        """Return the user message with file paths and contents placed ahead of it.

        An empty file set returns `user_message` unchanged.
        """

        unique = _dedupe_by_path(files)
        if not unique:
            return user_message

        blocks = [_REFERENCE_HEADER]
        blocks.extend(_format_reference_file(reference) for reference in unique)
        blocks.append(user_message)
        return "\n\n".join(blocks)

    def prepend_configured_reference_files(self, user_message: str) -> str:
        """Prepend the manager's configured reference set to a user message."""

        return self.prepend_reference_files(self.reference_files, user_message)

    @staticmethod
    def merge(system_prompt: str, user_prompt: str) -> str:
        """Combine system and user prompts into one instruction block.

        System content comes first; both prompts are kept verbatim.
        """

        if not system_prompt:
            return user_prompt
        return f"{system_prompt}{MERGE_DELIMITER}{user_prompt}"
