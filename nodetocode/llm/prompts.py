"""Prompt template library for graph-to-code translation.

Responsibilities:
- Centralize the translation system prompt and user prompt framing.
- Define the structured response schema requested from capable models.
"""

from __future__ import annotations

import copy
from typing import Any


_SUPPORTED_TARGET_LANGUAGES = ("cpp", "python", "javascript", "csharp", "swift", "pseudocode")

_RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "graphs": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "graph_name": {"type": "string"},
                    "graph_type": {"type": "string"},
                    "graph_class": {"type": "string"},
                    "code": {
                        "type": "object",
                        "properties": {
                            "graphDeclaration": {"type": "string"},
                            "graphImplementation": {"type": "string"},
                            "implementationNotes": {"type": "string"},
                        },
                        "required": [
                            "graphDeclaration",
                            "graphImplementation",
                            "implementationNotes",
                        ],
                        "additionalProperties": False,
                    },
                },
                "required": ["graph_name", "graph_type", "graph_class", "code"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["graphs"],
    "additionalProperties": False,
}


def translation_response_schema() -> dict[str, Any]:
    """Return a fresh copy of the structured translation response schema."""

    return copy.deepcopy(_RESPONSE_SCHEMA)


class PromptLibrary:
    """Build prompt strings for graph translation requests."""

    def translation_system_prompt(self, target_language: str = "cpp") -> str:
        """Return the system prompt instructing the model how to translate graphs."""

        language = self.normalize_language(target_language)
        return (
            "You are an expert programmer translating visual scripting graphs into "
            f"idiomatic {language} source code. The input is a JSON description of "
            "nodes, pins and execution/data links. Preserve the execution order and "
            "data flow exactly, keep variable and function names recognisable, and "
            "do not invent behavior the graph does not express.\n"
            "Respond with a single JSON object of the form "
            '{"graphs": [{"graph_name": ..., "graph_type": ..., "graph_class": ..., '
            '"code": {"graphDeclaration": ..., "graphImplementation": ..., '
            '"implementationNotes": ...}}]} and nothing else.'
        )

    def translate_graph_prompt(self, graph_json: str) -> str:
        """Return the user prompt wrapping a serialized graph."""

        return f"Translate the following graph into code.\n\n{graph_json.strip()}"

    @staticmethod
    def normalize_language(target_language: str) -> str:
        """Validate and normalize a target language token."""

        token = target_language.strip().lower()
        if token not in _SUPPORTED_TARGET_LANGUAGES:
            supported = ", ".join(_SUPPORTED_TARGET_LANGUAGES)
            raise ValueError(
                f"Unsupported target language `{target_language}`; supported: {supported}."
            )
        return token
