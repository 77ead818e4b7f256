"""Questionary / prompt_toolkit theme for tmops prompts.

Questionary uses prompt_toolkit under the hood. Destructive confirmations
(purging a container's physical database) share one loud style.
"""

from __future__ import annotations

from prompt_toolkit.styles import Style

QUESTIONARY_STYLE_CONFIRM = Style.from_dict(
    {
        "question": "bold ansibrightred",
        "answer": "bold ansibrightred",
        "pointer": "bold ansibrightred",
        "highlighted": "bold ansibrightred",
        "instruction": "ansibrightblack",
        "error": "bold ansired",
    }
)
