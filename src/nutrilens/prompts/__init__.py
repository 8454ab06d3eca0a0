from __future__ import annotations

from nutrilens.prompts.synthesis import SYNTHESIS_SYSTEM_PROMPT, SYNTHESIS_USER_TEMPLATE

__all__ = [
    "SYNTHESIS_SYSTEM_PROMPT",
    "SYNTHESIS_USER_TEMPLATE",
]
