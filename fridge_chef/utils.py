"""Utility functions."""

import re

# Opening fence with an optional language tag (```json, ```JSON, ```) or a closing fence
_CODE_FENCE_RE = re.compile(r"```[A-Za-z0-9_+-]*")


def strip_code_fences(text: str) -> str:
    """
    Remove Markdown ``` fences the model sometimes adds despite being told not to.

    Only the fence markers are dropped; whatever sits between them is kept.
    """
    if not text:
        return ""
    return _CODE_FENCE_RE.sub("", text).strip()
