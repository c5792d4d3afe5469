"""Extraction of <prd_update> blocks from assistant output."""

import re

PRD_UPDATE_OPEN = "<prd_update>"
PRD_UPDATE_CLOSE = "</prd_update>"

# Non-greedy with DOTALL: spans newlines, stops at the first closing tag
_PRD_UPDATE_RE = re.compile(
    re.escape(PRD_UPDATE_OPEN) + r"(.*?)" + re.escape(PRD_UPDATE_CLOSE), re.DOTALL
)


def extract_prd_update(response: str) -> str | None:
    """
    Extract the suggested PRD update from an assistant response.

    Only the first <prd_update>...</prd_update> block is recognized; later
    blocks are ignored.

    Args:
        response: Full assistant response text

    Returns:
        Trimmed block payload, or None when no complete block is present
        or the first block is blank
    """
    match = _PRD_UPDATE_RE.search(response)
    if not match:
        return None
    return match.group(1).strip() or None
