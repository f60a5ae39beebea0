"""Replace ``{{key}}`` placeholders in a remote document."""

from __future__ import annotations

import logging

from crm.services.google_docs import DocumentClient

logger = logging.getLogger(__name__)


def placeholder(key: str) -> str:
    return "{{" + key + "}}"


def build_replace_requests(variables: dict[str, str]) -> list[dict]:
    """One case-insensitive replaceAllText request per variable."""
    return [
        {
            "replaceAllText": {
                "containsText": {"text": placeholder(key), "matchCase": False},
                "replaceText": value or "",
            },
        }
        for key, value in variables.items()
    ]


async def substitute_tokens(
    client: DocumentClient,
    document_id: str,
    variables: dict[str, str],
) -> int:
    """Apply every substitution in a single batchUpdate.

    The batch is atomic on the remote side: either all replacements land or
    the call raises. A placeholder missing from the document is a no-op.

    Returns:
        Total number of occurrences replaced across all keys.
    """
    requests = build_replace_requests(variables)
    if not requests:
        return 0

    replies = await client.batch_update(document_id, requests)
    changed = sum(
        (reply.get("replaceAllText") or {}).get("occurrencesChanged", 0)
        for reply in replies
    )
    logger.info(
        "Substituted %d placeholder occurrence(s) for %d key(s) in %s",
        changed, len(requests), document_id,
    )
    return changed
