"""
Domain Resolver — Keyword scoring of a message against the tool catalog.

Responsibility:
- Pick the business domain most relevant to a user message
- Direct domain-name mentions win outright
- Otherwise score tool names (+3) and description words (+1)

Prohibitions:
- No LLM calls
- No catalog mutation
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from registry.catalog import ToolCatalog
from shared.models import ToolInfo

logger = logging.getLogger(__name__)

TOOL_NAME_WEIGHT = 3
DESCRIPTION_WORD_WEIGHT = 1
MIN_DESCRIPTION_WORD_LENGTH = 4


def score_domain(message_lower: str, tools: Sequence[ToolInfo]) -> int:
    """Score one domain's tools against an already lower-cased message."""
    score = 0
    for tool in tools:
        if tool.name and tool.name.lower() in message_lower:
            score += TOOL_NAME_WEIGHT
        if tool.description:
            for word in tool.description.lower().split():
                if len(word) >= MIN_DESCRIPTION_WORD_LENGTH and word in message_lower:
                    score += DESCRIPTION_WORD_WEIGHT
    return score


def resolve_domain(message: str, tools_by_domain: Mapping[str, Sequence[ToolInfo]]) -> str | None:
    """Return the best-matching domain for `message`, or None.

    Domains are visited in mapping order: the first direct mention wins, and
    on equal scores the first scanned domain is kept.
    """
    if not tools_by_domain or not message:
        return None

    message_lower = message.lower()

    for domain in tools_by_domain:
        if domain and domain.lower() in message_lower:
            return domain

    best_domain: str | None = None
    best_score = 0
    for domain, tools in tools_by_domain.items():
        score = score_domain(message_lower, tools)
        if score > best_score:
            best_score = score
            best_domain = domain

    if best_domain is not None:
        logger.debug("Resolved domain '%s' with score %d", best_domain, best_score)
    return best_domain


class DomainResolver:
    """Resolves domains against the live catalog, visiting domains by name order."""

    def __init__(self, catalog: ToolCatalog):
        self.catalog = catalog

    def resolve(self, message: str) -> str | None:
        grouped = self.catalog.tools_grouped_by_domain()
        ordered = {domain: grouped[domain] for domain in sorted(grouped)}
        return resolve_domain(message, ordered)
