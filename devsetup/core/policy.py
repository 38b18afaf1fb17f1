"""
Policy filter — allow/block rules for tools and editors.

Pure: builds results, never logs and never touches the context. The
pipeline decides what to do with the decision.

Rules, in order:
    1. identifier in blocklist        → rejected, recorded as skipped
    2. allowlist set and not in it    → rejected silently
    3. otherwise                      → accepted
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from devsetup.core.models.setup import Candidate, Policy
from devsetup.core.models.task import TaskResult

BLOCKED_MESSAGE = "Blocked by policy"


@dataclass
class PolicyDecision:
    """Outcome of filtering a candidate list."""

    accepted: list[Candidate] = field(default_factory=list)
    blocked: list[TaskResult] = field(default_factory=list)
    excluded: list[Candidate] = field(default_factory=list)

    @property
    def accepted_ids(self) -> list[str]:
        return [c.identifier for c in self.accepted]

    def blocked_result_for(self, candidate: Candidate) -> TaskResult | None:
        for result in self.blocked:
            if result.name == candidate.task_name:
                return result
        return None


class PolicyFilter:
    """Apply a Policy to candidates."""

    def evaluate(self, candidate: Candidate, policy: Policy) -> str:
        """Return ``"blocked"``, ``"excluded"`` or ``"accepted"``."""
        if policy.is_blocked(candidate.identifier):
            return "blocked"
        if not policy.is_allowed(candidate.identifier):
            return "excluded"
        return "accepted"

    def filter(self, candidates: Iterable[Candidate], policy: Policy) -> PolicyDecision:
        decision = PolicyDecision()
        for candidate in candidates:
            verdict = self.evaluate(candidate, policy)
            if verdict == "blocked":
                decision.blocked.append(TaskResult.skip(candidate.task_name, BLOCKED_MESSAGE))
            elif verdict == "excluded":
                decision.excluded.append(candidate)
            else:
                decision.accepted.append(candidate)
        return decision
