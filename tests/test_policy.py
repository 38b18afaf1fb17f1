"""
Tests for the policy filter — block precedence, allowlists, ordering.
"""

from devsetup.core.data.catalog import core_tools_for, editors_for
from devsetup.core.models.setup import Platform, Policy
from devsetup.core.policy import BLOCKED_MESSAGE, PolicyFilter

TOOLS = core_tools_for(Platform.LINUX)
EDITORS = editors_for(Platform.MACOS)


class TestPolicy:
    def test_empty_policy_allows_everything(self):
        policy = Policy()
        assert policy.is_allowed("git")
        assert not policy.is_blocked("git")

    def test_allowlist(self):
        policy = Policy(allowlist=frozenset({"git"}))
        assert policy.is_allowed("git")
        assert not policy.is_allowed("node")


class TestPolicyFilter:
    def test_no_policy(self):
        decision = PolicyFilter().filter(TOOLS, Policy())
        assert decision.accepted == list(TOOLS)
        assert decision.blocked == []
        assert decision.excluded == []

    def test_blocklist(self):
        decision = PolicyFilter().filter(EDITORS, Policy(blocklist=frozenset({"cursor"})))

        assert decision.accepted_ids == ["vscode", "antigravity"]
        assert len(decision.blocked) == 1
        blocked = decision.blocked[0]
        assert blocked.name == "Cursor Installation"
        assert blocked.status == "skipped"
        assert blocked.message == BLOCKED_MESSAGE

    def test_block_takes_precedence(self):
        policy = Policy(allowlist=frozenset({"git", "node"}), blocklist=frozenset({"git"}))
        decision = PolicyFilter().filter(TOOLS, policy)
        assert decision.accepted_ids == ["node"]
        assert [r.name for r in decision.blocked] == ["Git Installation"]

    def test_allowlist_excludes_silently(self):
        decision = PolicyFilter().filter(TOOLS, Policy(allowlist=frozenset({"python"})))
        assert decision.accepted_ids == ["python"]
        assert decision.blocked == []
        assert [c.identifier for c in decision.excluded] == ["git", "node", "graphviz"]

    def test_order_preserved(self):
        reversed_tools = list(reversed(TOOLS))
        decision = PolicyFilter().filter(reversed_tools, Policy(blocklist=frozenset({"node"})))
        assert decision.accepted_ids == ["python", "graphviz", "git"]

    def test_pure(self):
        policy = Policy(blocklist=frozenset({"git"}))
        first = PolicyFilter().filter(TOOLS, policy)
        second = PolicyFilter().filter(TOOLS, policy)
        assert first == second

    def test_blocked_result_lookup(self):
        decision = PolicyFilter().filter(EDITORS, Policy(blocklist=frozenset({"vscode"})))
        assert decision.blocked_result_for(EDITORS[0]).message == BLOCKED_MESSAGE
        assert decision.blocked_result_for(EDITORS[1]) is None

    def test_evaluate(self):
        policy = Policy(allowlist=frozenset({"git", "node"}), blocklist=frozenset({"node"}))
        verdicts = [PolicyFilter().evaluate(c, policy) for c in TOOLS]
        assert verdicts == ["accepted", "blocked", "excluded", "excluded"]
