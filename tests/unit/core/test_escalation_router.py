"""
Tests for approval escalation routing.
"""

import pytest

from core.hierarchy import (
    ApprovalDecision,
    EscalationRouter,
    EscalationTarget,
    InMemoryMembershipStore,
    MembershipRole,
)


CONTRIBUTOR = MembershipRole.CONTRIBUTOR


@pytest.fixture
def skip_one_store(membership_factory):
    """s -> m1 (inactive admin) -> m2 (active admin)."""
    return InMemoryMembershipStore([
        membership_factory("m2"),
        membership_factory("m1", manager_id="m2", is_active=False),
        membership_factory("s", manager_id="m1", role=CONTRIBUTOR),
    ])


class TestFindAvailableManager:

    @pytest.mark.asyncio
    async def test_direct_manager_available(self, root_sub_leaf_store):
        router = EscalationRouter(root_sub_leaf_store)

        target = await router.find_available_manager("leaf")

        assert target == EscalationTarget(manager_id="sub", level=1, escalated=False)

    @pytest.mark.asyncio
    async def test_skips_inactive_manager(self, skip_one_store):
        router = EscalationRouter(skip_one_store)

        target = await router.find_available_manager("s")

        assert target == EscalationTarget(manager_id="m2", level=2, escalated=True)

    @pytest.mark.asyncio
    async def test_skips_non_admin_manager(self, membership_factory):
        store = InMemoryMembershipStore([
            membership_factory("top"),
            membership_factory("lead", manager_id="top", role=CONTRIBUTOR),
            membership_factory("s", manager_id="lead", role=CONTRIBUTOR),
        ])
        router = EscalationRouter(store)

        target = await router.find_available_manager("s")

        assert target == EscalationTarget(manager_id="top", level=2, escalated=True)

    @pytest.mark.asyncio
    async def test_chain_ends_without_admin(self, membership_factory):
        store = InMemoryMembershipStore([
            membership_factory("m1", is_active=False),
            membership_factory("s", manager_id="m1", role=CONTRIBUTOR),
        ])
        router = EscalationRouter(store)

        assert await router.find_available_manager("s") is None

    @pytest.mark.asyncio
    async def test_no_manager_or_membership(self, root_sub_leaf_store):
        router = EscalationRouter(root_sub_leaf_store)

        assert await router.find_available_manager("root") is None
        assert await router.find_available_manager("ghost") is None

    @pytest.mark.asyncio
    async def test_dangling_manager_reference(self, membership_factory):
        store = InMemoryMembershipStore([
            membership_factory("s", manager_id="deleted", role=CONTRIBUTOR),
        ])
        router = EscalationRouter(store)

        assert await router.find_available_manager("s") is None

    @pytest.mark.asyncio
    async def test_hop_cap(self, membership_factory):
        # Five inactive managers, then an active admin at level 6
        members = [membership_factory("top")]
        previous = "top"
        for i in range(5, 0, -1):
            members.append(membership_factory(f"m{i}", manager_id=previous, is_active=False))
            previous = f"m{i}"
        members.append(membership_factory("s", manager_id="m1", role=CONTRIBUTOR))
        store = InMemoryMembershipStore(members)

        assert await EscalationRouter(store, max_hops=5).find_available_manager("s") is None
        assert await EscalationRouter(store, max_hops=6).find_available_manager("s") == (
            EscalationTarget(manager_id="top", level=6, escalated=True)
        )

    @pytest.mark.asyncio
    async def test_cycle_of_unavailable_managers_terminates(self, membership_factory):
        store = InMemoryMembershipStore([
            membership_factory("a", manager_id="b", is_active=False),
            membership_factory("b", manager_id="a", is_active=False),
            membership_factory("s", manager_id="a", role=CONTRIBUTOR),
        ])
        router = EscalationRouter(store)

        assert await router.find_available_manager("s") is None

    @pytest.mark.asyncio
    async def test_submitter_is_never_own_approver(self, membership_factory):
        store = InMemoryMembershipStore([
            membership_factory("x", manager_id="y"),
            membership_factory("y", manager_id="x", is_active=False),
        ])
        router = EscalationRouter(store)

        assert await router.find_available_manager("x") is None

    @pytest.mark.asyncio
    async def test_self_managed_admin_has_no_approver(self, membership_factory):
        store = InMemoryMembershipStore([membership_factory("s", manager_id="s")])
        router = EscalationRouter(store)

        assert await router.find_available_manager("s") is None

    @pytest.mark.asyncio
    async def test_never_returns_inactive_or_non_admin(self, membership_factory):
        store = InMemoryMembershipStore([
            membership_factory("a", role=CONTRIBUTOR),
            membership_factory("b", manager_id="a", is_active=False),
            membership_factory("c", manager_id="b", role=CONTRIBUTOR),
            membership_factory("d", manager_id="c", role=CONTRIBUTOR),
        ])
        router = EscalationRouter(store)

        for user_id in ("a", "b", "c", "d"):
            assert await router.find_available_manager(user_id) is None


class TestCanApprove:

    @pytest.mark.asyncio
    async def test_direct_manager(self, root_sub_leaf_store):
        router = EscalationRouter(root_sub_leaf_store)

        decision = await router.can_approve("sub", "leaf")

        assert decision == ApprovalDecision(can_approve=True, is_escalated=False, level=1)

    @pytest.mark.asyncio
    async def test_escalated_manager(self, skip_one_store):
        router = EscalationRouter(skip_one_store)

        decision = await router.can_approve("m2", "s")

        assert decision == ApprovalDecision(can_approve=True, is_escalated=True, level=2)

    @pytest.mark.asyncio
    async def test_grand_manager_without_escalation_denied(self, root_sub_leaf_store):
        router = EscalationRouter(root_sub_leaf_store)

        decision = await router.can_approve("root", "leaf")

        assert decision.can_approve is False
        assert decision.is_escalated is False
        assert decision.level == 1

    @pytest.mark.asyncio
    async def test_unrelated_user_denied(self, skip_one_store):
        router = EscalationRouter(skip_one_store)

        for approver in ("s", "stranger"):
            decision = await router.can_approve(approver, "s")
            assert decision.can_approve is False

    @pytest.mark.asyncio
    async def test_no_approver_available(self, membership_factory):
        store = InMemoryMembershipStore([membership_factory("s", role=CONTRIBUTOR)])
        router = EscalationRouter(store)

        decision = await router.can_approve("anyone", "s")

        assert decision == ApprovalDecision(can_approve=False, is_escalated=False, level=0)


class TestManagerVisibleSubmitters:

    @pytest.mark.asyncio
    async def test_direct_reports(self, root_sub_leaf_store):
        router = EscalationRouter(root_sub_leaf_store)

        submitters = await router.manager_visible_submitters("sub")

        assert submitters.direct_reports == {"leaf"}
        assert submitters.escalated_users == frozenset()
        assert submitters.all_user_ids == {"leaf"}

    @pytest.mark.asyncio
    async def test_escalated_users(self, membership_factory):
        store = InMemoryMembershipStore([
            membership_factory("m2"),
            membership_factory("m1", manager_id="m2", is_active=False),
            membership_factory("s1", manager_id="m1", role=CONTRIBUTOR),
            membership_factory("s2", manager_id="m1", role=CONTRIBUTOR),
            membership_factory("r", manager_id="m2", role=CONTRIBUTOR),
        ])
        router = EscalationRouter(store)

        submitters = await router.manager_visible_submitters("m2")

        assert submitters.direct_reports == {"r"}
        assert submitters.escalated_users == {"s1", "s2"}
        assert submitters.all_user_ids == {"r", "s1", "s2"}

    @pytest.mark.asyncio
    async def test_self_reference_excluded(self, membership_factory):
        store = InMemoryMembershipStore([membership_factory("loop", manager_id="loop")])
        router = EscalationRouter(store)

        submitters = await router.manager_visible_submitters("loop")

        assert submitters.all_user_ids == frozenset()
