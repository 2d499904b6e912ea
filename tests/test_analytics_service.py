"""Tests for the conversation analytics service."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from chatpulse.domain.errors import AnalyticsInputError
from chatpulse.domain.services.metrics_assembler import ConversationAnalyticsService
from chatpulse.domain.services.visibility import Role, RoleResolver
from chatpulse.persistence.database import Database

DAY = "2024-03-04"
MORNING = datetime(2024, 3, 4, 9, 0)


@pytest.fixture
async def support_org(seed):
    """An organization with an admin, two agents, a placeholder profile and three chats."""
    org = await seed.organization(timezone="America/Sao_Paulo")
    other = await seed.organization("Other")
    agent_role = await seed.role("Agente", org.id)
    admin_role = await seed.role("Admin", org.id)

    admin = await seed.profile(org.id, "Gestora", role=admin_role)
    ana = await seed.profile(org.id, "Ana", role=agent_role, department="Vendas", is_online=True)
    bruno = await seed.profile(org.id, "Bruno", role=agent_role, department="Suporte")
    idle = await seed.profile(org.id, "Carla", role=agent_role)
    await seed.profile(org.id, "Usuario Exemplo", role=agent_role, email="exemplo@acme.io")
    await seed.team(org.id, "Vendas")
    await seed.team(org.id, "Suporte")
    await seed.team(org.id, "Financeiro")

    ana_open = await seed.chat(org.id, assigned_agent_id=ana.id, status="active", name="Maria")
    ana_done = await seed.chat(org.id, assigned_agent_id=ana.id, status="finished")
    bruno_chat = await seed.chat(
        org.id, assigned_agent_id=bruno.id, status="pending", whatsapp_jid="5511999990003@s.whatsapp.net"
    )

    for chat, offset in ((ana_open, 0), (ana_done, 60), (bruno_chat, 120)):
        start = MORNING + timedelta(minutes=offset)
        await seed.message(chat, start, is_from_me=False, sender_name="Cliente")
        await seed.message(chat, start + timedelta(minutes=2), is_from_me=True, user_id=chat.assigned_agent_id)
    await seed.message(bruno_chat, MORNING + timedelta(hours=3), is_from_me=False, content="péssimo")
    await seed.chat_analytics(ana_done, resolution_status="resolved", customer_satisfaction=5)

    # Another organization's traffic must never show up
    foreign_chat = await seed.chat(other.id)
    await seed.message(foreign_chat, MORNING, is_from_me=False)

    return {
        "org": org,
        "admin": admin,
        "ana": ana,
        "bruno": bruno,
        "idle": idle,
        "ana_open": ana_open,
        "ana_done": ana_done,
        "bruno_chat": bruno_chat,
    }


class TestDashboard:
    @pytest.mark.asyncio
    async def test_admin_sees_whole_organization(self, database, support_org):
        service = ConversationAnalyticsService(database)

        payload = await service.build_dashboard(
            support_org["org"].id, support_org["admin"].id, date_start=DAY, date_end=DAY
        )

        totals = payload["global"]
        assert totals["total_messages"] == 7
        assert totals["sent_messages"] == 3
        assert totals["received_messages"] == 4
        assert totals["total_conversations"] == 3
        assert totals["active_conversations"] == 2
        assert totals["finished_conversations"] == 1
        assert totals["avg_response_time"] == 120
        assert totals["total_teams"] == 2
        assert totals["active_users"] == 1
        assert totals["is_complete"] is True
        assert payload["scope"] == {"role": "admin", "is_agent": False}

        assert payload["period"]["granularity"] == "hourly"
        assert len(payload["trends"]) == 24
        assert sum(point["messages"] for point in payload["trends"]) == 7
        assert len(payload["heatmap"]) == 168
        assert sum(cell["value"] for cell in payload["heatmap"]) == 7

        users = {user["name"]: user for user in payload["users"]}
        assert users["Carla"]["productivity_score"] is None
        assert users["Ana"]["total_conversations"] == 2
        scored = [user["productivity_score"] for user in payload["users"] if user["productivity_score"] is not None]
        # Ana: 50*0.4 + 100*0.3 + 98*0.2 + 20*0.1; Bruno: 0 + 25*0.3 + 98*0.2 + 10*0.1
        assert users["Ana"]["productivity_score"] == 72
        assert users["Bruno"]["productivity_score"] == 28
        assert payload["productivity"]["scored_agents"] == len(scored) == 2
        assert totals["productivity"] == 50
        assert payload["productivity"]["max_messages"] == 2
        assert payload["productivity"]["average_messages_per_day"] == 7

    @pytest.mark.asyncio
    async def test_agent_sees_only_assigned_chats(self, database, support_org):
        service = ConversationAnalyticsService(database)

        payload = await service.build_dashboard(
            support_org["org"].id,
            support_org["ana"].id,
            date_start=DAY,
            date_end=DAY,
            selected_user=support_org["bruno"].id,
        )

        assert payload["scope"] == {"role": "agent", "is_agent": True}
        assert payload["global"]["total_messages"] == 4
        assert payload["global"]["total_conversations"] == 2
        assert [user["name"] for user in payload["users"]] == ["Ana"]
        assert sum(cell["value"] for cell in payload["heatmap"]) == 4
        assert sum(point["messages"] for point in payload["trends"]) == 4

    @pytest.mark.asyncio
    async def test_agent_without_chats_gets_empty_result(self, database, support_org):
        service = ConversationAnalyticsService(database)

        payload = await service.build_dashboard(
            support_org["org"].id, support_org["idle"].id, date_start=DAY, date_end=DAY
        )

        assert payload["global"]["total_messages"] == 0
        assert payload["global"]["total_conversations"] == 0
        assert all(cell["value"] == 0 for cell in payload["heatmap"])
        assert [user["name"] for user in payload["users"]] == ["Carla"]

    @pytest.mark.asyncio
    async def test_unknown_role_is_scoped_like_an_agent(self, database, seed, support_org):
        nobody = await seed.profile(support_org["org"].id, "Sem Papel")
        service = ConversationAnalyticsService(database)

        payload = await service.build_dashboard(support_org["org"].id, nobody.id, date_start=DAY, date_end=DAY)

        assert payload["scope"] == {"role": "unknown", "is_agent": True}
        assert payload["global"]["total_messages"] == 0

    @pytest.mark.asyncio
    async def test_manager_can_narrow_to_one_agent(self, database, support_org):
        service = ConversationAnalyticsService(database)

        payload = await service.build_dashboard(
            support_org["org"].id,
            support_org["admin"].id,
            date_start=DAY,
            date_end=DAY,
            selected_user=str(support_org["bruno"].id),
        )

        assert payload["global"]["total_messages"] == 3
        assert [user["name"] for user in payload["users"]] == ["Bruno"]

    @pytest.mark.asyncio
    async def test_store_failure_yields_zero_payload(self, broken_database):
        resolver = AsyncMock(spec=RoleResolver)
        resolver.resolve.return_value = Role.ADMIN
        service = ConversationAnalyticsService(broken_database, role_resolver=resolver)

        payload = await service.build_dashboard(1, 1, date_start=DAY, date_end=DAY)

        assert payload["global"]["total_messages"] == 0
        assert payload["global"]["productivity"] == 0
        assert payload["global"]["is_complete"] is False
        assert payload["users"] == []
        assert len(payload["heatmap"]) == 168
        assert all(cell["value"] == 0 for cell in payload["heatmap"])
        assert len(payload["trends"]) == 24
        assert all(point["messages"] == 0 for point in payload["trends"])

    @pytest.mark.asyncio
    async def test_unreachable_store_yields_zero_payload(self, unreachable_database):
        service = ConversationAnalyticsService(unreachable_database)

        payload = await service.build_dashboard(1, 1, date_start=DAY, date_end=DAY)

        assert payload["global"]["total_messages"] == 0
        assert payload["global"]["is_complete"] is False
        assert payload["scope"] == {"role": "unknown", "is_agent": True}
        assert payload["users"] == []
        assert len(payload["heatmap"]) == 168
        assert all(cell["value"] == 0 for cell in payload["heatmap"])
        assert all(point["messages"] == 0 for point in payload["trends"])

    @pytest.mark.asyncio
    async def test_closed_database_yields_zero_payload(self, database_url):
        service = ConversationAnalyticsService(Database(database_url))

        payload = await service.build_dashboard(1, 1, date_start=DAY, date_end=DAY)
        report = await service.build_contact_report(1, 1, date_start=DAY, date_end=DAY)

        assert payload["global"]["total_messages"] == 0
        assert payload["global"]["is_complete"] is False
        assert report["summary"]["total_unique_contacts"] == 0
        assert report["is_complete"] is False

    @pytest.mark.asyncio
    async def test_missing_organization_is_rejected(self, database):
        service = ConversationAnalyticsService(database)

        with pytest.raises(AnalyticsInputError):
            await service.build_dashboard(None, 1)
        with pytest.raises(AnalyticsInputError):
            await service.build_dashboard("abc", 1)

    @pytest.mark.asyncio
    async def test_bad_selected_user_is_rejected(self, database, support_org):
        service = ConversationAnalyticsService(database)

        with pytest.raises(AnalyticsInputError):
            await service.build_dashboard(support_org["org"].id, support_org["admin"].id, selected_user="bruno")


class TestSections:
    @pytest.mark.asyncio
    async def test_heatmap_in_organization_timezone(self, database, support_org):
        service = ConversationAnalyticsService(database)

        payload = await service.build_heatmap(
            support_org["org"].id, support_org["admin"].id, date_start=DAY, date_end=DAY
        )

        values = {(cell["day_of_week"], cell["hour"]): cell["value"] for cell in payload["heatmap"]}
        assert payload["timezone"] == "America/Sao_Paulo"
        # 09:00 UTC Monday is 06:00 in Sao Paulo
        assert values[(1, 6)] == 2
        assert values[(1, 9)] == 1
        assert sum(values.values()) == 7

    @pytest.mark.asyncio
    async def test_trends_with_granularity_override(self, database, support_org):
        service = ConversationAnalyticsService(database)

        payload = await service.build_trends(
            support_org["org"].id, support_org["admin"].id, date_start=DAY, date_end=DAY, granularity="daily"
        )

        assert payload["trends"] == [
            {
                "period_label": DAY,
                "messages": 7,
                "sent_messages": 3,
                "received_messages": 4,
                "active_users": 3,
                "avg_response_time": 120,
            }
        ]

    @pytest.mark.asyncio
    async def test_agent_metrics_exclude_placeholders(self, database, support_org):
        service = ConversationAnalyticsService(database)

        payload = await service.build_agent_metrics(
            support_org["org"].id, support_org["admin"].id, date_start=DAY, date_end=DAY
        )

        names = [agent["name"] for agent in payload["agents"]]
        assert "Usuario Exemplo" not in names
        assert payload["totals"]["total_agents"] == len(names) == 4
        assert payload["totals"]["online_agents"] == 1
        assert payload["totals"]["offline_agents"] == 3

        with_placeholders = await service.build_agent_metrics(
            support_org["org"].id,
            support_org["admin"].id,
            date_start=DAY,
            date_end=DAY,
            include_placeholders=True,
        )
        assert with_placeholders["totals"]["total_agents"] == 5

    @pytest.mark.asyncio
    async def test_resolved_analytics_feed_agent_score(self, database, support_org):
        service = ConversationAnalyticsService(database)

        payload = await service.build_agent_metrics(
            support_org["org"].id, support_org["ana"].id, date_start=DAY, date_end=DAY
        )

        [ana] = payload["agents"]
        assert ana["resolution_rate"] == 50
        assert ana["customer_satisfaction"] == 100
        assert ana["avg_response_time_seconds"] == 120

    @pytest.mark.asyncio
    async def test_contact_report_skips_blacklisted_numbers(self, database, seed, support_org):
        await seed.blacklist(support_org["org"].id, "5511999990003")
        service = ConversationAnalyticsService(database)

        report = await service.build_contact_report(
            support_org["org"].id, support_org["admin"].id, date_start=DAY, date_end=DAY
        )

        assert report["summary"]["total_unique_contacts"] == 2
        assert report["summary"]["total_messages"] == 4
        assert support_org["bruno_chat"].id not in [c["chat_id"] for c in report["unique_contacts"]]
        assert report["filters"] == {"organization_id": support_org["org"].id, "selected_user": None}


class TestConversationReport:
    @pytest.mark.asyncio
    async def test_admin_lists_every_conversation(self, database, support_org):
        service = ConversationAnalyticsService(database)

        report = await service.build_conversation_report(
            support_org["org"].id, support_org["admin"].id, date_start=DAY, date_end=DAY
        )

        assert report["total"] == 3
        assert report["is_complete"] is True
        rows = {row["chat_id"]: row for row in report["conversations"]}
        assert rows[support_org["ana_open"].id]["name"] == "Maria"
        assert rows[support_org["ana_open"].id]["agent_name"] == "Ana"
        assert rows[support_org["ana_done"].id]["status"] == "closed"
        assert rows[support_org["bruno_chat"].id]["total_messages"] == 3
        assert rows[support_org["bruno_chat"].id]["sentiment"]["negative"] == 1
        assert report["filters"]["statuses"] is None

    @pytest.mark.asyncio
    async def test_filters_narrow_the_report(self, database, support_org):
        service = ConversationAnalyticsService(database)
        org_id, admin_id = support_org["org"].id, support_org["admin"].id

        closed = await service.build_conversation_report(
            org_id, admin_id, date_start=DAY, date_end=DAY, statuses="closed"
        )
        by_keyword = await service.build_conversation_report(
            org_id, admin_id, date_start=DAY, date_end=DAY, keywords="PÉSSIMO"
        )
        by_agent = await service.build_conversation_report(
            org_id, admin_id, date_start=DAY, date_end=DAY, agents=str(support_org["bruno"].id)
        )

        assert [row["chat_id"] for row in closed["conversations"]] == [support_org["ana_done"].id]
        assert closed["filters"]["statuses"] == ["closed"]
        assert [row["chat_id"] for row in by_keyword["conversations"]] == [support_org["bruno_chat"].id]
        assert [row["chat_id"] for row in by_agent["conversations"]] == [support_org["bruno_chat"].id]

    @pytest.mark.asyncio
    async def test_agent_sees_only_assigned_conversations(self, database, support_org):
        service = ConversationAnalyticsService(database)
        org_id, ana_id = support_org["org"].id, support_org["ana"].id

        report = await service.build_conversation_report(org_id, ana_id, date_start=DAY, date_end=DAY)
        asking_for_bruno = await service.build_conversation_report(
            org_id, ana_id, date_start=DAY, date_end=DAY, agents=str(support_org["bruno"].id)
        )

        assert report["scope"] == {"role": "agent", "is_agent": True}
        assert [row["chat_id"] for row in report["conversations"]] == [
            support_org["ana_open"].id,
            support_org["ana_done"].id,
        ]
        assert asking_for_bruno["total"] == 0

    @pytest.mark.asyncio
    async def test_blacklisted_numbers_are_left_out(self, database, seed, support_org):
        await seed.blacklist(support_org["org"].id, "5511999990003")
        service = ConversationAnalyticsService(database)

        report = await service.build_conversation_report(
            support_org["org"].id, support_org["admin"].id, date_start=DAY, date_end=DAY
        )

        assert support_org["bruno_chat"].id not in [row["chat_id"] for row in report["conversations"]]
        assert report["total"] == 2

    @pytest.mark.asyncio
    async def test_unreachable_store_yields_empty_report(self, unreachable_database):
        service = ConversationAnalyticsService(unreachable_database)

        report = await service.build_conversation_report(1, 1, date_start=DAY, date_end=DAY)

        assert report["conversations"] == []
        assert report["is_complete"] is False

    @pytest.mark.asyncio
    async def test_bad_agent_id_is_rejected(self, database, support_org):
        service = ConversationAnalyticsService(database)

        with pytest.raises(AnalyticsInputError):
            await service.build_conversation_report(
                support_org["org"].id, support_org["admin"].id, agents="3,ana"
            )
