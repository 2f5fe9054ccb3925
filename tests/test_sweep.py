import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from conftest import BOT_ADMIN, RESTRICTED_CHANNEL, FakeGateway, make_event
from linkguard.gateway.discord_gateway import DiscordGateway
from linkguard.gateway.errors import AlreadyGone, PlatformTransient
from linkguard.moderation.datatypes import DecisionReason, SweepResult, SweepStatus
from linkguard.moderation.sweep import (
    InvalidSweepArgument,
    SweepCoordinator,
    classify_for_sweep,
    parse_sweep_command,
)


def _history():
    return [
        make_event(message_id=1, body="http://a.com"),
        make_event(message_id=2, body="hello"),
        make_event(message_id=3, body="www.b.com", is_bot=True),
        make_event(message_id=4, body="https://c.com", admin=True),
        make_event(message_id=5, body="HTTPS://D.COM", author_id=77),
    ]


class TestParseSweepCommand:
    @pytest.mark.parametrize("content,expected", [(".check 10", 10), (".CHECK 1", 1), ("  .check   100 ", 100), (".check 0", 0)])
    def test_parses_count(self, content, expected):
        assert parse_sweep_command(content) == expected

    @pytest.mark.parametrize("content", ["hello", ".checking 5", "check 5", "", "!ping"])
    def test_non_commands_return_none(self, content):
        assert parse_sweep_command(content) is None

    @pytest.mark.parametrize("content", [".check", ".check abc", ".check 5 extra", ".check 1.5"])
    def test_bad_arguments_raise(self, content):
        with pytest.raises(InvalidSweepArgument):
            parse_sweep_command(content)


def test_classify_for_sweep_reasons():
    assert classify_for_sweep(make_event(is_bot=True)).reason is DecisionReason.BOT_AUTHOR
    assert classify_for_sweep(make_event(body="nothing")).reason is DecisionReason.NO_LINK_FOUND
    assert classify_for_sweep(make_event(admin=True)).reason is DecisionReason.PRIVILEGED_ACTOR
    decision = classify_for_sweep(make_event())
    assert decision.reason is DecisionReason.DELETED
    assert decision.should_delete is True
    assert decision.should_warn is False


@pytest.mark.asyncio
async def test_unauthorized_requester_touches_nothing(config):
    gateway = FakeGateway(_history())
    sweeper = SweepCoordinator(gateway, config, sleep=AsyncMock())

    result = await sweeper.sweep(RESTRICTED_CHANNEL, 10, requester_id=12345)

    assert result.status is SweepStatus.UNAUTHORIZED
    assert gateway.platform_calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, 101, -5])
async def test_out_of_range_count_is_invalid(config, count):
    gateway = FakeGateway(_history())
    sweeper = SweepCoordinator(gateway, config, sleep=AsyncMock())

    result = await sweeper.sweep(RESTRICTED_CHANNEL, count, BOT_ADMIN)

    assert result.status is SweepStatus.INVALID_ARGUMENT
    assert gateway.platform_calls == 0


@pytest.mark.asyncio
async def test_sweep_deletes_only_eligible_link_messages(config):
    gateway = FakeGateway(_history())
    sleep = AsyncMock()
    sweeper = SweepCoordinator(gateway, config, sleep=sleep)

    result = await sweeper.sweep(RESTRICTED_CHANNEL, 10, BOT_ADMIN)

    assert result == SweepResult(status=SweepStatus.COMPLETED, deleted_count=2, scanned=10)
    assert gateway.fetches == [(RESTRICTED_CHANNEL, 10)]
    assert [message_id for _, message_id in gateway.deleted] == [1, 5]
    # One pause between the two deletions.
    sleep.assert_awaited_once_with(config.sweep_delete_delay_seconds)


@pytest.mark.asyncio
async def test_sweep_through_discord_gateway_spares_admin_history(config):
    def history_message(message_id, author, content):
        return SimpleNamespace(id=message_id, channel=SimpleNamespace(id=RESTRICTED_CHANNEL), author=author, content=content)

    def user(user_id):
        author = MagicMock(spec=discord.User)
        author.id = user_id
        author.bot = False
        return author

    admin = MagicMock(spec=discord.Member)
    admin.id = 3
    admin.bot = False
    admin.guild_permissions.administrator = True
    regular = MagicMock(spec=discord.Member)
    regular.id = 4
    regular.bot = False
    regular.guild_permissions.administrator = False
    members = {3: admin, 4: regular}

    messages = [
        history_message(1, user(3), "https://admin.example"),
        history_message(2, user(4), "https://spam.example"),
        history_message(3, user(4), "no link here"),
    ]

    guild = SimpleNamespace(get_member=MagicMock(return_value=None), fetch_member=AsyncMock(side_effect=members.get))

    async def iterate():
        for message in messages:
            yield message

    channel = SimpleNamespace(guild=guild, history=MagicMock(return_value=iterate()))
    bot = MagicMock()
    bot.get_channel.return_value = channel
    partial = bot.get_partial_messageable.return_value.get_partial_message
    partial.return_value.delete = AsyncMock()

    sweeper = SweepCoordinator(DiscordGateway(bot), config, sleep=AsyncMock())
    result = await sweeper.sweep(RESTRICTED_CHANNEL, 3, BOT_ADMIN)

    assert result.status is SweepStatus.COMPLETED
    assert result.deleted_count == 1
    partial.assert_called_once_with(2)


@pytest.mark.asyncio
async def test_scanned_count_is_per_call(config):
    gateway = FakeGateway(_history())
    sweeper = SweepCoordinator(gateway, config, sleep=AsyncMock())

    first = await sweeper.sweep(RESTRICTED_CHANNEL, 10, BOT_ADMIN)
    second = await sweeper.sweep(RESTRICTED_CHANNEL, 10, BOT_ADMIN)

    assert first.scanned == 10
    assert second.scanned == 10


@pytest.mark.asyncio
async def test_deletion_failures_are_skipped(config):
    history = [make_event(message_id=i, body=f"http://{i}.com") for i in range(1, 5)]
    gateway = FakeGateway(
        history,
        delete_errors={2: PlatformTransient("rate limited"), 3: AlreadyGone("gone")},
    )
    sweeper = SweepCoordinator(gateway, config, sleep=AsyncMock())

    result = await sweeper.sweep(RESTRICTED_CHANNEL, 4, BOT_ADMIN)

    assert result.status is SweepStatus.COMPLETED
    assert result.deleted_count == 2
    assert [message_id for _, message_id in gateway.deleted] == [1, 4]


@pytest.mark.asyncio
async def test_fetch_failure_reports_failed(config):
    gateway = FakeGateway(fetch_error=PlatformTransient("boom"))
    sweeper = SweepCoordinator(gateway, config, sleep=AsyncMock())

    result = await sweeper.sweep(RESTRICTED_CHANNEL, 10, BOT_ADMIN)

    assert result.status is SweepStatus.FAILED
    assert gateway.deleted == []


@pytest.mark.asyncio
async def test_sweeps_of_same_channel_are_serialized(config):
    gate = asyncio.Event()
    active = 0
    max_active = 0

    class SlowGateway(FakeGateway):
        async def fetch_recent_messages(self, channel_id, limit, **kwargs):
            nonlocal active, max_active
            active += 1
            max_active = max(max_active, active)
            await gate.wait()
            active -= 1
            return await super().fetch_recent_messages(channel_id, limit, **kwargs)

    gateway = SlowGateway(_history())
    sweeper = SweepCoordinator(gateway, config, sleep=AsyncMock())

    first = asyncio.create_task(sweeper.sweep(RESTRICTED_CHANNEL, 5, BOT_ADMIN))
    second = asyncio.create_task(sweeper.sweep(RESTRICTED_CHANNEL, 5, BOT_ADMIN))
    await asyncio.sleep(0.01)

    assert sweeper.is_running(RESTRICTED_CHANNEL)
    gate.set()
    results = await asyncio.gather(first, second)

    assert max_active == 1
    assert [r.status for r in results] == [SweepStatus.COMPLETED, SweepStatus.COMPLETED]
    assert not sweeper.is_running(RESTRICTED_CHANNEL)
    assert sweeper._channel_locks == {}


@pytest.mark.asyncio
async def test_channel_locks_are_released_after_sweeps(config):
    gateway = FakeGateway(_history())
    sweeper = SweepCoordinator(gateway, config, sleep=AsyncMock())

    for channel_id in range(1, 6):
        await sweeper.sweep(channel_id, 5, BOT_ADMIN)
    gateway.fetch_error = PlatformTransient("boom")
    await sweeper.sweep(6, 5, BOT_ADMIN)

    assert sweeper._channel_locks == {}
    assert sweeper._lock_users == {}


def test_summary_distinguishes_zero_and_nonzero():
    none_deleted = SweepResult(status=SweepStatus.COMPLETED, deleted_count=0, scanned=10).summary()
    one_deleted = SweepResult(status=SweepStatus.COMPLETED, deleted_count=1, scanned=10).summary()
    many_deleted = SweepResult(status=SweepStatus.COMPLETED, deleted_count=3, scanned=10).summary()

    assert "No links found" in none_deleted
    assert "deleted 1 message " in one_deleted
    assert "deleted 3 messages" in many_deleted
    assert "permission" in SweepResult(status=SweepStatus.UNAUTHORIZED).summary()
    assert "Usage" in SweepResult(status=SweepStatus.INVALID_ARGUMENT).summary()
