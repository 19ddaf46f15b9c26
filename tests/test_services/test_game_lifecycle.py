"""Unit tests for the GameService business logic layer.

Tests cover:
    - Game creation (seating, one active game per host, group attachment)
    - Ending a game (forced cash-outs, settlement, side effects)
    - Monotonic game status
    - Listing queries
    - Seating players
    - Game and standalone-game subscriptions
"""

import asyncio
import os

os.environ.setdefault("JWT_SECRET", "test-secret-key-for-unit-tests-only")

import pytest
import pytest_asyncio

from homegame.dal.games_dal import GameDAL
from homegame.dal.groups_dal import GroupDAL
from homegame.dal.invites_dal import InviteDAL
from homegame.dal.subscriptions import ALL_GAMES_TOPIC
from homegame.dal.user_events_dal import UserEventDAL
from homegame.errors import InvalidState, NotFound, Unauthorized
from homegame.models.common import EventType, GameStatus, InviteStatus, PlayerStatus
from homegame.models.invite import GameInvite
from homegame.models.user import Actor
from homegame.services.game_service import GameService
from homegame.services.request_service import RequestService


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def game_dal(test_db, broker) -> GameDAL:
    return GameDAL(test_db, broker=broker)


@pytest_asyncio.fixture
async def invite_dal(test_db, broker) -> InviteDAL:
    return InviteDAL(test_db, broker=broker)


@pytest_asyncio.fixture
async def service(test_db, game_dal, invite_dal) -> GameService:
    return GameService(game_dal, invite_dal, GroupDAL(test_db), UserEventDAL(test_db))


@pytest_asyncio.fixture
async def requests(game_dal, invite_dal) -> RequestService:
    return RequestService(game_dal, invite_dal)


async def _fund(requests, game_id, host, actor, amount):
    request = await requests.submit_buy_in(game_id, actor, amount)
    await requests.approve_buy_in(game_id, request.id, host)


# ---------------------------------------------------------------------------
# Create game
# ---------------------------------------------------------------------------

class TestCreateGame:

    @pytest.mark.asyncio
    async def test_creator_seated_when_no_initial_players(self, service, game_dal, host):
        game = await service.create_game("Friday Night", host)

        stored = await game_dal.get_by_id(game.id)
        assert stored.status == GameStatus.ACTIVE
        assert stored.creator_name == "Hannah"
        assert [p.user_id for p in stored.players] == [host.user_id]
        assert stored.players[0].current_stack == 0
        assert stored.player_ids == [host.user_id]
        [event] = stored.game_history
        assert event.event_type == EventType.GAME_CREATED
        assert event.description == "Game created: Friday Night"

    @pytest.mark.asyncio
    async def test_initial_players_seated_instead(self, service, host, alice, bob):
        game = await service.create_game("Friday", host, initial_players=[alice, bob, alice])

        assert game.player_ids == [alice.user_id, bob.user_id]
        assert all(p.status == PlayerStatus.ACTIVE for p in game.players)

    @pytest.mark.asyncio
    async def test_blinds_and_links_stored(self, service, game_dal, host):
        game = await service.create_game(
            "Linked", host, small_blind=1, big_blind=2, linked_event_id="ev-1"
        )

        stored = await game_dal.get_by_id(game.id)
        assert (stored.small_blind, stored.big_blind) == (1, 2)
        assert stored.linked_event_id == "ev-1"
        assert stored.is_standalone

    @pytest.mark.asyncio
    async def test_host_limited_to_one_active_game(self, service, host):
        await service.create_game("First", host)

        with pytest.raises(InvalidState, match="already have an active game"):
            await service.create_game("Second", host)

    @pytest.mark.asyncio
    async def test_host_may_create_again_after_ending(self, service, host):
        first = await service.create_game("First", host)
        await service.end_game(first.id, host)

        second = await service.create_game("Second", host)

        assert second.status == GameStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_blank_title_rejected(self, service, host):
        with pytest.raises(InvalidState):
            await service.create_game("   ", host)

    @pytest.mark.asyncio
    async def test_group_game_attached_to_group(self, service, test_db, host):
        await test_db.groups.insert_one({"_id": "grp-1", "member_ids": [], "game_ids": []})

        game = await service.create_game("Group Game", host, group_id="grp-1")

        group = await test_db.groups.find_one({"_id": "grp-1"})
        assert group["game_ids"] == [game.id]
        assert not game.is_standalone


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

class TestReads:

    @pytest.mark.asyncio
    async def test_fetch_missing_returns_none(self, service):
        assert await service.fetch_game("nope") is None

    @pytest.mark.asyncio
    async def test_get_missing_raises(self, service):
        with pytest.raises(NotFound, match="Game not found"):
            await service.get_game("nope")

    @pytest.mark.asyncio
    async def test_listings(self, service, host, alice, bob):
        standalone = await service.create_game("Home", host, initial_players=[alice])
        grouped = await service.create_game("Club", bob, initial_players=[alice], group_id="grp")

        hosting = await service.list_active_games_created_by(host.user_id)
        playing = await service.list_active_standalone_games_for_player(alice.user_id)
        in_group = await service.list_active_games_for_group("grp")

        assert [g.id for g in hosting] == [standalone.id]
        assert [g.id for g in playing] == [standalone.id]
        assert [g.id for g in in_group] == [grouped.id]

    @pytest.mark.asyncio
    async def test_listings_skip_completed_games(self, service, host, alice):
        game = await service.create_game("Home", host, initial_players=[alice])
        await service.end_game(game.id, host)

        assert await service.list_active_games_created_by(host.user_id) == []
        assert await service.list_active_standalone_games_for_player(alice.user_id) == []

    @pytest.mark.asyncio
    async def test_listing_skips_malformed_game(self, service, test_db, host):
        await service.create_game("Good", host)
        await test_db.games.insert_one({"_id": "broken", "creator_id": host.user_id, "status": "active"})

        games = await service.list_active_games_created_by(host.user_id)

        assert [g.title for g in games] == ["Good"]


# ---------------------------------------------------------------------------
# Seating
# ---------------------------------------------------------------------------

class TestAddPlayer:

    @pytest.mark.asyncio
    async def test_add_player_is_idempotent(self, service, host):
        game = await service.create_game("Home", host)

        await service.add_player(game.id, host, "u-carol", "Carol")
        updated = await service.add_player(game.id, host, "u-carol", "Carol")

        assert updated.player_ids == [host.user_id, "u-carol"]
        joined = [e for e in updated.game_history if e.event_type == EventType.PLAYER_JOINED]
        assert [e.description for e in joined] == ["Carol joined the game."]

    @pytest.mark.asyncio
    async def test_only_host_adds_players(self, service, host, alice):
        game = await service.create_game("Home", host)

        with pytest.raises(Unauthorized):
            await service.add_player(game.id, alice, "u-carol", "Carol")


# ---------------------------------------------------------------------------
# End game
# ---------------------------------------------------------------------------

class TestEndGame:

    @pytest.mark.asyncio
    async def test_end_cashes_out_everyone_and_settles(self, service, requests, host, alice, bob):
        game = await service.create_game("Home", host, initial_players=[alice, bob])
        await _fund(requests, game.id, host, alice, 100)
        await _fund(requests, game.id, host, bob, 100)
        alice_id = (await service.get_game(game.id)).find_player_by_user(alice.user_id).id
        bob_id = (await service.get_game(game.id)).find_player_by_user(bob.user_id).id
        await requests.update_player_values(game.id, alice_id, host, 170, 100)
        await requests.update_player_values(game.id, bob_id, host, 30, 100)

        ended = await service.end_game(game.id, host)

        assert ended.status == GameStatus.COMPLETED
        assert all(p.status == PlayerStatus.CASHED_OUT for p in ended.players)
        cash_outs = [e for e in ended.game_history if e.event_type == EventType.CASH_OUT]
        assert [e.description for e in cash_outs] == [
            "Alice cashed out $170 (game ended)",
            "Bob cashed out $30 (game ended)",
        ]
        assert ended.game_history[-1].event_type == EventType.GAME_ENDED
        [txn] = ended.settlement_transactions
        assert (txn.from_player, txn.to_player, txn.amount) == ("Bob", "Alice", 70)

    @pytest.mark.asyncio
    async def test_end_twice_fails(self, service, host):
        game = await service.create_game("Home", host)
        await service.end_game(game.id, host)

        with pytest.raises(InvalidState, match="already ended"):
            await service.end_game(game.id, host)

    @pytest.mark.asyncio
    async def test_status_never_returns_to_active(self, service, requests, game_dal, host, alice):
        game = await service.create_game("Home", host, initial_players=[alice])
        await service.end_game(game.id, host)

        with pytest.raises(InvalidState):
            await requests.host_buy_in(game.id, host, 10)
        with pytest.raises(InvalidState):
            await service.add_player(game.id, host, "u-x", "X")

        stored = await game_dal.get_by_id(game.id)
        assert stored.status == GameStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_only_host_ends(self, service, host, alice):
        game = await service.create_game("Home", host, initial_players=[alice])

        with pytest.raises(Unauthorized):
            await service.end_game(game.id, alice)

    @pytest.mark.asyncio
    async def test_linked_event_marked_completed(self, service, test_db, host):
        await test_db.user_events.insert_one({"_id": "ev-1", "status": "upcoming"})
        game = await service.create_game("League", host, linked_event_id="ev-1")

        await service.end_game(game.id, host)

        event = await test_db.user_events.find_one({"_id": "ev-1"})
        assert event["status"] == "completed"

    @pytest.mark.asyncio
    async def test_pending_invites_expire(self, service, invite_dal, host):
        game = await service.create_game("Home", host)
        await invite_dal.create(GameInvite(
            game_id=game.id,
            game_title=game.title,
            host_id=host.user_id,
            host_name=host.display_name,
            invited_user_id="u-late",
            invited_user_display_name="Late",
        ))

        await service.end_game(game.id, host)

        [invite] = await invite_dal.list_by_game(game.id)
        assert invite.status == InviteStatus.EXPIRED
        assert invite.responded_at is not None


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

class TestSubscriptions:

    @pytest.mark.asyncio
    async def test_game_listener_sees_every_commit_until_removed(
        self, service, requests, host, alice
    ):
        game = await service.create_game("Home", host, initial_players=[alice])
        seen = []
        registration = service.listen_for_game_updates(game.id, seen.append)

        await requests.submit_buy_in(game.id, alice, 50)
        await requests.host_buy_in(game.id, host, 25)
        registration.remove()
        registration.remove()
        await requests.submit_buy_in(game.id, alice, 10)

        assert [g.version for g in seen] == [1, 2]
        assert len(seen[0].pending_buy_ins()) == 1

    @pytest.mark.asyncio
    async def test_standalone_listener_tracks_current_game(
        self, service, host, alice, wait_until
    ):
        seen = []
        registration = await service.listen_for_active_standalone_game(
            alice.user_id, lambda game: seen.append(game.id if game else None)
        )

        game = await service.create_game("Home", host, initial_players=[alice])
        await wait_until(lambda: len(seen) == 2)
        await service.create_game("Elsewhere", Actor(user_id="other", display_name="O"))
        await service.end_game(game.id, host)
        await wait_until(lambda: len(seen) == 3)
        registration.remove()
        await service.create_game("After", Actor(user_id="h2", display_name="H2"), initial_players=[alice])
        await asyncio.sleep(0.05)

        assert seen == [None, game.id, None]

    @pytest.mark.asyncio
    async def test_standalone_listener_ignores_group_games(self, service, host, alice):
        seen = []
        registration = await service.listen_for_active_standalone_game(alice.user_id, seen.append)

        await service.create_game("Club", host, initial_players=[alice], group_id="grp")
        await asyncio.sleep(0.05)
        registration.remove()

        assert seen == [None]

    @pytest.mark.asyncio
    async def test_commit_does_not_wait_for_standalone_listener(
        self, service, host, alice, wait_until
    ):
        release = asyncio.Event()
        seen = []

        async def on_change(game):
            seen.append(game)
            if game is not None:
                await release.wait()

        registration = await service.listen_for_active_standalone_game(alice.user_id, on_change)

        game = await asyncio.wait_for(
            service.create_game("Home", host, initial_players=[alice]), timeout=1
        )
        await wait_until(lambda: len(seen) == 2)
        release.set()
        registration.remove()

        assert seen[1].id == game.id

    @pytest.mark.asyncio
    async def test_failed_first_delivery_leaves_nothing_attached(self, service, broker, alice):
        def on_change(game):
            raise RuntimeError("listener broke")

        with pytest.raises(RuntimeError):
            await service.listen_for_active_standalone_game(alice.user_id, on_change)

        assert broker.listener_count(ALL_GAMES_TOPIC) == 0
