"""
Tests for personal-best reconciliation and the score round trip.

Tests:
- Pure reconciliation rules
- The in-memory leaderboard
- Engine behaviour when the service fails or is slow
- Races between new_game() and an in-flight refresh
"""

import asyncio

import pytest

from ..config import GameConfig
from ..engine_core import GameEngine
from ..errors import NotAuthenticatedError, ScoreServiceError
from ..scoring import (
    AuthState,
    InMemoryScoreService,
    ScoreService,
    SubmitPolicy,
    SyncPhase,
    is_improvement,
    reconcile_best,
    should_submit,
)
from .conftest import SCENARIO_SYMBOLS, ScriptedScoreService, run

WINNING_ORDER = (0, 2, 1, 3)


def play_to_win(engine: GameEngine):
    engine.new_game(SCENARIO_SYMBOLS)
    for index in WINNING_ORDER:
        engine.reveal(index)


class TestReconcileBest:
    """Tests for the min-merge rule."""

    @pytest.mark.parametrize("current, incoming, expected", [
        (None, None, None),
        (None, 12, 12),
        (12, None, 12),
        (12, 8, 8),
        (8, 12, 8),
        (8, 8, 8),
    ])
    def test_lower_is_better(self, current, incoming, expected):
        """Reconciliation keeps the lowest known value."""
        assert reconcile_best(current, incoming) == expected

    def test_never_exceeds_incoming(self):
        """After merging V, the best is at most V."""
        best = None
        for value in [30, 25, 40, 22, 50]:
            best = reconcile_best(best, value)
            assert best <= value

    def test_is_improvement(self):
        """Strictly lower beats; ties do not."""
        assert is_improvement(10, None)
        assert is_improvement(9, 10)
        assert not is_improvement(10, 10)
        assert not is_improvement(11, 10)

    def test_should_submit_policies(self):
        """ALWAYS submits every win; IMPROVEMENT only better ones."""
        assert should_submit(SubmitPolicy.ALWAYS, 20, 10)
        assert not should_submit(SubmitPolicy.IMPROVEMENT, 20, 10)
        assert should_submit(SubmitPolicy.IMPROVEMENT, 5, 10)
        assert should_submit(SubmitPolicy.IMPROVEMENT, 5, None)


class TestInMemoryScoreService:
    """Tests for the offline leaderboard."""

    def test_is_a_score_service(self):
        """Implements the ScoreService interface."""
        assert isinstance(InMemoryScoreService(), ScoreService)

    def test_keeps_lowest_score(self):
        """Only improvements replace the recorded best."""
        async def scenario():
            service = InMemoryScoreService(player_id="p1")
            auth = await service.authenticate()
            assert auth == AuthState.signed_in("p1")

            assert await service.load_personal_best("board") is None
            await service.submit_score(20, "board")
            await service.submit_score(25, "board")
            assert await service.load_personal_best("board") == 20
            await service.submit_score(14, "board")
            assert await service.load_personal_best("board") == 14
            assert await service.load_personal_best("other") is None

        run(scenario())

    def test_requires_authentication(self):
        """Calls before sign-in fail with NotAuthenticatedError."""
        async def scenario():
            service = InMemoryScoreService()
            with pytest.raises(NotAuthenticatedError):
                await service.submit_score(10, "board")
            with pytest.raises(ScoreServiceError):
                await service.load_personal_best("board")

        run(scenario())

    def test_sign_in_unavailable(self):
        """A service that cannot authenticate reports signed out."""
        async def scenario():
            service = InMemoryScoreService(can_authenticate=False)
            auth = await service.authenticate()
            assert not auth.authenticated
            assert auth.error

        run(scenario())


class TestConnect:
    """Tests for sign-in and the initial best."""

    def test_connect_loads_best(self, engine, score_service):
        """Connecting pulls the recorded best."""
        async def scenario():
            score_service.seed("TestBoard", 14)
            auth = await engine.connect()

            assert auth.authenticated
            assert engine.is_authenticated
            assert engine.personal_best == 14
            assert score_service.load_calls == ["TestBoard"]

        run(scenario())

    def test_zero_is_treated_as_absent(self, engine, score_service):
        """A backend reporting 0 for "no score" leaves the best unknown."""
        async def scenario():
            score_service.seed("TestBoard", 0)
            await engine.connect()
            assert engine.personal_best is None

        run(scenario())

    def test_offline_play(self, config):
        """Without sign-in the game works and nothing is sent."""
        service = ScriptedScoreService(can_authenticate=False)
        engine = GameEngine(service, config=config)

        async def scenario():
            auth = await engine.connect()
            assert not auth.authenticated

            play_to_win(engine)
            await engine.wait_idle()

            assert engine.is_won
            assert engine.personal_best == 4
            assert service.submitted == []
            assert service.load_calls == []

        run(scenario())

    def test_authenticate_raising_is_contained(self, config):
        """An exception from authenticate() degrades to offline play."""
        class BrokenAuth(InMemoryScoreService):
            async def authenticate(self):
                raise ConnectionError("unreachable")

        engine = GameEngine(BrokenAuth(), config=config)

        async def scenario():
            auth = await engine.connect()
            assert not auth.authenticated
            assert "unreachable" in auth.error
            assert not engine.is_authenticated

        run(scenario())

    def test_reconnect_after_offline_start(self, config):
        """A second connect() signs in once the service becomes available."""
        service = ScriptedScoreService(can_authenticate=False)
        engine = GameEngine(service, config=config)

        async def scenario():
            assert not (await engine.connect()).authenticated

            service.can_authenticate = True
            service.seed("TestBoard", 7)
            auth = await engine.connect()

            assert auth.authenticated
            assert engine.is_authenticated
            assert engine.personal_best == 7

            play_to_win(engine)
            await engine.wait_idle()
            assert service.submitted == [(4, "TestBoard")]

        run(scenario())


class TestWinSync:
    """Tests for the post-win submit and reload."""

    def test_improvement_submitted_and_reloaded(self, engine, score_service):
        """A better score is submitted, then the best is reloaded."""
        async def scenario():
            score_service.seed("TestBoard", 10)
            await engine.connect()
            play_to_win(engine)
            await engine.wait_idle()

            assert score_service.submitted == [(4, "TestBoard")]
            assert score_service.recorded_best("TestBoard") == 4
            assert engine.personal_best == 4
            assert engine.sync_phase == SyncPhase.IDLE

        run(scenario())

    def test_worse_score_not_submitted(self, engine, score_service):
        """With the improvement policy a worse score stays local."""
        async def scenario():
            score_service.seed("TestBoard", 3)
            await engine.connect()
            play_to_win(engine)
            await engine.wait_idle()

            assert score_service.submitted == []
            assert engine.personal_best == 3

        run(scenario())

    def test_always_policy_submits_worse_score(self, score_service):
        """With the always policy every win is submitted."""
        config = GameConfig(
            pair_count=2,
            mismatch_delay=0.01,
            leaderboard_id="TestBoard",
            submit_policy=SubmitPolicy.ALWAYS,
        )
        engine = GameEngine(score_service, config=config)

        async def scenario():
            score_service.seed("TestBoard", 3)
            await engine.connect()
            play_to_win(engine)
            await engine.wait_idle()

            assert score_service.submitted == [(4, "TestBoard")]
            assert engine.personal_best == 3

        run(scenario())

    def test_submit_and_load_use_same_board(self, engine, score_service):
        """Both calls target the configured leaderboard id."""
        async def scenario():
            await engine.connect()
            play_to_win(engine)
            await engine.wait_idle()

            assert {board for _, board in score_service.submitted} == {"TestBoard"}
            assert set(score_service.load_calls) == {"TestBoard"}

        run(scenario())

    def test_submit_failure_still_reloads(self, engine, score_service):
        """A failed submission does not stop the reload or the win."""
        async def scenario():
            score_service.seed("TestBoard", 10)
            await engine.connect()
            score_service.fail_submit = True
            loads_before = len(score_service.load_calls)

            play_to_win(engine)
            await engine.wait_idle()

            assert engine.is_won
            assert score_service.recorded_best("TestBoard") == 10
            assert len(score_service.load_calls) > loads_before
            # Local win still counts
            assert engine.personal_best == 4

        run(scenario())

    def test_load_failure_leaves_best_unchanged(self, engine, score_service):
        """A failed reload keeps the previous value."""
        async def scenario():
            score_service.seed("TestBoard", 2)
            await engine.connect()
            score_service.fail_load = True

            play_to_win(engine)
            await engine.wait_idle()

            assert engine.personal_best == 2
            assert engine.is_won

        run(scenario())

    def test_remote_value_never_raises_best(self, engine, score_service):
        """A higher remote value does not overwrite a lower local best."""
        async def scenario():
            score_service.seed("TestBoard", 3)
            await engine.connect()
            score_service.seed("TestBoard", 7)

            engine.new_game(SCENARIO_SYMBOLS)
            await engine.wait_idle()

            assert engine.personal_best == 3

        run(scenario())

    def test_personal_best_changed_events(self, engine, score_service):
        """The best-changed channel fires only when the value drops."""
        async def scenario():
            changes = []
            engine.personal_best_changed.subscribe(changes.append)
            score_service.seed("TestBoard", 10)

            await engine.connect()
            play_to_win(engine)
            await engine.wait_idle()
            play_to_win(engine)
            await engine.wait_idle()

            assert changes == [10, 4]

        run(scenario())


class TestRaces:
    """Tests for new_game() racing in-flight score calls."""

    def test_stale_refresh_only_touches_best(self, engine, score_service):
        """A reload finishing after new_game() leaves the new round alone."""
        async def scenario():
            await engine.connect()
            score_service.load_gate = asyncio.Event()

            play_to_win(engine)
            assert engine.is_won
            # Let the sync task reach the held reload
            await asyncio.sleep(0)
            await asyncio.sleep(0)

            engine.new_game(SCENARIO_SYMBOLS)
            engine.reveal(0)
            score_service.seed("TestBoard", 3)

            score_service.load_gate.set()
            await engine.wait_idle()

            assert engine.generation == 2
            assert engine.move_count == 1
            assert not engine.is_won
            assert engine.tiles[0].face_up
            assert not any(t.matched for t in engine.tiles)
            assert engine.personal_best == 3

        run(scenario())

    def test_stale_submission_after_new_game(self, engine, score_service):
        """A held submission still completes with the old round's count."""
        async def scenario():
            await engine.connect()
            score_service.submit_gate = asyncio.Event()

            play_to_win(engine)
            await asyncio.sleep(0)
            assert engine.sync_phase == SyncPhase.SUBMITTING

            engine.new_game(SCENARIO_SYMBOLS)
            engine.reveal(0)
            engine.reveal(1)

            score_service.submit_gate.set()
            await engine.wait_idle()

            assert score_service.submitted == [(4, "TestBoard")]
            assert score_service.recorded_best("TestBoard") == 4
            assert engine.move_count == 2
            assert not engine.is_won
            assert engine.personal_best == 4

        run(scenario())

    def test_overlapping_round_trips_keep_phase(self, engine, score_service):
        """A second win finishing early does not report IDLE over a held submission."""
        async def scenario():
            await engine.connect()
            score_service.submit_gate = asyncio.Event()

            play_to_win(engine)
            await asyncio.sleep(0)
            assert engine.sync_phase == SyncPhase.SUBMITTING

            # Second win ties the best, so its trip only reloads and ends
            play_to_win(engine)
            for _ in range(10):
                await asyncio.sleep(0)

            assert score_service.submitted == [(4, "TestBoard")]
            assert engine.sync_phase == SyncPhase.SUBMITTING

            score_service.submit_gate.set()
            await engine.wait_idle()

            assert engine.sync_phase == SyncPhase.IDLE
            assert score_service.recorded_best("TestBoard") == 4

        run(scenario())

    def test_close_cancels_background_work(self, engine, score_service):
        """close() abandons held score calls."""
        async def scenario():
            await engine.connect()
            score_service.load_gate = asyncio.Event()

            play_to_win(engine)
            await asyncio.sleep(0)
            engine.close()
            await engine.wait_idle()

            assert engine.sync_phase == SyncPhase.IDLE
            assert engine.personal_best == 4

        run(scenario())
