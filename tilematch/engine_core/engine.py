"""
Game Engine - The reveal/match/mismatch state machine and score sync.

The engine is the single owner of the live session. It must be driven
from one asyncio event loop: commands run synchronously on that loop,
and the only suspension points are the two deferred operations it
schedules itself:

1. The mismatch hide, run after a fixed grace period
2. The post-win score round trip (submit, then reload the best)

Both are fire-and-forget for the caller of reveal()/new_game().
Every deferred operation captures the session generation it was
started for. new_game() bumps the generation and cancels the pending
hide, so a stale timer can never flip a tile in a newer deck, and a
stale score round trip can only ever touch `personal_best`.
"""

from __future__ import annotations
from typing import Any, Coroutine, Sequence
import asyncio
import logging
import random

from ..config import GameConfig
from ..errors import ScoreServiceError
from ..scoring import (
    AuthState,
    ScoreService,
    SyncPhase,
    reconcile_best,
    should_submit,
)
from .deck import DEFAULT_ALPHABET, deck_from_symbols, generate_deck, validate_alphabet
from .events import EventChannel
from .state import GameSnapshot, PendingState, RevealOutcome, Tile, TileView

logger = logging.getLogger(__name__)


class GameEngine:
    """
    One local player's concentration game.

    Usage:
        engine = GameEngine(score_service, config)
        engine.matched.subscribe(on_match)
        await engine.connect()

        engine.reveal(3)
        engine.reveal(7)
        snapshot = engine.snapshot()

    Event channels:
        matched               (first, second) as soon as a pair is confirmed
        mismatched            (first, second) before the grace period starts
        won                   final move count, after the last matched event
        personal_best_changed new best whenever reconciliation lowers it
    """

    def __init__(
        self,
        score_service: ScoreService,
        config: GameConfig | None = None,
        alphabet: Sequence[str] = DEFAULT_ALPHABET,
        rng: random.Random | None = None,
    ):
        self.config = config or GameConfig()
        # Fatal before any deck exists
        validate_alphabet(alphabet, self.config.pair_count)

        self.score_service = score_service
        self.alphabet = tuple(alphabet)
        self._rng = rng or random.Random()

        self.matched: EventChannel[tuple[int, int]] = EventChannel("matched")
        self.mismatched: EventChannel[tuple[int, int]] = EventChannel("mismatched")
        self.won: EventChannel[int] = EventChannel("won")
        self.personal_best_changed: EventChannel[int] = EventChannel("personal_best_changed")

        self.is_authenticated = False

        self._tiles: list[Tile] = []
        self._pending: list[int] = []
        self._move_count = 0
        self._is_won = False
        self._personal_best: int | None = None
        self._generation = 0

        self._hide_task: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()
        # Phase of each score round trip still running, keyed by start order
        self._syncs: dict[int, SyncPhase] = {}
        self._sync_counter = 0

        self._start_session(self._deal())

    # =========================================================================
    # Observable state
    # =========================================================================

    @property
    def tiles(self) -> tuple[TileView, ...]:
        return tuple(t.view() for t in self._tiles)

    @property
    def move_count(self) -> int:
        return self._move_count

    @property
    def is_won(self) -> bool:
        return self._is_won

    @property
    def personal_best(self) -> int | None:
        return self._personal_best

    @property
    def pending(self) -> tuple[int, ...]:
        return tuple(self._pending)

    @property
    def pending_state(self) -> PendingState:
        return PendingState.for_pending(len(self._pending))

    @property
    def generation(self) -> int:
        """Incremented by every new_game() and close(); keys all deferred work."""
        return self._generation

    @property
    def sync_phase(self) -> SyncPhase:
        """
        Busiest phase across all score round trips still in flight.

        A win, new_game() and a second win can overlap two round trips;
        the engine is IDLE only once every one of them has finished.
        """
        phases = set(self._syncs.values())
        if SyncPhase.SUBMITTING in phases:
            return SyncPhase.SUBMITTING
        if SyncPhase.RELOADING in phases:
            return SyncPhase.RELOADING
        return SyncPhase.IDLE

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            generation=self._generation,
            tiles=self.tiles,
            move_count=self._move_count,
            is_won=self._is_won,
            personal_best=self._personal_best,
            pending=self.pending,
            pending_state=self.pending_state,
            is_authenticated=self.is_authenticated,
        )

    # =========================================================================
    # Commands
    # =========================================================================

    def new_game(self, symbols: Sequence[str] | None = None):
        """
        Replace the deck and reset the round.

        `personal_best` is kept. Any mismatch still waiting to be hidden
        belongs to the old deck and is cancelled.

        Args:
            symbols: Fixed tile order (each symbol exactly twice); a
                fresh shuffled deal is used when omitted
        """
        tiles = deck_from_symbols(symbols) if symbols is not None else self._deal()
        loop = asyncio.get_running_loop() if self.is_authenticated else None
        self._cancel_hide()
        self._generation += 1
        self._start_session(tiles)
        logger.info("New game %d: %d tiles", self._generation, len(tiles))

        if loop is not None:
            self._spawn(self._refresh_personal_best(), loop)

    def reveal(self, index: int) -> RevealOutcome:
        """
        Turn a tile face up.

        Rejected (no state change, no event) when the index is out of
        range, the tile is already up or matched, or a mismatched pair
        is still waiting to be hidden.

        A reveal that mismatches or wins schedules deferred work and so
        needs a running event loop. Without one it raises RuntimeError
        before touching any state.
        """
        if not 0 <= index < len(self._tiles):
            logger.debug("Reveal %d rejected: out of range", index)
            return RevealOutcome.REJECTED

        tile = self._tiles[index]
        if tile.face_up or tile.matched or len(self._pending) >= 2:
            logger.debug("Reveal %d rejected in state %s", index, self.pending_state.value)
            return RevealOutcome.REJECTED

        loop = None
        if self._pending and self._schedules_work(self._pending[0], index):
            loop = asyncio.get_running_loop()

        self._move_count += 1
        tile.face_up = True
        self._pending.append(index)

        if len(self._pending) == 1:
            return RevealOutcome.FIRST

        first, second = self._pending
        if self._tiles[first].symbol == self._tiles[second].symbol:
            self._tiles[first].matched = True
            self._tiles[second].matched = True
            self._pending.clear()
            self.matched.emit((first, second))
            self._check_for_win(loop)
            return RevealOutcome.MATCH

        self.mismatched.emit((first, second))
        self._hide_task = self._spawn(
            self._hide_after_grace(self._generation, first, second), loop
        )
        return RevealOutcome.MISMATCH

    async def connect(self) -> AuthState:
        """
        Sign in to the score service and load the personal best.

        Never raises: a failed sign-in leaves the engine offline. Call it
        again to retry; a later success brings the engine online.
        """
        try:
            auth = await self.score_service.authenticate()
        except Exception as e:
            logger.warning("Authentication failed: %s", e)
            auth = AuthState.signed_out(str(e))

        self.is_authenticated = auth.authenticated
        if auth.authenticated:
            logger.info("Authenticated as %s", auth.player_id)
            await self._refresh_personal_best()
        else:
            logger.info("Playing offline: %s", auth.error or "not authenticated")
        return auth

    async def wait_idle(self):
        """Wait until no hide timer or score round trip is outstanding."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def close(self):
        """
        Cancel all deferred work (the engine is being discarded).

        Unmatched tiles still face up are turned back down, so the
        engine stays playable if a caller keeps using it.
        """
        for task in list(self._background):
            task.cancel()
        self._hide_task = None
        self._generation += 1
        for i in self._pending:
            self._tiles[i].face_up = False
        self._pending.clear()

    # =========================================================================
    # Session internals
    # =========================================================================

    def _deal(self) -> list[Tile]:
        return generate_deck(self.config.pair_count, self.alphabet, self._rng)

    def _start_session(self, tiles: list[Tile]):
        self._tiles = tiles
        self._pending = []
        self._move_count = 0
        self._is_won = False

    def _schedules_work(self, first: int, second: int) -> bool:
        """True if revealing `second` after `first` mismatches or wins."""
        if self._tiles[first].symbol != self._tiles[second].symbol:
            return True
        return not self._is_won and all(
            t.matched for i, t in enumerate(self._tiles) if i not in (first, second)
        )

    def _spawn(
        self,
        coro: Coroutine[Any, Any, None],
        loop: asyncio.AbstractEventLoop,
    ) -> asyncio.Task:
        task = loop.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _cancel_hide(self):
        if self._hide_task is not None and not self._hide_task.done():
            self._hide_task.cancel()
        self._hide_task = None

    async def _hide_after_grace(self, generation: int, first: int, second: int):
        await asyncio.sleep(self.config.mismatch_delay)
        if generation != self._generation:
            return
        self._tiles[first].face_up = False
        self._tiles[second].face_up = False
        self._pending.clear()
        self._hide_task = None
        logger.debug("Hid mismatched pair (%d, %d)", first, second)

    def _check_for_win(self, loop: asyncio.AbstractEventLoop | None):
        if self._is_won or not all(t.matched for t in self._tiles):
            return

        self._is_won = True
        moves = self._move_count
        prior_best = self._personal_best
        logger.info("Game %d won in %d moves", self._generation, moves)

        self._apply_best(reconcile_best(prior_best, moves))
        self.won.emit(moves)
        self._spawn(self._sync_after_win(self._generation, moves, prior_best), loop)

    # =========================================================================
    # Score reconciliation
    # =========================================================================

    async def _sync_after_win(self, generation: int, moves: int, prior_best: int | None):
        """
        Submit the winning count, then reload the authoritative best.

        Runs against the values captured at win time; the only state it
        writes is `personal_best`, so it is safe after a new_game().
        """
        if not self.is_authenticated:
            logger.info("Not authenticated; keeping score %d local", moves)
            return

        self._sync_counter += 1
        token = self._sync_counter
        try:
            if should_submit(self.config.submit_policy, moves, prior_best):
                self._syncs[token] = SyncPhase.SUBMITTING
                await self._submit(moves)
            else:
                logger.debug("Score %d does not beat %s; not submitted", moves, prior_best)

            self._syncs[token] = SyncPhase.RELOADING
            await self._refresh_personal_best()
        finally:
            self._syncs.pop(token, None)

        if generation != self._generation:
            logger.debug("Score sync for game %d finished after a new game", generation)

    async def _submit(self, moves: int):
        leaderboard_id = self.config.leaderboard_id
        try:
            await self.score_service.submit_score(moves, leaderboard_id)
        except ScoreServiceError as e:
            logger.warning("Error reporting score %d to %s: %s", moves, leaderboard_id, e)
        except Exception:
            logger.exception("Unexpected error reporting score %d", moves)
        else:
            logger.info("Score %d reported to %s", moves, leaderboard_id)

    async def _refresh_personal_best(self):
        leaderboard_id = self.config.leaderboard_id
        try:
            incoming = await self.score_service.load_personal_best(leaderboard_id)
        except ScoreServiceError as e:
            logger.warning("Error loading personal best from %s: %s", leaderboard_id, e)
            return
        except Exception:
            logger.exception("Unexpected error loading personal best")
            return

        # Some backends report "no score" as 0
        if incoming is not None and incoming <= 0:
            incoming = None
        self._apply_best(reconcile_best(self._personal_best, incoming))

    def _apply_best(self, best: int | None):
        if best is None or best == self._personal_best:
            return
        self._personal_best = best
        logger.info("Personal best is now %d", best)
        self.personal_best_changed.emit(best)
