"""Tests for game phases, settings, bets and undo bookkeeping."""

import pytest

from blackjackpro.errors import InvalidPhaseError, InvalidSettingError
from blackjackpro.game.events import EventEmitter, EventType, Severity
from blackjackpro.game.settings import GameSettings
from blackjackpro.game.state import (
    BETTING_PHASES,
    VALID_TRANSITIONS,
    GamePhase,
    GameState,
    is_valid_transition,
)


@pytest.fixture
def events():
    return EventEmitter()


@pytest.fixture
def state(events, clock):
    return GameState(events=events, undo_history_size=5, default_bet=25, clock=clock)


def walk(state: GameState, *phases: GamePhase) -> None:
    for phase in phases:
        state.set_phase(phase)


class TestTransitions:
    """Tests for the phase transition table."""

    def test_starts_waiting(self, state):
        assert state.phase == GamePhase.WAITING

    @pytest.mark.parametrize(
        "source,dest",
        [
            (GamePhase.WAITING, GamePhase.DEALING),
            (GamePhase.BETTING, GamePhase.DEALING),
            (GamePhase.DEALING, GamePhase.PLAYING),
            (GamePhase.DEALING, GamePhase.FINISHED),
            (GamePhase.PLAYING, GamePhase.PLAYING),
            (GamePhase.PLAYING, GamePhase.DEALER),
            (GamePhase.DEALER, GamePhase.FINISHED),
            (GamePhase.FINISHED, GamePhase.DEALING),
            (GamePhase.FINISHED, GamePhase.WAITING),
        ],
    )
    def test_valid(self, source, dest):
        assert is_valid_transition(source, dest)

    @pytest.mark.parametrize(
        "source,dest",
        [
            (GamePhase.WAITING, GamePhase.PLAYING),
            (GamePhase.DEALING, GamePhase.DEALER),
            (GamePhase.DEALER, GamePhase.PLAYING),
            (GamePhase.FINISHED, GamePhase.PLAYING),
            (GamePhase.PLAYING, GamePhase.DEALING),
        ],
    )
    def test_invalid(self, source, dest):
        assert not is_valid_transition(source, dest)

    def test_full_hand_cycle(self, state):
        walk(state, GamePhase.DEALING, GamePhase.PLAYING, GamePhase.DEALER, GamePhase.FINISHED)
        assert state.phase == GamePhase.FINISHED
        assert state.previous_phase == GamePhase.DEALER

    def test_illegal_transition_leaves_phase(self, state):
        with pytest.raises(InvalidPhaseError):
            state.set_phase(GamePhase.DEALER)
        assert state.phase == GamePhase.WAITING

    def test_unknown_phase(self, state):
        with pytest.raises(InvalidPhaseError):
            state.set_phase("shuffling")

    def test_machine_matches_table(self, state):
        """Every table entry is a machine transition and nothing else is."""
        for source in GamePhase:
            for dest in GamePhase:
                candidate = GameState()
                candidate._machine_state = source.value
                if dest in VALID_TRANSITIONS[source]:
                    candidate.set_phase(dest)
                    assert candidate.phase == dest
                else:
                    with pytest.raises(InvalidPhaseError):
                        candidate.set_phase(dest)

    def test_phase_change_event(self, state, events):
        state.set_phase(GamePhase.DEALING, "Cards being dealt")
        event = events.of_type(EventType.PHASE_CHANGED)[-1]
        assert event.data == {
            "old_phase": "waiting",
            "new_phase": "dealing",
            "reason": "Cards being dealt",
        }

    def test_abort_from_anywhere(self, state):
        walk(state, GamePhase.DEALING, GamePhase.PLAYING, GamePhase.DEALER)
        state.set_insurance_bet(12)
        state.abort_hand("shoe exhausted")
        assert state.phase == GamePhase.WAITING
        assert state.insurance_bet == 0

    def test_display_info(self):
        assert GamePhase.PLAYING.display_info.display == "Your Turn"


class TestBets:
    """Tests for bet amounts and limits."""

    def test_default_bet(self, state):
        assert state.base_bet == 25
        assert state.current_bet == 25

    @pytest.mark.parametrize("amount,expected", [(1, 5), (100, 100), (10_000, 500)])
    def test_bet_is_clamped(self, state, amount, expected):
        assert state.set_bet_amount(amount) == expected
        assert state.current_bet == expected

    def test_bet_locked_during_hand(self, state):
        walk(state, GamePhase.DEALING, GamePhase.PLAYING)
        with pytest.raises(InvalidPhaseError):
            state.set_bet_amount(50)
        assert state.current_bet == 25

    def test_start_new_hand_resets_wager(self, state):
        state.set_bet_amount(40)
        state.add_to_bet(40)
        state.set_insurance_bet(20)
        state.start_new_hand()
        assert state.current_bet == 40
        assert state.insurance_bet == 0
        assert state.round_number == 1

    def test_wager_growth_is_unclamped(self, state):
        state.set_bet_amount(500)
        assert state.add_to_bet(500) == 1000

    def test_raising_minimum_reclamps(self, state):
        state.update_setting("minimum_bet", 50)
        assert state.current_bet == 50

    def test_betting_constraints(self, state):
        assert state.betting_constraints() == {
            "minimum": 5,
            "maximum": 500,
            "current": 25,
            "can_increase": True,
            "can_decrease": True,
        }

    def test_is_valid_bet(self, state):
        assert state.is_valid_bet(25)
        assert not state.is_valid_bet(0)
        assert not state.is_valid_bet(501)


class TestUndoHistory:
    """Tests for the bounded snapshot stack."""

    def test_history_is_bounded(self, state):
        walk(state, GamePhase.DEALING, GamePhase.PLAYING)
        for i in range(7):
            state.save_game_state(f"hit_{i}")
        assert state.undo_depth == 5
        assert state.undo_limit == 5
        assert state.last_saved_state.action == "hit_6"

    def test_can_undo_only_while_playing(self, state):
        state.save_game_state("hit")
        assert not state.can_undo_action()
        walk(state, GamePhase.DEALING, GamePhase.PLAYING)
        assert state.can_undo_action()

    def test_remove_last(self, state):
        state.save_game_state("hit")
        state.save_game_state("stand")
        assert state.remove_last_saved_state().action == "stand"
        assert state.undo_depth == 1
        state.clear_undo_history()
        assert state.remove_last_saved_state() is None


class TestSettings:
    """Tests for GameSettings values and updates."""

    def test_defaults(self):
        settings = GameSettings()
        assert settings.deck_count == 6
        assert settings.show_basic_strategy_hints
        assert not settings.card_counting_mode
        assert settings.speed_multiplier == 1.0

    def test_update_returns_old_value(self, state, events):
        assert state.update_setting("deckCount", 2) == 6
        assert state.settings.deck_count == 2
        event = events.of_type(EventType.SETTING_CHANGED)[-1]
        assert event.data == {"key": "deck_count", "value": 2, "old_value": 6}

    def test_settings_are_immutable(self):
        settings = GameSettings()
        updated = settings.updated("auto_play", True)
        assert not settings.auto_play
        assert updated.auto_play

    @pytest.mark.parametrize(
        "key,value",
        [
            ("deck_count", 0),
            ("deck_count", 9),
            ("deck_count", "6"),
            ("deck_count", True),
            ("minimum_bet", 0),
            ("maximum_bet", 1),
            ("game_speed", "ludicrous"),
            ("auto_play", "yes"),
        ],
    )
    def test_invalid_values(self, state, key, value):
        with pytest.raises(InvalidSettingError):
            state.update_setting(key, value)
        assert state.settings == GameSettings()

    def test_unknown_key(self, state):
        with pytest.raises(InvalidSettingError) as exc_info:
            state.update_setting("tableColor", "green")
        assert exc_info.value.key == "tableColor"

    def test_camel_case_get(self):
        assert GameSettings().get("showBasicStrategyHints") is True

    def test_speed(self):
        assert GameSettings(game_speed="instant").speed_multiplier == 0.0
        assert GameSettings(game_speed="slow").speed_multiplier == 2.0


class TestReporting:
    """Tests for session summaries and state import/export."""

    def test_hand_duration(self, state, clock):
        state.start_new_hand()
        clock.advance(75)
        assert state.hand_duration() == 75
        assert state.formatted_hand_duration() == "1:15"

    def test_state_summary(self, state):
        summary = state.state_summary()
        assert summary["phase"]["display"] == "Ready to Play"
        assert summary["betting"]["current_bet"] == 25

    def test_export_import_round_trip(self, state, events, clock):
        state.set_bet_amount(60)
        state.start_new_hand()
        exported = state.export_state()

        restored = GameState(events=events, clock=clock)
        assert restored.import_state(exported)
        assert restored.game_id == state.game_id
        assert restored.round_number == 1
        assert restored.current_bet == 60

    def test_import_rejects_bad_data(self, state):
        assert not state.import_state({"session_data": {"game_id": "x"}})
        assert not state.import_state({})

    def test_import_refused_during_hand(self, state):
        exported = state.export_state()
        walk(state, GamePhase.DEALING, GamePhase.PLAYING)
        assert not state.import_state(exported)

    def test_betting_phases(self):
        assert GamePhase.PLAYING not in BETTING_PHASES
        assert GamePhase.FINISHED in BETTING_PHASES


class TestEvents:
    """Tests for the event emitter."""

    def test_subscribe_by_type(self, events):
        seen = []
        events.subscribe(seen.append, EventType.MESSAGE)
        events.emit_new(EventType.CARD_DEALT, card="A♠")
        events.message("hello", Severity.SUCCESS)
        assert len(seen) == 1
        assert seen[0].data == {"text": "hello", "severity": "success"}

    def test_catch_all_and_unsubscribe(self, events):
        seen = []
        events.subscribe(seen.append)
        events.emit_new(EventType.GAME_STARTED)
        events.unsubscribe(seen.append)
        events.emit_new(EventType.GAME_STARTED)
        assert len(seen) == 1

    def test_history_is_bounded(self):
        events = EventEmitter(history_size=3)
        for _ in range(5):
            events.emit_new(EventType.MESSAGE)
        assert len(events.history) == 3
        events.clear_history()
        assert events.history == []
