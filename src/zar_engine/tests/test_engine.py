"""
Tests for the intent-level engine API.
"""

import random

import pytest

from zar_engine.constants import (
    DECK_SIZE, DIRECTION_CCW, DIRECTION_CW, KIND_BASIC, KIND_COMMAND,
    KIND_POWER, PHASE_GAME_OVER, PHASE_LOBBY, PHASE_PLAYING, PHASE_ROUND_OVER,
)
from zar_engine.engine import (
    add_bots, announce_last_card, bots_needed, challenge_last_card,
    create_game, declare_color, declare_symbol, draw_card, join_game,
    match_card, open_match_window, pass_turn, play_card, play_double,
    start_game, start_next_round,
)
from zar_engine.models import Card, GameState, Player
from zar_engine.rules import create_rules


def basic(cid, color, symbol):
    return Card(id=cid, kind=KIND_BASIC, color=color, symbol=symbol, points=5)


def command(cid, color, name):
    return Card(id=cid, kind=KIND_COMMAND, color=color, command=name, points=15)


def power(cid, name, pair=1):
    return Card(id=cid, kind=KIND_POWER, power=name, pair=pair, points=25)


def filler(cid):
    return basic(cid, "yellow", "galaxy")


def playing(hands, top, draw=None, **kwargs):
    """A table mid-round with the given hands and top card."""
    players = [Player(id=f"p{i}", name=f"P{i}", hand=list(hand)) for i, hand in enumerate(hands)]
    if draw is None:
        draw = [filler(f"d{i}") for i in range(10)]
    return GameState(
        phase=PHASE_PLAYING,
        players=players,
        discard_pile=[top],
        draw_pile=list(draw),
        **kwargs
    )


# Lobby -------------------------------------------------------------------

def test_create_game_seats_host():
    state = create_game("host", "Alice")
    assert state.phase == PHASE_LOBBY
    assert [p.id for p in state.players] == ["host"]
    assert state.target_score == 50


def test_create_game_with_target_score():
    assert create_game("host", "Alice", target_score=100).target_score == 100


def test_join_game():
    state = create_game("host", "Alice")
    result = join_game(state, "p2", "Bob")

    assert result.success
    assert [p.name for p in result.state.players] == ["Alice", "Bob"]
    assert len(state.players) == 1


def test_join_game_name_taken():
    state = create_game("host", "Alice")
    result = join_game(state, "p2", "Alice")
    assert not result.success
    assert result.error_code == "NAME_TAKEN"


def test_join_game_room_full():
    state = create_game("host", "Alice", rules=create_rules(max_players=2))
    state = join_game(state, "p2", "Bob").state
    result = join_game(state, "p3", "Carol")
    assert not result.success
    assert result.error_code == "ROOM_FULL"


def test_join_after_start_rejected():
    state = create_game("host", "Alice")
    state = join_game(state, "p2", "Bob").state
    state = start_game(state, random.Random(1)).state
    result = join_game(state, "p3", "Carol")
    assert result.error_code == "WRONG_PHASE"


def test_start_needs_two_players():
    result = start_game(create_game("host", "Alice"))
    assert not result.success
    assert result.error_code == "NOT_ENOUGH_PLAYERS"


def test_bots_fill_up_to_four():
    state = create_game("host", "Alice")
    state = join_game(state, "p2", "Bob").state
    assert bots_needed(state) == 2

    result = add_bots(state, bots_needed(state))
    assert result.data["added"] == 2
    bots = [p for p in result.state.players if p.is_bot]
    assert [(b.id, b.name) for b in bots] == [("bot_1", "Bot 1"), ("bot_2", "Bot 2")]
    assert bots_needed(result.state) == 0


def test_start_game_deals_round():
    state = create_game("host", "Alice")
    state = join_game(state, "p2", "Bob").state
    result = start_game(state, random.Random(11))

    assert result.success
    new_state = result.state
    assert new_state.phase == PHASE_PLAYING
    assert new_state.round_number == 1
    assert new_state.current_player_index == 0
    assert new_state.direction == DIRECTION_CW
    assert all(len(p.hand) == 7 for p in new_state.players)
    assert len(new_state.discard_pile) == 1
    assert new_state.card_count() == DECK_SIZE
    assert new_state.version == state.version + 1


@pytest.mark.parametrize("seed", range(20))
def test_first_discard_is_never_a_power_card(seed):
    state = create_game("host", "Alice")
    state = join_game(state, "p2", "Bob").state
    new_state = start_game(state, random.Random(seed)).state

    assert not new_state.top_card.is_power
    assert not new_state.waiting_for_declaration


def test_start_next_round_keeps_scores():
    state = playing([[], [basic("a", "red", "moon")]], basic("t", "red", "sun"))
    state.phase = PHASE_ROUND_OVER
    state.players[1].score = 5

    result = start_next_round(state, random.Random(2))
    assert result.success
    assert result.state.phase == PHASE_PLAYING
    assert result.state.players[1].score == 5
    assert result.state.card_count() == DECK_SIZE


def test_start_next_round_wrong_phase():
    state = playing([[filler("a")], [filler("b")]], basic("t", "red", "sun"))
    assert start_next_round(state).error_code == "WRONG_PHASE"


# Single plays ------------------------------------------------------------

def test_play_basic_card_advances_turn():
    card = basic("a", "red", "sun")
    state = playing([[card, filler("x0")], [filler("x1")]], basic("t", "red", "moon"))

    result = play_card(state, "p0", "a")

    assert result.success
    assert result.state.top_card == card
    assert result.state.current_player_index == 1
    assert [c.id for c in result.state.players[0].hand] == ["x0"]
    assert result.state.version == state.version + 1


def test_play_card_not_your_turn():
    state = playing([[filler("x0")], [basic("a", "red", "sun")]], basic("t", "red", "moon"))
    result = play_card(state, "p1", "a")

    assert not result.success
    assert result.error_code == "NOT_YOUR_TURN"
    assert result.error_message == "It's not your turn."
    assert result.state is state


def test_play_card_not_in_hand():
    state = playing([[filler("x0")], [filler("x1")]], basic("t", "red", "moon"))
    result = play_card(state, "p0", "nope")
    assert result.error_code == "OWNERSHIP"


def test_play_card_illegal():
    state = playing([[basic("a", "blue", "sun"), filler("x0")], [filler("x1")]],
                    basic("t", "red", "moon"))
    result = play_card(state, "p0", "a")
    assert result.error_code == "ILLEGAL_PLAY"


def test_wasp_stacking_and_forced_draw():
    """Wasps stack onto the pending count until someone draws them all."""
    state = playing(
        [
            [command("w1", "red", "wasp"), filler("x0")],
            [command("w2", "blue", "wasp"), filler("x1")],
            [basic("a", "blue", "moon"), filler("x2")],
        ],
        basic("t", "red", "moon"),
    )

    state = play_card(state, "p0", "w1").state
    assert state.pending_draw_count == 2
    assert state.current_player_index == 1

    # Only a wasp can be played while draws are pending
    assert play_card(state, "p1", "x1").error_code == "ILLEGAL_PLAY"
    state = play_card(state, "p1", "w2").state
    assert state.pending_draw_count == 4
    assert state.current_player_index == 2

    assert pass_turn(state, "p2").error_code == "MUST_DRAW"

    result = draw_card(state, "p2")
    assert result.data == {"drawn": 4, "forced": True}
    state = result.state
    assert len(state.players[2].hand) == 6
    assert state.pending_draw_count == 0
    assert state.drawn_this_turn
    assert state.current_player_index == 2

    assert draw_card(state, "p2").error_code == "ALREADY_DREW"
    state = pass_turn(state, "p2").state
    assert state.current_player_index == 0
    assert not state.drawn_this_turn


def test_frog_skips_one():
    state = playing(
        [[command("f", "red", "frog"), filler("x0")], [filler("x1")], [filler("x2")], [filler("x3")]],
        basic("t", "red", "moon"),
    )
    assert play_card(state, "p0", "f").state.current_player_index == 2


def test_crab_reverses():
    state = playing(
        [[command("c", "red", "crab"), filler("x0")], [filler("x1")], [filler("x2")]],
        basic("t", "red", "moon"),
    )
    new_state = play_card(state, "p0", "c").state
    assert new_state.direction == DIRECTION_CCW
    assert new_state.current_player_index == 2


def test_play_and_pass_needs_draw_first():
    state = playing([[filler("x0")], [filler("x1")]], basic("t", "red", "moon"))
    result = pass_turn(state, "p0")
    assert result.error_code == "MUST_DRAW"

    state = draw_card(state, "p0").state
    assert pass_turn(state, "p0").state.current_player_index == 1


def test_pass_without_draw_when_allowed():
    rules = create_rules(require_draw_before_pass=False)
    state = playing([[filler("x0")], [filler("x1")]], basic("t", "red", "moon"), rules=rules)
    assert pass_turn(state, "p0").state.current_player_index == 1


def test_voluntary_draw_then_play():
    top = basic("t", "red", "moon")
    state = playing([[filler("x0")], [filler("x1")]], top, draw=[basic("d", "red", "sun")])

    state = draw_card(state, "p0").state
    assert state.drawn_this_turn
    result = play_card(state, "p0", "d")
    assert result.success
    assert result.state.current_player_index == 1


# Doubles -----------------------------------------------------------------

def test_double_frog_skips_two():
    """Four players, a double frog from seat 0 hands the turn to seat 3."""
    state = playing(
        [
            [command("f1", "red", "frog"), command("f2", "red", "frog"), filler("x0")],
            [filler("x1")], [filler("x2")], [filler("x3")],
        ],
        basic("t", "red", "moon"),
    )
    result = play_double(state, "p0", "f1", "f2")

    assert result.success
    assert result.state.current_player_index == 3
    assert [c.id for c in result.state.discard_pile[-2:]] == ["f1", "f2"]


def test_double_wasp_adds_four():
    state = playing(
        [[command("w1", "red", "wasp"), command("w2", "red", "wasp"), filler("x0")], [filler("x1")]],
        basic("t", "red", "moon"),
    )
    new_state = play_double(state, "p0", "w1", "w2").state
    assert new_state.pending_draw_count == 4
    assert new_state.current_player_index == 1


def test_double_crab_keeps_direction():
    state = playing(
        [[command("c1", "red", "crab"), command("c2", "red", "crab"), filler("x0")],
         [filler("x1")], [filler("x2")]],
        basic("t", "red", "moon"),
    )
    new_state = play_double(state, "p0", "c1", "c2").state
    assert new_state.direction == DIRECTION_CW
    assert new_state.current_player_index == 1


def test_double_power_waits_for_declaration():
    state = playing(
        [[power("d1", "dragon"), power("d2", "dragon"), filler("x0")], [filler("x1")]],
        basic("t", "red", "moon"),
    )
    new_state = play_double(state, "p0", "d1", "d2").state
    assert new_state.waiting_for_declaration
    assert new_state.current_player_index == 0


def test_cannot_go_out_on_a_double():
    state = playing(
        [[basic("a", "red", "sun"), basic("b", "red", "sun")], [filler("x1")]],
        basic("t", "red", "moon"),
    )
    result = play_double(state, "p0", "a", "b")

    assert not result.success
    assert result.error_code == "DOUBLE_GOING_OUT"
    assert result.error_message == "Cannot go out on a double."


def test_double_must_match_exactly():
    state = playing(
        [[basic("a", "red", "sun"), basic("b", "red", "star"), filler("x0")], [filler("x1")]],
        basic("t", "red", "moon"),
    )
    assert play_double(state, "p0", "a", "b").error_code == "ILLEGAL_DOUBLE"


def test_double_same_card_twice_rejected():
    state = playing(
        [[basic("a", "red", "sun"), filler("x0"), filler("x9")], [filler("x1")]],
        basic("t", "red", "moon"),
    )
    assert play_double(state, "p0", "a", "a").error_code == "OWNERSHIP"


# Power cards -------------------------------------------------------------

def test_dragon_declaration_flow():
    state = playing(
        [[power("d", "dragon"), filler("x0")], [basic("s", "blue", "sun"), filler("x1")]],
        basic("t", "red", "moon"),
    )
    state = play_card(state, "p0", "d").state
    assert state.waiting_for_declaration
    assert state.current_player_index == 0

    assert play_card(state, "p1", "s").error_code == "DECLARATION_PENDING"
    assert declare_color(state, "p0", "red").error_code == "NO_DECLARATION"
    assert declare_symbol(state, "p1", "sun").error_code == "NOT_YOUR_TURN"
    assert declare_symbol(state, "p0", "banana").error_code == "ACTION_NOT_ALLOWED"

    state = declare_symbol(state, "p0", "sun").state
    assert state.declared_symbol == "sun"
    assert not state.waiting_for_declaration
    assert state.current_player_index == 1

    state = play_card(state, "p1", "s").state
    assert state.declared_symbol is None


def test_peacock_declaration_flow():
    state = playing(
        [[power("p", "peacock"), filler("x0")], [basic("b", "blue", "star"), filler("x1")]],
        basic("t", "red", "moon"),
    )
    state = play_card(state, "p0", "p").state
    assert declare_symbol(state, "p0", "sun").error_code == "NO_DECLARATION"

    state = declare_color(state, "p0", "blue").state
    assert state.declared_color == "blue"
    assert state.current_player_index == 1
    assert play_card(state, "p1", "b").success


def test_nothing_to_declare():
    state = playing([[filler("x0")], [filler("x1")]], basic("t", "red", "moon"))
    assert declare_symbol(state, "p0", "sun").error_code == "NO_DECLARATION"


# Round end ---------------------------------------------------------------

def test_going_out_scores_the_others():
    state = playing(
        [[basic("a", "red", "sun")], [command("w", "blue", "wasp"), filler("x1")], [filler("x2")]],
        basic("t", "red", "moon"),
    )
    result = play_card(state, "p0", "a")
    new_state = result.state

    assert new_state.phase == PHASE_ROUND_OVER
    assert new_state.round_winner_id == "p0"
    assert [p.score for p in new_state.players] == [0, 20, 5]


def test_reaching_target_ends_game():
    state = playing(
        [[basic("a", "red", "sun")], [power("d", "dragon"), filler("x1")]],
        basic("t", "red", "moon"),
        target_score=30,
    )
    new_state = play_card(state, "p0", "a").state
    assert new_state.phase == PHASE_GAME_OVER
    assert new_state.players[1].score == 30


def test_actions_rejected_after_round_over():
    state = playing([[basic("a", "red", "sun")], [filler("x1")]], basic("t", "red", "moon"))
    state = play_card(state, "p0", "a").state
    assert draw_card(state, "p1").error_code == "WRONG_PHASE"


# Matching ----------------------------------------------------------------

def test_match_interrupts_and_penalises():
    top = basic("t", "red", "moon")
    state = playing(
        [[filler("x0")], [filler("x1")], [basic("m", "red", "moon"), filler("x2")]],
        top,
        current_player_index=1,
    )
    state = open_match_window(state)

    result = match_card(state, "p2", "m")

    assert result.success
    assert result.data["interrupted_id"] == "p1"
    new_state = result.state
    assert len(new_state.players[1].hand) == 2
    assert [c.id for c in new_state.players[2].hand] == ["x2"]
    assert new_state.top_card.id == "m"
    assert new_state.current_player_index == 0
    assert not new_state.match_window_open
    assert new_state.card_count() == state.card_count()


def test_wasp_match_stacks_instead_of_penalty():
    state = playing(
        [[filler("x0")], [filler("x1")], [command("w2", "red", "wasp"), filler("x2")]],
        command("w1", "red", "wasp"),
        current_player_index=1,
        pending_draw_count=2,
    )
    state = open_match_window(state)
    new_state = match_card(state, "p2", "w2").state

    assert len(new_state.players[1].hand) == 1
    assert new_state.pending_draw_count == 4
    assert new_state.current_player_index == 0


def test_frog_match_skips_from_the_matcher():
    state = playing(
        [[filler("x0")], [filler("x1")], [filler("x2")], [command("f2", "red", "frog"), filler("x3")]],
        command("f1", "red", "frog"),
        current_player_index=1,
    )
    state = open_match_window(state)
    new_state = match_card(state, "p3", "f2").state

    assert len(new_state.players[1].hand) == 2
    assert new_state.current_player_index == 1


def test_crab_match_reverses_from_the_matcher():
    state = playing(
        [[filler("x0")], [filler("x1")], [command("c2", "red", "crab"), filler("x2")], [filler("x3")]],
        command("c1", "red", "crab"),
    )
    state = open_match_window(state)
    new_state = match_card(state, "p2", "c2").state

    assert len(new_state.players[0].hand) == 2
    assert new_state.direction == DIRECTION_CCW
    assert new_state.current_player_index == 1


def test_match_rejections():
    top = basic("t", "red", "moon")
    state = playing(
        [[basic("m0", "red", "moon")], [filler("x1")], [basic("s", "red", "sun"), filler("x2")]],
        top,
    )
    assert match_card(state, "p2", "s").error_code == "MATCH_WINDOW_CLOSED"

    state = open_match_window(state)
    assert match_card(state, "p2", "s").error_code == "NO_MATCH"
    assert match_card(state, "p0", "m0").error_code == "ACTION_NOT_ALLOWED"
    assert match_card(state, "p2", "zz").error_code == "OWNERSHIP"


def test_match_can_end_round():
    state = playing(
        [[filler("x0")], [filler("x1")], [basic("m", "red", "moon")]],
        basic("t", "red", "moon"),
        current_player_index=1,
    )
    state = open_match_window(state)
    new_state = match_card(state, "p2", "m").state
    assert new_state.phase == PHASE_ROUND_OVER
    assert new_state.round_winner_id == "p2"


# Last card ---------------------------------------------------------------

def test_announce_last_card():
    state = playing([[filler("x0"), filler("y0")], [filler("x1")]], basic("t", "red", "moon"))
    assert announce_last_card(state, "p0").error_code == "ACTION_NOT_ALLOWED"

    new_state = announce_last_card(state, "p1").state
    assert new_state.players[1].announced_last_card


def test_challenge_unannounced_last_card():
    state = playing([[filler("x0"), filler("y0")], [filler("x1")]], basic("t", "red", "moon"))
    result = challenge_last_card(state, "p0", "p1")

    assert result.success
    assert len(result.state.players[1].hand) == 2


def test_challenge_after_announce_fails():
    state = playing([[filler("x0"), filler("y0")], [filler("x1")]], basic("t", "red", "moon"))
    state = announce_last_card(state, "p1").state
    assert challenge_last_card(state, "p0", "p1").error_code == "ACTION_NOT_ALLOWED"


def test_drawing_clears_announcement():
    state = playing([[filler("x0")], [filler("x1")]], basic("t", "red", "moon"))
    state = announce_last_card(state, "p0").state
    state = draw_card(state, "p0").state
    assert not state.players[0].announced_last_card


def test_match_penalty_clears_announcement():
    state = playing(
        [[filler("x0"), filler("y0")], [filler("x1")], [basic("m", "red", "moon"), filler("x2")]],
        basic("t", "red", "moon"),
        current_player_index=1,
    )
    state = announce_last_card(state, "p1").state
    state = open_match_window(state)

    new_state = match_card(state, "p2", "m").state
    assert len(new_state.players[1].hand) == 2
    assert not new_state.players[1].announced_last_card


def test_announcement_survives_when_still_on_one_card():
    state = playing([[filler("x0")], [filler("x1")]], basic("t", "red", "moon"), draw=[])
    state = announce_last_card(state, "p0").state
    state = draw_card(state, "p0").state

    assert len(state.players[0].hand) == 1
    assert state.players[0].announced_last_card
