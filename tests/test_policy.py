"""
Unit tests for the decision tables and the bluffing policy.
"""
import random

import pytest

from src.coup_agent.beliefs import RoundContext
from src.coup_agent.bluffing import BluffAdvisor
from src.coup_agent.models import AgentOptions, CommandType, GameStateSnapshot
from src.coup_agent.policy import TurnPolicy, choose_exchange, choose_reveal
from tests.fake_game import AI_IDX, DEFAULT_ROLES, OPPONENT_IDX, player, snapshot, two_player


def make_policy(data, bluff_choice=True, **option_overrides):
    settings = {"chance_to_bluff": 1, "chance_to_challenge": 0, "random_seed": 7}
    settings.update(option_overrides)
    options = AgentOptions(**settings)
    rng = random.Random(options.random_seed)
    context = RoundContext.start(rng, 1.0)
    context.bluff_choice = bluff_choice
    return TurnPolicy(GameStateSnapshot.model_validate(data), context, options, rng)


TABLE = [
    player(["duke", "captain"], cash=3),
    player(["contessa"], cash=9),
    player(["assassin", "duke"], cash=1),
    player([], cash=12, revealed=["duke", "duke"]),
    player(["captain", "captain"], cash=4),
]


# =========================================================================
# RANKING
# =========================================================================

def test_players_by_strength_orders_live_opponents():
    s = GameStateSnapshot.model_validate(snapshot(TABLE, playerIdx=AI_IDX))

    order = s.players_by_strength()

    assert order == [4, 2, 1]
    assert AI_IDX not in order
    keys = [(s.players[i].influence_count, s.players[i].cash) for i in order]
    assert keys == sorted(keys, reverse=True)


def test_end_game_means_one_live_opponent():
    assert not GameStateSnapshot.model_validate(snapshot(TABLE)).is_end_game()
    assert GameStateSnapshot.model_validate(two_player(["duke"], ["duke"], 1, 1)).is_end_game()


def test_targets_skip_players_who_claimed_a_blocker():
    policy = make_policy(snapshot(TABLE, playerIdx=AI_IDX))
    policy.beliefs.record_claim(4, "ambassador", DEFAULT_ROLES)
    policy.beliefs.record_claim(2, "contessa", DEFAULT_ROLES)

    assert policy.target_for("steal") == 2
    assert policy.target_for("assassinate") == 4
    assert policy.strongest_player() == 4


# =========================================================================
# EXCHANGE AND REVEAL
# =========================================================================

@pytest.mark.parametrize("needed, available, expected", [
    (2, ["contessa", "duke", "ambassador", "assassin"], ["duke", "assassin"]),
    (2, ["contessa", "contessa", "ambassador"], ["contessa", "ambassador"]),
    (2, ["contessa", "contessa", "contessa"], ["contessa", "contessa"]),
    (1, ["ambassador", "captain", "inquisitor"], ["captain"]),
])
def test_choose_exchange(needed, available, expected):
    chosen = choose_exchange(needed, available)

    assert chosen == expected
    assert len(chosen) == needed
    assert all(role in available for role in chosen)


def test_choose_reveal_prefers_weakest_and_keeps_duke():
    assert choose_reveal(["duke", "ambassador"]) == "ambassador"
    assert choose_reveal(["assassin", "captain"]) == "captain"
    assert choose_reveal(["contessa", "inquisitor"]) == "contessa"
    assert choose_reveal(["duke", "duke"]) is None


def test_reveal_falls_back_to_first_card():
    policy = make_policy(two_player(
        ["duke", "duke"], ["captain"], 2, 2, name="reveal-influence", playerToReveal=AI_IDX,
    ))
    policy.beliefs.record_claim(AI_IDX, "duke", DEFAULT_ROLES)

    command = policy.reveal()

    assert command.command == CommandType.REVEAL
    assert command.role == "duke"
    assert not policy.beliefs.has_claimed(AI_IDX, "duke")


def test_called_bluff_for_block():
    policy = make_policy(two_player(
        ["duke", "duke"], ["captain"], 2, 2, name="reveal-influence", playerIdx=OPPONENT_IDX,
        action="steal", target=AI_IDX, blockingRole="ambassador",
        playerToReveal=AI_IDX, reason="successful-challenge",
    ))

    policy.update_called_bluffs()

    assert policy.context.called_bluffs == {"ambassador"}


def test_strict_called_bluffs_ignores_other_reveals():
    data = two_player(
        ["duke", "duke"], ["captain"], 2, 2, name="reveal-influence", playerIdx=AI_IDX,
        action="tax", playerToReveal=AI_IDX, reason="failed-challenge",
    )
    lenient = make_policy(data)
    strict = make_policy(data, strict_called_bluffs=True)

    lenient.update_called_bluffs()
    strict.update_called_bluffs()

    assert lenient.context.called_bluffs == {"duke"}
    assert strict.context.called_bluffs == set()


# =========================================================================
# OWN TURN
# =========================================================================

@pytest.mark.parametrize("roles, cash, action", [
    (["contessa", "contessa"], 10, "coup"),
    (["assassin", "contessa"], 3, "assassinate"),
    (["contessa", "contessa"], 7, "coup"),
    (["captain", "contessa"], 2, "steal"),
    (["duke", "contessa"], 2, "tax"),
])
def test_own_turn_priorities(roles, cash, action):
    policy = make_policy(snapshot([
        player(roles, cash), player(["duke", "duke"], 2), player(["captain"], 2),
    ], playerIdx=AI_IDX))

    command = policy.play_our_turn()

    assert command.command == CommandType.PLAY_ACTION
    assert command.action == action
    if action != "tax":
        assert command.target == 1
    assert policy.beliefs.claimed_roles(AI_IDX) == {
        "coup": [], "assassinate": ["assassin"], "steal": ["captain"], "tax": ["duke"],
    }[action]


@pytest.mark.parametrize("roles, action", [
    (["contessa", "contessa"], "exchange"),
    (["assassin", "contessa"], "income"),
])
def test_own_turn_without_bluffing(roles, action):
    policy = make_policy(snapshot([
        player(roles, 2), player(["duke", "duke"], 2), player(["captain"], 2),
    ], playerIdx=AI_IDX), bluff_choice=False)

    assert policy.play_our_turn().action == action


def test_own_turn_bluff_rerolls_bluff_choice():
    policy = make_policy(snapshot([
        player(["contessa", "contessa"], 2), player(["duke", "duke"], 2), player(["captain"], 2),
    ], playerIdx=AI_IDX))
    policy.options = policy.options.model_copy(update={"chance_to_bluff": 0.0})
    policy.bluffs.options = policy.options

    command = policy.play_our_turn()

    assert command.action in ("steal", "tax")
    assert policy.context.bluff_choice is False


# =========================================================================
# RESPONSES
# =========================================================================

def test_bluffed_block_rerolls_bluff_choice():
    policy = make_policy(snapshot([
        player(["contessa", "contessa"], 2), player(["duke", "duke"], 2), player(["captain"], 2),
    ], name="action-response", playerIdx=1, action="steal", target=AI_IDX))
    policy.options = policy.options.model_copy(update={"chance_to_bluff": 0.0})
    policy.bluffs.options = policy.options

    command = policy.respond_to_action()

    assert command.command == CommandType.BLOCK
    assert command.blocking_role in ("captain", "ambassador")
    assert policy.beliefs.has_claimed(AI_IDX, command.blocking_role)
    assert policy.context.bluff_choice is False


def test_no_bluffed_block_out_of_the_mood():
    policy = make_policy(snapshot([
        player(["contessa", "contessa"], 2), player(["duke", "duke"], 2), player(["captain"], 2),
    ], name="action-response", playerIdx=1, action="steal", target=AI_IDX), bluff_choice=False)

    assert policy.respond_to_action().command == CommandType.ALLOW
    assert policy.beliefs.claimed_roles(AI_IDX) == []



def test_zero_cash_steal_is_allowed():
    policy = make_policy(snapshot([
        player(["contessa", "contessa"], 0), player(["duke", "duke"], 2), player(["captain"], 2),
    ], name="action-response", playerIdx=1, action="steal", target=AI_IDX))

    assert policy.respond_to_action().command == CommandType.ALLOW
    assert policy.beliefs.has_claimed(1, "captain")


def test_true_block_of_foreign_aid():
    policy = make_policy(snapshot([
        player(["duke", "contessa"], 2), player(["captain", "captain"], 2), player(["captain"], 2),
    ], name="final-action-response", playerIdx=1, action="foreign-aid"))

    command = policy.respond_to_action()

    assert command.command == CommandType.BLOCK
    assert command.blocking_role == "duke"


def test_final_response_never_challenges_or_bluffs():
    policy = make_policy(snapshot([
        player(["contessa", "contessa"], 2), player(["duke", "duke"], 2), player(["captain"], 2),
    ], name="final-action-response", playerIdx=1, action="steal", target=AI_IDX),
        chance_to_challenge=1)

    assert policy.should_challenge() is False
    assert policy.respond_to_action().command == CommandType.ALLOW


def test_actions_against_others_are_not_blocked_or_challenged():
    policy = make_policy(snapshot([
        player(["contessa", "contessa"], 2), player(["duke", "duke"], 2), player(["captain"], 2),
    ], name="action-response", playerIdx=1, action="assassinate", target=2),
        chance_to_challenge=1)

    assert policy.action_is_worth_challenging() is False
    assert policy.respond_to_action().command == CommandType.ALLOW


def test_tax_is_challenged_at_random_outside_end_game():
    always = make_policy(snapshot([
        player(["contessa", "contessa"], 2), player(["duke", "duke"], 2), player(["captain"], 2),
    ], name="action-response", playerIdx=1, action="tax"), chance_to_challenge=1)
    never = make_policy(snapshot([
        player(["contessa", "contessa"], 2), player(["duke", "duke"], 2), player(["captain"], 2),
    ], name="action-response", playerIdx=1, action="tax"))

    assert always.respond_to_action().command == CommandType.CHALLENGE
    assert never.respond_to_action().command == CommandType.ALLOW


def test_winning_forecast_suppresses_challenge():
    # We coup on our next move whatever they do
    policy = make_policy(two_player(
        ["duke"], ["duke"], 7, 0, name="action-response", playerIdx=OPPONENT_IDX, action="tax",
    ), chance_to_challenge=1)
    policy.track_claim(OPPONENT_IDX, "tax")

    assert policy.should_challenge() is False


# =========================================================================
# BLUFFING
# =========================================================================

def make_advisor(data, bluff_choice=True):
    policy = make_policy(data, bluff_choice=bluff_choice)
    return policy.bluffs, policy.context


FAR_FROM_END = snapshot([
    player(["contessa", "contessa"], 2), player(["duke", "duke"], 2), player(["captain"], 2),
], playerIdx=AI_IDX)


def test_called_bluff_is_never_bluffed_again():
    advisor, context = make_advisor(FAR_FROM_END)
    context.called_bluffs.add("duke")
    context.beliefs.record_claim(AI_IDX, "duke", DEFAULT_ROLES)

    for bluff_choice in (True, False, True):
        context.bluff_choice = bluff_choice
        assert advisor.should_bluff("tax") is False
        assert advisor.should_bluff("duke") is False


def test_no_new_bluffs_when_not_in_the_mood():
    advisor, context = make_advisor(FAR_FROM_END, bluff_choice=False)
    context.beliefs.record_claim(AI_IDX, "captain", DEFAULT_ROLES)

    assert advisor.should_bluff("tax") is False
    # Repeating an earlier claim is free
    assert advisor.should_bluff("steal") is True


def test_outstanding_claims_are_capped():
    advisor, context = make_advisor(FAR_FROM_END)
    for role in ("duke", "captain", "assassin"):
        context.beliefs.record_claim(AI_IDX, role, DEFAULT_ROLES)

    assert advisor.should_bluff("ambassador") is False
    assert advisor.should_bluff("captain") is True


def test_roleless_actions_are_never_bluffs():
    advisor, _ = make_advisor(FAR_FROM_END)

    assert advisor.should_bluff("income") is False


def test_winning_bluff_is_refused_in_end_game():
    advisor, _ = make_advisor(two_player(["contessa"], ["ambassador"], 5, 5, playerIdx=AI_IDX))

    assert advisor.should_bluff("assassinate") is False
    assert advisor.should_bluff("tax") is False


def test_reroll_uses_chance_to_bluff():
    advisor, context = make_advisor(FAR_FROM_END)
    advisor.options = advisor.options.model_copy(update={"chance_to_bluff": 0.0})

    assert advisor.reroll() is False
    assert context.bluff_choice is False
    assert isinstance(advisor, BluffAdvisor)
