#!/usr/bin/env python3
"""Quick smoke run: four bots play a whole game through the room manager"""

from shanghai_engine.bots import PlayerView, create_bot
from shanghai_engine.constants import PHASE_FINISHED
from shanghai_engine.engine import ShanghaiEngine

MAX_STEPS = 20000


def play_step(engine, code, game, bots):
    """Let whoever must act next do one thing."""
    if game.buy_phase.active:
        for name in list(game.buy_phase.eligible):
            view = PlayerView.from_game(game, name)
            engine.buy_discard(code, name, bots[name].should_buy(game.buy_phase.card, view))
        engine.resolve_buy_window(code, game.buy_phase.window_id)
        return

    name = game.current_player
    action = bots[name].choose_action(PlayerView.from_game(game, name))
    if action.type == 'draw':
        result = engine.pick_up_discard(code, name) if action.data['from_discard'] else engine.draw(code, name)
        if not result.success:
            result = engine.draw(code, name)
    elif action.type == 'meld':
        result = engine.make_meld(code, name, action.data['indices'], action.data['meld_type'])
    elif action.type == 'lay_off':
        result = engine.lay_off(code, name, action.data['card_index'],
                                action.data['target_player'], action.data['meld_index'])
    else:
        result = engine.discard(code, name, action.data['index'])
    if not result.success:
        # Fall back to discarding so the game keeps moving
        for index in range(len(game.player_data[name].hand)):
            if engine.discard(code, name, index).success:
                break


def test_basic_game():
    """Play a seeded game with bots only and print the standings"""
    print("Testing Shanghai engine...")

    engine = ShanghaiEngine(seed=2024)
    result = engine.create_or_join_room('Alice', ai_count=3)
    code = result.payload['room_code']
    print(f"Created room {code}: {result.payload['roster']}")

    engine.start_room(code, 'Alice')
    game = engine.get_room(code)
    game.player_data['Alice'].is_bot = True
    bots = {name: create_bot(name, game.player_data[name].difficulty) for name in game.players}

    steps = 0
    current_round = game.current_round
    while game.phase != PHASE_FINISHED and steps < MAX_STEPS:
        play_step(engine, code, game, bots)
        if game.current_round != current_round:
            print(f"Round {current_round} won by {game.round_winners[-1]}")
            current_round = game.current_round
        steps += 1

    if game.phase != PHASE_FINISHED:
        print(f"Stopped after {steps} steps in round {game.current_round}")
        return

    for entry in game.final_results['final_standings']:
        print(f"{entry['place']}. {entry['name']}: {entry['total']} points")
    print("Game complete.")


if __name__ == "__main__":
    test_basic_game()
