import pytest

from steamscript.content.demo import build_demo_library, new_demo_game
from steamscript.sim.builtins import SCRIPT_RNG_STREAM, SKILL_RNG_STREAM
from steamscript.sim.core import Game
from steamscript.sim.hash import game_hash
from steamscript.sim.rng import RandomStreams, derive_stream_seed


def test_derived_stream_seed_is_stable_for_same_master_seed() -> None:
    seed_a = derive_stream_seed(master_seed=12345, stream_name=SCRIPT_RNG_STREAM)
    seed_b = derive_stream_seed(master_seed=12345, stream_name=SCRIPT_RNG_STREAM)

    assert seed_a == seed_b


def test_derived_stream_seed_changes_with_stream_name() -> None:
    script_seed = derive_stream_seed(master_seed=12345, stream_name=SCRIPT_RNG_STREAM)
    skill_seed = derive_stream_seed(master_seed=12345, stream_name=SKILL_RNG_STREAM)

    assert script_seed != skill_seed


def test_skill_draws_do_not_perturb_script_stream() -> None:
    game_a = new_demo_game(seed=987)
    game_b = new_demo_game(seed=987)

    values_before = [game_a.rng_stream(SCRIPT_RNG_STREAM).random() for _ in range(3)]

    for _ in range(100):
        game_b.rng_stream(SKILL_RNG_STREAM).random()

    values_after = [game_b.rng_stream(SCRIPT_RNG_STREAM).random() for _ in range(3)]

    assert values_before == values_after


def test_named_rng_stream_state_round_trips_through_game_payload() -> None:
    game = new_demo_game(seed=222)

    stream = game.rng_stream(SCRIPT_RNG_STREAM)
    _ = [stream.random() for _ in range(5)]

    reloaded = Game.from_dict(game.to_dict(), build_demo_library())

    assert reloaded.rng_stream(SCRIPT_RNG_STREAM).random() == stream.random()
    assert game_hash(reloaded) == game_hash(game)


def test_streams_reject_bad_seeds_and_state() -> None:
    with pytest.raises(ValueError, match="seed must be an integer"):
        RandomStreams(True)

    with pytest.raises(ValueError, match="rng_state must be an object"):
        RandomStreams(1).restore([1, 2, 3])
