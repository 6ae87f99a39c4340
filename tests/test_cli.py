import json
from pathlib import Path

from steamscript.cli.inspect_save import main as inspect_main
from steamscript.cli.new_save import main as new_save_main
from steamscript.cli.play import current_actions, main as play_main, run_session
from steamscript.content.demo import build_demo_library, new_demo_game
from steamscript.content.io import load_game_json
from steamscript.sim.hash import game_hash


def _scripted_input(commands: list[str]):
    pending = list(commands)

    def _input(prompt: str) -> str:
        if not pending:
            raise EOFError
        return pending.pop(0)

    return _input


def test_new_save_writes_a_loadable_canonical_save(tmp_path: Path, capsys) -> None:
    out_path = tmp_path / "fresh.json"

    exit_code = new_save_main([str(out_path), "--seed", "123", "--player-name", "Ada", "--print-summary"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert output.startswith("ok ")
    assert "save_hash=" in output
    assert "summary location=station" in output

    game = load_game_json(out_path, build_demo_library())
    assert game.seed == 123
    assert game.player.display_name == "Ada"
    assert f"game_hash={game_hash(game)}" in output


def test_new_save_requires_force_to_overwrite(tmp_path: Path, capsys) -> None:
    out_path = tmp_path / "existing.json"
    out_path.write_text(json.dumps({"existing": True}), encoding="utf-8")

    exit_code = new_save_main([str(out_path)])
    output = capsys.readouterr().out

    assert exit_code == 1
    assert "output exists" in output
    assert json.loads(out_path.read_text(encoding="utf-8")) == {"existing": True}

    assert new_save_main([str(out_path), "--force"]) == 0


def test_inspect_reports_a_summary(tmp_path: Path, capsys) -> None:
    out_path = tmp_path / "save.json"
    new_save_main([str(out_path), "--seed", "4"])
    capsys.readouterr()

    exit_code = inspect_main([str(out_path), "--print-cards"])

    output = capsys.readouterr().out
    assert exit_code == 0
    assert "location=station" in output
    assert "cards=1" in output
    assert "card id=find-lodgings type=Quest" in output


def test_inspect_rejects_a_tampered_save(tmp_path: Path, capsys) -> None:
    out_path = tmp_path / "save.json"
    new_save_main([str(out_path)])
    capsys.readouterr()
    payload = json.loads(out_path.read_text(encoding="utf-8"))
    payload["game_state"]["time"] += 60
    out_path.write_text(json.dumps(payload), encoding="utf-8")

    exit_code = inspect_main([str(out_path)])

    output = capsys.readouterr().out
    assert exit_code == 1
    assert output.startswith("error: save_hash mismatch")


def test_default_actions_outside_a_scene() -> None:
    game = new_demo_game(seed=1)

    labels = [label for label, _ in current_actions(game)]

    assert labels == [
        "Go to Gaslight Market",
        "Go to The Copper Kettle",
        "Talk to a conductor",
        "Read the timetable",
        "Relax",
        "Wait a while",
    ]


def test_run_session_travels_and_autosaves(tmp_path: Path) -> None:
    game = new_demo_game(seed=1)
    save_path = tmp_path / "autosave.json"
    lines: list[str] = []

    run_session(game, input_fn=_scripted_input(["2", "nonsense", "q"]), output=lines.append, save_path=save_path)

    assert game.current_location == "tavern"
    assert any(line.startswith("== The Copper Kettle") for line in lines)
    assert "Choose a number from the list, or: save, wait <minutes>, quit." in lines
    assert load_game_json(save_path, build_demo_library()).current_location == "tavern"


def test_run_session_wait_and_save_commands(tmp_path: Path) -> None:
    game = new_demo_game(seed=1)
    game.settings.set("autosave", False)
    save_path = tmp_path / "manual.json"
    start = game.time
    lines: list[str] = []

    run_session(game, input_fn=_scripted_input(["wait 20", "save"]), output=lines.append, save_path=save_path)

    assert game.time - start == 20 * 60
    assert f"saved to {save_path}" in lines
    assert load_game_json(save_path, build_demo_library()).time == game.time


def test_play_reports_missing_saves(tmp_path: Path, capsys) -> None:
    exit_code = play_main(["--load-save", str(tmp_path / "missing.json")])

    assert exit_code == 1
    assert capsys.readouterr().out.startswith("error: ")
