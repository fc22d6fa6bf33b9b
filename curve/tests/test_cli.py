"""
Tests for the command-line tools.
"""

import json

from ..cli import main


GOBLIN = {
    "id": "goblin",
    "name": "Goblin",
    "cost": 1,
    "type": "UNIT",
    "attack": 1,
    "health": 2,
}


def write_json(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


class TestCards:

    def test_lists_base_set(self, capsys):
        assert main(["cards"]) == 0
        out = capsys.readouterr().out
        assert "kriper" in out
        assert "battering_ram" in out
        assert len(out.strip().splitlines()) == 12

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()


class TestDeck:

    def test_preset(self, capsys):
        assert main(["deck", "balanced-starter"]) == 0
        out = capsys.readouterr().out
        assert "Balanced Starter (29 cards)" in out
        assert "3x kriper" in out

    def test_custom_file(self, tmp_path, capsys):
        path = write_json(tmp_path, "deck.json", {
            "deck_type": "custom",
            "name": "Tiny",
            "cards": [{"card_id": "kriper", "quantity": 4}],
        })
        assert main(["deck", path]) == 1
        out = capsys.readouterr().out
        assert "Tiny (4 cards)" in out
        assert "Errors:" in out
        assert "Too many copies of Kriper" in out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["deck", str(tmp_path / "nope.json")]) == 1
        assert "File not found" in capsys.readouterr().out

    def test_malformed_deck(self, tmp_path, capsys):
        path = write_json(tmp_path, "deck.json", {"deck_type": "sideboard"})
        assert main(["deck", path]) == 1
        assert "deck_type" in capsys.readouterr().out


class TestValidateCard:

    def test_valid_card(self, tmp_path, capsys):
        path = write_json(tmp_path, "goblin.json", GOBLIN)
        assert main(["validate-card", path]) == 0
        assert "goblin: OK" in capsys.readouterr().out

    def test_rule_violation(self, tmp_path, capsys):
        path = write_json(tmp_path, "goblin.json", dict(GOBLIN, health=0))
        assert main(["validate-card", path]) == 1
        out = capsys.readouterr().out
        assert "goblin: INVALID" in out
        assert "at least 1 health" in out

    def test_incompatible_effect(self, tmp_path, capsys):
        card = dict(GOBLIN, effects=[{"trigger": "TAUNT", "action": "HEAL", "value": 1}])
        path = write_json(tmp_path, "goblin.json", card)
        assert main(["validate-card", path]) == 1
        assert "not compatible with HEAL" in capsys.readouterr().out

    def test_list_with_schema_error(self, tmp_path, capsys):
        path = write_json(tmp_path, "cards.json", [GOBLIN, dict(GOBLIN, id="ogre", cost=12)])
        assert main(["validate-card", path]) == 1
        out = capsys.readouterr().out
        assert "goblin: OK" in out
        assert "Invalid card data" in out
        assert "cost" in out

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert main(["validate-card", str(path)]) == 1
        assert "Invalid JSON" in capsys.readouterr().out


class TestSimulate:

    def test_seeded_match_is_reproducible(self, capsys):
        assert main(["simulate", "--seed", "3"]) == 0
        first = capsys.readouterr().out
        assert main(["simulate", "--seed", "3"]) == 0
        assert capsys.readouterr().out == first
        assert "Player 1:" in first

    def test_command_limit(self, capsys):
        assert main(["simulate", "--seed", "1", "--max-commands", "1"]) == 0
        assert "No winner after 1 commands" in capsys.readouterr().out
