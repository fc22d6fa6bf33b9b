"""
Curve CLI - Command-line tooling for card authors and testers.

Usage:
    curve cards                       List the base card set
    curve deck <preset|deck.json>     Assemble and check a deck
    curve validate-card <card.json>   Validate an authored card (or list of cards)
    curve simulate [--seed N]         Play a random match from legal actions
"""

import argparse
import json
import logging
import random
import sys

from pydantic import ValidationError


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Curve - Lane battler rules engine",
        prog="curve",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("cards", help="List the base card set")

    deck_parser = subparsers.add_parser("deck", help="Assemble and check a deck")
    deck_parser.add_argument("deck", help="Preset id or path to a deck JSON file")

    card_parser = subparsers.add_parser("validate-card", help="Validate an authored card")
    card_parser.add_argument("card_file", help="Path to card JSON file")

    sim_parser = subparsers.add_parser("simulate", help="Play a random match")
    sim_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    sim_parser.add_argument("--max-commands", type=int, default=2000, help="Command limit")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "cards": cmd_cards,
        "deck": cmd_deck,
        "validate-card": cmd_validate_card,
        "simulate": cmd_simulate,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(args)


def cmd_cards(args):
    """List the base card set."""
    from .catalog import CardCatalog

    for card in CardCatalog.default():
        stats = f"{card.attack}/{card.health}" if card.is_unit else "spell"
        triggers = ", ".join(e.trigger.value for e in card.effects) or "-"
        print(f"{card.id:<14} {card.cost:>2}  {stats:<6} {card.archetype:<10} {triggers}")
    return 0


def cmd_deck(args):
    """Assemble a preset or JSON deck and report its legality."""
    from .api import DeckSourceModel, DeckType, GameService
    from .catalog import PRESET_NAMES

    if args.deck in PRESET_NAMES:
        source = DeckSourceModel(deck_type=DeckType.PRESET, deck_id=args.deck)
    else:
        data = _load_json(args.deck)
        if data is None:
            return 1
        try:
            source = DeckSourceModel.model_validate(data)
        except ValidationError as e:
            _print_validation_error(e)
            return 1

    report = GameService().validate_deck(source)
    print(f"Deck: {report.name} ({report.size} cards)")
    for card_id, count in sorted(report.counts.items()):
        print(f"  {count}x {card_id}")
    _print_messages(report.errors, report.warnings)
    return 0 if report.valid else 1


def cmd_validate_card(args):
    """Validate one card or a list of cards from a JSON file."""
    from .api import CardDefinitionModel
    from .card_schema import validate_card

    data = _load_json(args.card_file)
    if data is None:
        return 1
    items = data if isinstance(data, list) else [data]

    failed = False
    for item in items:
        try:
            model = CardDefinitionModel.model_validate(item)
        except ValidationError as e:
            _print_validation_error(e)
            failed = True
            continue
        result = validate_card(model.to_definition())
        status = "OK" if result.valid else "INVALID"
        print(f"{model.id}: {status} (power {result.power_level}, complexity {result.complexity})")
        _print_messages(result.errors, result.warnings)
        failed = failed or not result.valid
    return 1 if failed else 0


def cmd_simulate(args):
    """Drive a match with uniformly random legal actions."""
    from .engine_core import GameConfig, GameEngine, legal_actions
    from .catalog import DeckSource

    config = GameConfig.from_env(random_seed=args.seed)
    engine = GameEngine.from_sources([DeckSource.preset(), DeckSource.preset()], config=config)
    engine.start_game()
    chooser = random.Random(args.seed)

    for _ in range(args.max_commands):
        if engine.state.game_over:
            break
        actions = legal_actions(engine)
        if not actions:
            break
        engine.apply(chooser.choice(actions))

    state = engine.state
    if state.game_over:
        print(f"Player {state.winner} wins on turn {state.turn_number}: {state.win_reason}")
    else:
        print(f"No winner after {args.max_commands} commands (turn {state.turn_number})")
    for player in state.players:
        print(f"  {player.name}: {player.health} health, {len(player.units)} unit(s)")
    return 0


def _load_json(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        print(f"Error: File not found: {path}")
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {path}: {e}")
    return None


def _print_validation_error(error):
    print("Error: Invalid card data")
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        print(f"  - {location}: {detail['msg']}")


def _print_messages(errors, warnings):
    if errors:
        print("\nErrors:")
        for e in errors:
            print(f"  - {e}")
    if warnings:
        print("\nWarnings:")
        for w in warnings:
            print(f"  - {w}")


if __name__ == "__main__":
    sys.exit(main())
