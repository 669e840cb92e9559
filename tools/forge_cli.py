#!/usr/bin/env python3
"""
SEEDFORGE - Seed & Game CLI

Usage:
    python -m tools.forge_cli encode --verbs shoot collect --gravity low --chaos 40 --seed 123456
    python -m tools.forge_cli decode SHOT-FLOT-COLR4-7X3K
    python -m tools.forge_cli generate --verbs jump dodge --chaos 80 --json
    python -m tools.forge_cli play SHOT-FLOT-COLR4-7X3K --events player_collect_coin bullet_hit_enemy
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.game_schema import (
    CoreVerb, DifficultyStyle, GamePace, GravityMode, UserChoices,
)
from config.settings import configure_logging
from flows.game_generator import generate_game
from game_engine.seed import decode_seed_code, encode_seed_code, generate_share_url
from game_engine.session import GameSession

console = Console()


def _choices_from_args(args) -> UserChoices:
    return UserChoices(
        verbs=args.verbs,
        gravity=args.gravity,
        world_difference=args.world,
        difficulty_style=args.difficulty,
        game_pace=args.pace,
        chaos_level=args.chaos,
    )


def _add_choice_args(parser):
    parser.add_argument("--verbs", nargs="+", default=["jump"],
                        choices=[v.value for v in CoreVerb], help="1-3 core verbs")
    parser.add_argument("--gravity", default="normal", choices=[g.value for g in GravityMode])
    parser.add_argument("--world", default="colors_alive", help="World difference key or free text")
    parser.add_argument("--difficulty", default="steady", choices=[d.value for d in DifficultyStyle])
    parser.add_argument("--pace", default="medium", choices=[p.value for p in GamePace])
    parser.add_argument("--chaos", type=int, default=0, help="Chaos level 0-100")


def cmd_encode(args) -> int:
    code = encode_seed_code(_choices_from_args(args), args.seed)
    console.print(Panel(f"[bold]{code}[/bold]\n{generate_share_url(code)}",
                        title="Seed Code", border_style="cyan"))
    return 0


def cmd_decode(args) -> int:
    decoded = decode_seed_code(args.code)
    table = Table(title=f"Decoded {args.code}")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in decoded.to_dict().items():
        table.add_row(key, "[dim]unknown[/dim]" if value is None else str(value))
    console.print(table)
    return 1 if decoded.is_blank else 0


def cmd_generate(args) -> int:
    game = generate_game(_choices_from_args(args), internal_seed=args.seed)
    if args.json:
        print(game.model_dump_json(indent=2))
        return 0

    console.print(Panel(
        f"[bold]{game.name}[/bold]\n\n"
        f"Seed Code: {game.seed_code}\n"
        f"Rules: {len(game.rules)}\n"
        f"Chaos: {game.chaos.level} ({game.chaos.tier.value}), "
        f"{len(game.chaos.mutations)} mutations eligible\n"
        f"Loops: {len(game.feedback_loops.positive)} positive, "
        f"{len(game.feedback_loops.negative)} negative",
        title="Generated Game", border_style="green" if game.validation.valid else "yellow",
    ))

    table = Table(title="Rules")
    for col in ("Trigger", "Condition", "Action", "Effect"):
        table.add_column(col)
    for r in game.rules:
        table.add_row(r.trigger, r.condition or "", r.action, r.effect)
    console.print(table)

    for w in game.validation.warnings:
        console.print(f"[yellow]⚠️  {w}[/yellow]")
    for s in game.validation.suggestions:
        console.print(f"[dim]- {s}[/dim]")
    return 0


def cmd_play(args) -> int:
    session = GameSession.from_seed_code(args.code)
    for trigger in args.events:
        effects = session.handle_event(trigger)
        rendered = ", ".join(f"{e.type}{e.operator}{e.value}" for e in effects) or "[dim]no rule[/dim]"
        console.print(f"{trigger}: {rendered}")
        if args.tick:
            activated = session.tick(args.tick)
            if activated is not None:
                console.print(f"  [magenta]chaos: {activated.id}[/magenta]")

    snap = session.snapshot()
    state = snap["state"]
    console.print(Panel(
        f"Score: {state['score']}  Health: {state['health']}  Level: {state['level']}\n"
        f"Flags: {', '.join(k for k, v in state['flags'].items() if v) or '-'}\n"
        f"Chaos tier: {snap['chaos_tier']}  Active: {', '.join(snap['active_mutations']) or '-'}",
        title=f"Session {snap['seed_code']}", border_style="cyan",
    ))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Encode, decode, generate and play seed codes")
    parser.add_argument("--log-level", default=None, help="Override SEEDFORGE_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("encode", help="Encode choices and a seed into a seed code")
    _add_choice_args(p)
    p.add_argument("--seed", type=int, default=0)
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser("decode", help="Decode a seed code")
    p.add_argument("code")
    p.set_defaults(func=cmd_decode)

    p = sub.add_parser("generate", help="Generate a full game")
    _add_choice_args(p)
    p.add_argument("--seed", type=int, default=None, help="Internal seed (random if omitted)")
    p.add_argument("--json", action="store_true", help="Dump the payload as JSON")
    p.set_defaults(func=cmd_generate)

    p = sub.add_parser("play", help="Replay trigger events against a seed code")
    p.add_argument("code")
    p.add_argument("--events", nargs="*", default=[])
    p.add_argument("--tick", type=float, default=0, help="Milliseconds to advance after each event")
    p.set_defaults(func=cmd_play)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
