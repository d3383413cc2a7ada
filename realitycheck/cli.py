"""
Reality Check CLI - Command-line interface for the engine.

Usage:
    realitycheck serve                  Run the API server
    realitycheck simulate               Play a headless game with random choices
    realitycheck clocks                 Print when each ring fires
"""

import argparse
import random
import sys

from . import config


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Reality Check - Turn and ring-event engine",
        prog="realitycheck",
    )
    parser.add_argument("--log-level", help="Override REALITYCHECK_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default=config.HOST, help="Bind address")
    serve_parser.add_argument("--port", type=int, default=config.PORT, help="Bind port")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play a headless game")
    simulate_parser.add_argument("--players", type=int, default=3, help="Number of players")
    simulate_parser.add_argument("--turns", type=int, default=24, help="Turns to play")
    simulate_parser.add_argument("--seed", type=int, help="Seed for a reproducible game")
    simulate_parser.add_argument(
        "--idle",
        action="store_true",
        help="Never act; let roll and decision timeouts drive the game",
    )

    # Clocks command
    clocks_parser = subparsers.add_parser("clocks", help="Print the ring firing table")
    clocks_parser.add_argument("--turns", type=int, default=24, help="Turns to show")

    args = parser.parse_args(argv)
    config.configure_logging(args.log_level)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    elif args.command == "clocks":
        cmd_clocks(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API server."""
    import uvicorn

    uvicorn.run("realitycheck.api.app:app", host=args.host, port=args.port)


def cmd_simulate(args):
    """Play a game on a virtual clock and print the final standings."""
    from .cards import create_default_catalog
    from .engine import ManualTimerScheduler, TurnPhase
    from .session import GameOrchestrator, create_player

    if args.players < 1:
        print("Error: need at least one player")
        sys.exit(1)

    rng = random.Random(args.seed)
    timers = ManualTimerScheduler()
    orchestrator = GameOrchestrator(
        game_id="simulation",
        catalog=create_default_catalog(rng),
        rng=rng,
        timers=timers,
    )
    for i in range(args.players):
        orchestrator.add_player(create_player(f"player{i + 1}", rng))

    counts = {"turn_result": 0, "card_resolved": 0, "decision_timeout": 0}

    def _count(message_type, payload):
        if message_type in counts:
            counts[message_type] += 1

    orchestrator.subscribe(_count)
    orchestrator.start()

    while orchestrator.turns_played < args.turns:
        player = orchestrator.current_player
        if args.idle:
            timers.advance(orchestrator.machine.roll_timeout_ms)
            if orchestrator.phase == TurnPhase.DECISION:
                timers.advance(orchestrator.machine.decision_timeout_ms)
            continue

        if orchestrator.phase == TurnPhase.ROLL:
            orchestrator.handle_roll(player.player_id, rng.randint(1, 6))
        if orchestrator.phase == TurnPhase.DECISION:
            card = orchestrator.pending_decision.cards[0]
            indexes = list(range(len(card.choices)))
            rng.shuffle(indexes)
            for index in indexes:
                if orchestrator.handle_card_choice(player.player_id, card.card_id, index).success:
                    break
            else:
                # Nothing affordable; wait the decision out
                timers.advance(orchestrator.machine.decision_timeout_ms)

    orchestrator.stop()

    print(f"Played {orchestrator.turns_played} turns over {orchestrator.round_number} round(s)")
    print(f"Turn results: {counts['turn_result']}, cards resolved: {counts['card_resolved']}, "
          f"decision timeouts: {counts['decision_timeout']}")
    print(f"Ring events fired: {len(orchestrator.scheduler.get_event_history())}")
    print()
    print(f"{'player':<10} {'money':>8} {'mental':>7} {'sin':>5} {'virtue':>7}  tags")
    for player in orchestrator.players:
        stats = player.stats
        print(f"{player.username:<10} {stats.money:>8} {stats.mental:>7} "
              f"{stats.sin:>5} {stats.virtue:>7}  {', '.join(player.tags)}")


def cmd_clocks(args):
    """Print which rings fire on each turn."""
    from .engine import RingEventScheduler

    scheduler = RingEventScheduler(rng=random.Random(0), seed_initial_events=False)
    for _ in range(args.turns - 1):
        fired = scheduler.advance_turn()
        if fired:
            rings = ", ".join(event.ring.value for event in fired)
            print(f"turn {scheduler.current_turn:>3}: {rings}")


if __name__ == "__main__":
    main()
