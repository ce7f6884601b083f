import argparse
import asyncio
import getpass
import logging
import pathlib
import sys
import threading
import time

from aimrank.config import settings
from aimrank.jobs.scheduler import setup_scheduler, shutdown_scheduler
from aimrank.logger import setup_logging
from aimrank.services.backup import BackupError, BackupService, backup_filename
from aimrank.services.leaderboard import LeaderboardService
from aimrank.services.match import MatchOrchestrator, PlayerSession
from aimrank.services.practice import PracticeRunner
from aimrank.services.ranks import rank_of
from aimrank.services.stats import player_profile
from aimrank.services.storage import GameRepository, create_store

# Logger is configured in main()
logger = logging.getLogger(__name__)


class ConsoleReactionSource:
    """
    Terminal input collaborator: the target spawns, Enter shoots it.

    A daemon thread reads stdin and timestamps every line so a keypress
    left over from an earlier round is never counted for the next one.
    """

    def __init__(self):
        self._loop = asyncio.get_running_loop()
        self._lines: asyncio.Queue = asyncio.Queue()
        threading.Thread(target=self._read_stdin, daemon=True).start()

    def _read_stdin(self):
        for _ in sys.stdin:
            self._loop.call_soon_threadsafe(self._lines.put_nowait, time.perf_counter())

    async def next_reaction(self):
        while not self._lines.empty():
            self._lines.get_nowait()
        print(">>> TARGET! press Enter <<<", flush=True)
        started = time.perf_counter()
        pressed = await self._lines.get()
        return (pressed - started) * 1000


def rank_name(rating: int) -> str:
    return rank_of(rating, settings.grand_champion_threshold).name


async def load_session(repository: GameRepository) -> PlayerSession:
    return PlayerSession(
        rating=await repository.load_rating(),
        stats=await repository.load_stats(),
    )


async def cmd_play(repository: GameRepository, args) -> None:
    session = await load_session(repository)
    orchestrator = MatchOrchestrator(repository=repository)
    opponent = orchestrator.queue(session)
    print(f"Queued vs {opponent.name} (ELO {opponent.rating}). Get ready...")
    result = await orchestrator.play(
        session,
        ConsoleReactionSource(),
        on_round=lambda outcome: print(outcome.describe()),
    )
    print(f"Match complete. You won {result.rounds_won}/{result.total_rounds} rounds.")
    print(f"ELO: {result.rating_before} -> {result.rating_after} ({rank_name(result.rating_after)})")


async def cmd_practice(repository: GameRepository, args) -> None:
    session = await load_session(repository)
    runner = PracticeRunner(repository=repository)
    print("Practice mode. Ctrl+C to stop.")
    results = await runner.start(session, ConsoleReactionSource(), max_attempts=args.targets)
    hits = [r.reaction_ms for r in results if r.hit]
    print(f"Practice ended: {len(hits)}/{len(results)} hits")


async def cmd_leaderboard(repository: GameRepository, args) -> None:
    service = LeaderboardService(repository)
    if args.watch:
        scheduler = await setup_scheduler(service, args.watch)
        try:
            while True:
                await _print_standings(service, repository)
                await asyncio.sleep(args.watch)
        finally:
            if scheduler:
                shutdown_scheduler()
    else:
        await _print_standings(service, repository)


async def _print_standings(service: LeaderboardService, repository: GameRepository) -> None:
    for row in await service.standings(await repository.load_rating()):
        marker = " <- you" if row.entry.is_player else ""
        crown = "* " if row.is_top else ""
        print(f"#{row.position:<3} {crown}{row.entry.name:<20} {row.entry.rating:>5}  {row.rank.name}{marker}")


async def cmd_profile(repository: GameRepository, args) -> None:
    profile = player_profile(
        await repository.load_rating(),
        await repository.load_stats(),
        settings.grand_champion_threshold,
    )
    for key, value in profile.to_dict().items():
        print(f"{key}: {'-' if value is None else value}")


async def cmd_backup(repository: GameRepository, args) -> None:
    password = getpass.getpass("Password to encrypt your backup (remember it): ")
    path = pathlib.Path(args.file or backup_filename())
    document = await BackupService(repository, settings.backup_pbkdf2_iterations).create_backup(password)
    path.write_text(document, encoding="utf-8")
    print(f"Backup saved to {path}. Keep the password safe.")


async def cmd_restore(repository: GameRepository, args) -> None:
    text = pathlib.Path(args.file).read_text(encoding="utf-8")
    password = getpass.getpass("Password used to encrypt this backup: ")
    restored = await BackupService(repository, settings.backup_pbkdf2_iterations).restore_backup(text, password)
    print(f"Restore complete. ELO: {restored.rating}")


COMMANDS = {
    "play": cmd_play,
    "practice": cmd_practice,
    "leaderboard": cmd_leaderboard,
    "profile": cmd_profile,
    "backup": cmd_backup,
    "restore": cmd_restore,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aimrank", description="Reaction-time ranked ladder")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("play", help="Queue a ranked match")
    practice = sub.add_parser("practice", help="Endless practice targets")
    practice.add_argument("--targets", type=int, default=None)
    board = sub.add_parser("leaderboard", help="Show the global leaderboard")
    board.add_argument("--watch", type=int, default=0, metavar="SECONDS",
                       help="Keep refreshing with a drift tick every SECONDS")
    sub.add_parser("profile", help="Show your profile")
    backup = sub.add_parser("backup", help="Write an encrypted backup")
    backup.add_argument("file", nargs="?")
    restore = sub.add_parser("restore", help="Restore an encrypted backup")
    restore.add_argument("file")
    return parser


async def run(args) -> int:
    logger.info(f"Storage: {settings.storage_backend} | log level: {settings.log_level}")
    store = await create_store()
    repository = GameRepository(store)
    try:
        await COMMANDS[args.command](repository, args)
    except BackupError as e:
        logger.error(f"{args.command} failed: {e}")
        print(str(e), file=sys.stderr)
        return 1
    finally:
        await store.close()
        logger.info("Storage closed")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(console=False)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("Stopped by user (Ctrl+C)")
        return 130


if __name__ == "__main__":
    sys.exit(main())
