"""
modstake CLI: inspect contract state and seed reputation.

Usage:
    python -m modstake.cli content ID                   # Show one content record
    python -m modstake.cli list [STATUS]                # List content, newest first
    python -m modstake.cli reputation PRINCIPAL         # Show a reputation score
    python -m modstake.cli stake PRINCIPAL              # Show an active stake
    python -m modstake.cli set-reputation PRINCIPAL N   # Administrative score write
    python -m modstake.cli events                       # Recent event log entries
    python -m modstake.cli verify                       # Verify the event hash chain
    python -m modstake.cli params                       # Show protocol parameters
"""
import sys

from modstake.config import get_db_path, load_params
from modstake.contract import ModerationContract
from modstake.models import ContentStatus
from modstake.observability import configure_logging


def _contract() -> ModerationContract:
    db_path = get_db_path()
    if not db_path.exists():
        print(f"Database not found at {db_path}")
        sys.exit(1)
    return ModerationContract(db_path=db_path)


def _arg(index: int, usage: str) -> str:
    if len(sys.argv) <= index:
        print(f"Usage: python -m modstake.cli {usage}")
        sys.exit(1)
    return sys.argv[index]


def _int_arg(index: int, usage: str) -> int:
    raw = _arg(index, usage)
    try:
        return int(raw)
    except ValueError:
        print(f"Expected an integer, got {raw!r}")
        sys.exit(1)


def _print_record(record) -> None:
    print(f"\n  [{record.id}] {record.status.value}")
    print(f"       author:   {record.author}")
    print(f"       hash:     {record.content_hash.hex()}")
    print(f"       votes:    {record.votes_for} for / {record.votes_against} against")
    print(f"       window:   {record.created_at} -> {record.voting_ends_at}")


def cmd_content():
    content_id = _int_arg(2, "content ID")
    record = _contract().get_content(content_id)
    if record is None:
        print(f"Content {content_id} not found")
        sys.exit(1)
    _print_record(record)


def cmd_list():
    status = None
    if len(sys.argv) > 2:
        try:
            status = ContentStatus(sys.argv[2])
        except ValueError:
            print(f"Unknown status: {sys.argv[2]}")
            print(f"Available: {', '.join(s.value for s in ContentStatus)}")
            sys.exit(1)
    records = _contract().registry.list_content(status=status, limit=20)
    print("=" * 50)
    print("MODSTAKE CONTENT (last 20)")
    print("=" * 50)
    if not records:
        print("\n(no content)")
        return
    for record in records:
        _print_record(record)


def cmd_reputation():
    principal = _arg(2, "reputation PRINCIPAL")
    score = _contract().get_user_reputation(principal).score
    print(f"{principal}: {score}")


def cmd_stake():
    principal = _arg(2, "stake PRINCIPAL")
    stake = _contract().get_stake(principal)
    if stake is None:
        print(f"{principal}: no active stake")
        return
    print(f"{principal}: {stake.amount} staked at {stake.staked_at}, unlocks at {stake.unlocks_at}")


def cmd_set_reputation():
    usage = "set-reputation PRINCIPAL SCORE"
    principal = _arg(2, usage)
    score = _int_arg(3, usage)
    try:
        record = _contract().reputation.set_reputation(principal, score)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"{principal}: {record.score}")


def cmd_events():
    entries = _contract().events.list_entries(limit=20)
    print("=" * 50)
    print("MODSTAKE EVENT LOG (last 20)")
    print("=" * 50)
    if not entries:
        print("\n(no entries)")
        return
    for e in entries:
        target = f" content={e['content_id']}" if e["content_id"] is not None else ""
        print(f"\n  [{e['id']}] {e['action']} by {e['principal']}{target}")
        print(f"       at height {e['block_height']} ({e['timestamp']})")
        print(f"       hash: {e['hash'][:16]}...")


def cmd_verify():
    valid = _contract().events.verify()
    print("Event chain: " + ("VALID" if valid else "BROKEN"))
    if not valid:
        sys.exit(2)


def cmd_params():
    for name, value in load_params().to_dict().items():
        print(f"  {name:24s} {value}")


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(0)
    configure_logging()
    cmd = sys.argv[1]
    commands = {
        "content": cmd_content,
        "list": cmd_list,
        "reputation": cmd_reputation,
        "stake": cmd_stake,
        "set-reputation": cmd_set_reputation,
        "events": cmd_events,
        "verify": cmd_verify,
        "params": cmd_params,
    }
    if cmd not in commands:
        print(f"Unknown command: {cmd}")
        print(f"Available: {', '.join(commands)}")
        sys.exit(1)
    commands[cmd]()


if __name__ == "__main__":
    main()
