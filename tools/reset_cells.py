"""
Administrative reset: clear every user's owned cells.

The only way an owned set ever shrinks. Balances, treasury and the mining
event log are left untouched.

Usage:
    python -m tools.reset_cells [--data-dir DIR]
"""

import logging

from core.config import GameSettings
from core.store import GameStore

log = logging.getLogger("reset")


def reset_owned_cells(store: GameStore) -> int:
    """
    Empty every owned set and persist users.json.

    Returns:
        Number of users that owned at least one cell
    """
    reset_count = 0
    with store.lock:
        for user in store.users.values():
            if user.owned_cells:
                log.info(f"Reset user {user.email or user.id}: {len(user.owned_cells)} cells -> 0")
                user.owned_cells.clear()
                reset_count += 1
        store.save_users()
    return reset_count


def main():
    """CLI interface for the reset."""
    import argparse

    parser = argparse.ArgumentParser(description="Clear all owned cells")
    parser.add_argument("--data-dir", help="Override HEXMINER_DATA_DIR")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s │ %(name)-20s │ %(levelname)-8s │ %(message)s',
        datefmt='%H:%M:%S',
    )

    data_dir = args.data_dir or GameSettings.from_env().data_dir
    store = GameStore.open(data_dir)
    count = reset_owned_cells(store)
    log.info(f"Reset complete, {count} users reset")


if __name__ == "__main__":
    main()
