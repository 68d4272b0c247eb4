"""Database models."""

from gametracker.models.accounts import accounts, metadata
from gametracker.models.games import GameSource, GameStatus, games
from gametracker.models.refresh_tokens import refresh_tokens
from gametracker.models.steam_games import steam_games
from gametracker.models.sync_runs import SyncStatus, sync_runs

__all__ = [
    "GameSource",
    "GameStatus",
    "SyncStatus",
    "accounts",
    "games",
    "metadata",
    "refresh_tokens",
    "steam_games",
    "sync_runs",
]
