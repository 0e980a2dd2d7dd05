"""
Player list tracking for HQM replay parsing.
Applies player update messages to a list indexed by player index.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from message_codec import PlayerUpdate

MAX_PLAYERS = 63


@dataclass(frozen=True)
class ServerPlayer:
    name: str
    team_and_slot: Optional[Tuple[str, int]]

    @property
    def team(self) -> Optional[str]:
        return self.team_and_slot[0] if self.team_and_slot else None


class PlayerTracker:
    """Tracks who is connected, and on which team and object slot."""

    def __init__(self):
        self.players: List[Optional[ServerPlayer]] = [None] * MAX_PLAYERS
        self.ever_joined: Dict[int, str] = {}  # index -> last name seen

    def apply(self, update: PlayerUpdate):
        """Apply a player update message."""
        if not 0 <= update.player_index < MAX_PLAYERS:
            return
        if update.joined:
            self.players[update.player_index] = ServerPlayer(update.player_name, update.team_and_slot)
            self.ever_joined[update.player_index] = update.player_name
        else:
            self.players[update.player_index] = None

    def get(self, index: Optional[int]) -> Optional[ServerPlayer]:
        if index is None or not 0 <= index < MAX_PLAYERS:
            return None
        return self.players[index]

    def name_of(self, index: Optional[int]) -> Optional[str]:
        player = self.get(index)
        return player.name if player else None

    def snapshot(self) -> List[Optional[ServerPlayer]]:
        return list(self.players)

    def connected(self) -> Dict[int, ServerPlayer]:
        return {i: p for i, p in enumerate(self.players) if p is not None}

    def to_dict(self) -> dict:
        """Convert to JSON-friendly dict of connected players."""
        result = {}
        for index, player in self.connected().items():
            team, slot = player.team_and_slot or (None, None)
            result[str(index)] = {
                'index': index,
                'name': player.name,
                'team': team,
                'object_slot': slot,
            }
        return result
