"""
Replay analysis functions.
These functions operate on decoded packets and game states.
"""

from typing import List, Optional, Sequence, Tuple

from message_codec import Chat, Goal, Message
from player_tracker import PlayerTracker

# The game clock counts hundredths of a second
CLOCK_TICKS_PER_SECOND = 100

SERVER_NAME = '[Server]'


def clock_to_time(clock: Optional[int]) -> str:
    """Convert a clock value to m:ss format"""
    if clock is None:
        return "0:00"
    total_secs = clock // CLOCK_TICKS_PER_SECOND
    return f"{total_secs // 60}:{total_secs % 60:02d}"


def clock_to_seconds(clock: Optional[int]) -> float:
    if clock is None:
        return 0
    return clock / CLOCK_TICKS_PER_SECOND


def unseen_messages(
    start: int,
    messages: Sequence[Message],
    next_position: int,
) -> Tuple[List[Tuple[int, Message]], int]:
    """Drop backlog messages that an earlier packet already delivered.

    `next_position` is the first absolute position not yet processed. Returns
    the (position, message) pairs to process and the new next position.
    """
    fresh = [
        (start + i, msg)
        for i, msg in enumerate(messages)
        if start + i >= next_position
    ]
    return fresh, start + len(messages)


def describe_goal(goal: Goal, players: PlayerTracker, *, period: int = 0, clock: int = 0) -> dict:
    return {
        'team': goal.team,
        'scorer': players.name_of(goal.scorer),
        'assist': players.name_of(goal.assist),
        'period': period,
        'clock': clock,
        'time': clock_to_time(clock),
    }


def describe_chat(chat: Chat, players: PlayerTracker) -> dict:
    name = players.name_of(chat.sender)
    return {
        'sender': name or SERVER_NAME,
        'sender_index': chat.sender,
        'text': chat.text,
    }


def score_changes(states: Sequence) -> List[dict]:
    """List every packet where the score differs from the previous packet.

    States need red_score, blue_score, period and clock attributes.
    """
    changes = []
    last = (0, 0)
    for state in states:
        score = (state.red_score, state.blue_score)
        if score != last:
            changes.append({
                'period': state.period,
                'clock': state.clock,
                'time': clock_to_time(state.clock),
                'red': state.red_score,
                'blue': state.blue_score,
            })
            last = score
    return changes
