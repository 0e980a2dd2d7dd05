#!/usr/bin/env python3
"""
HQM Replay Parser
Decodes HQM ice hockey replay files into per-packet game states, the player
list, goals and chat.

Usage: python parse_hqmreplay.py <replay_file.hrp>
"""

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from bitreader import BitReader
from message_codec import Chat, Goal, Message, PlayerUpdate
from object_codec import GameObject
from packet_codec import FileHeader, Packet, iter_packets, read_file_header
from packet_history import DEFAULT_HISTORY_SIZE, PacketHistory
from player_tracker import PlayerTracker, ServerPlayer
from replay_analyzers import (
    clock_to_time,
    clock_to_seconds,
    describe_chat,
    describe_goal,
    score_changes,
    unseen_messages,
)
from replay_errors import ReplayDecodeError

logger = logging.getLogger(__name__)


@dataclass
class GameState:
    packet_number: int
    game_over: bool
    red_score: int
    blue_score: int
    period: int
    clock: int
    goal_message_timer: int
    objects: List[GameObject]
    player_list: List[Optional[ServerPlayer]]
    messages_in_this_packet: List[Message] = field(default_factory=list)

    def to_dict(self, include_objects: bool = True) -> dict:
        result = {
            'packet_number': self.packet_number,
            'game_over': self.game_over,
            'red_score': self.red_score,
            'blue_score': self.blue_score,
            'period': self.period,
            'clock': self.clock,
            'goal_message_timer': self.goal_message_timer,
            'messages': [dict(vars(m), type=m.kind) for m in self.messages_in_this_packet],
        }
        if include_objects:
            result['objects'] = {
                str(slot): obj.to_dict()
                for slot, obj in enumerate(self.objects)
                if obj is not None
            }
        return result


class HQMReplayParser:
    def __init__(
        self,
        filepath: str,
        *,
        history_size: Optional[int] = DEFAULT_HISTORY_SIZE,
        strict: bool = False,
        keep_partial: bool = False,
    ):
        self.filepath = filepath
        self.history_size = history_size or None  # 0 means keep every packet
        self.strict = strict
        self.keep_partial = keep_partial
        self.raw_data = b""
        self.header: Optional[FileHeader] = None
        self.states: List[GameState] = []
        self.players = PlayerTracker()
        self.goals = []
        self.chat = []
        self.decode_error: Optional[ReplayDecodeError] = None

    def load(self):
        """Read the replay file into memory"""
        with open(self.filepath, 'rb') as f:
            self.raw_data = f.read()
        self.header = read_file_header(BitReader(self.raw_data))
        return self

    def parse(self):
        """Decode every packet and build the game state timeline"""
        history = PacketHistory(self.history_size)
        next_position = 0
        try:
            for packet in iter_packets(self.raw_data, history, strict=self.strict):
                next_position = self._add_packet(packet, next_position)
        except ReplayDecodeError as e:
            if not self.keep_partial:
                raise
            logger.error("Stopped after %d packets: %s", len(self.states), e)
            self.decode_error = e
        return self

    def _add_packet(self, packet: Packet, next_position: int) -> int:
        header = packet.header
        fresh, next_position = unseen_messages(header.message_start, packet.messages, next_position)

        new_messages = []
        for _, msg in fresh:
            if isinstance(msg, PlayerUpdate):
                self.players.apply(msg)
            elif isinstance(msg, Goal):
                self.goals.append(describe_goal(msg, self.players, period=header.period, clock=header.clock))
            elif isinstance(msg, Chat):
                self.chat.append(dict(
                    describe_chat(msg, self.players),
                    period=header.period,
                    time=clock_to_time(header.clock),
                ))
            new_messages.append(msg)

        self.states.append(GameState(
            packet_number=header.packet_number,
            game_over=header.game_over,
            red_score=header.red_score,
            blue_score=header.blue_score,
            period=header.period,
            clock=header.clock,
            goal_message_timer=header.goal_message_timer,
            objects=packet.objects,
            player_list=self.players.snapshot(),
            messages_in_this_packet=new_messages,
        ))
        return next_position

    @property
    def final_state(self) -> Optional[GameState]:
        return self.states[-1] if self.states else None

    def report(self, *, timeline: bool = False):
        """Print analysis report"""
        print("=" * 80)
        print("HQM REPLAY ANALYSIS")
        print("=" * 80)

        print(f"\nFile: {os.path.basename(self.filepath)}")
        if self.header:
            print(f"Version: {self.header.version}")
            print(f"Declared length: {self.header.declared_length:,} bytes")
        print(f"Raw size: {len(self.raw_data):,} bytes")
        print(f"Packets: {len(self.states):,}")
        if self.decode_error:
            print(f"Decoding stopped early: {self.decode_error}")

        if timeline:
            print(f"\n{'='*40}")
            print("TIMELINE")
            print(f"{'='*40}")
            for state in self.states:
                print(f"Period {state.period} Time: {state.clock}, {state.red_score}-{state.blue_score}")

        final = self.final_state
        if final:
            print(f"\n{'='*40}")
            print("SCORE")
            print(f"{'='*40}")
            print(f"  Red {final.red_score} - {final.blue_score} Blue")
            print(f"  Period {final.period}, {clock_to_time(final.clock)} left"
                  + (" (game over)" if final.game_over else ""))

        print(f"\n{'='*40}")
        print("PLAYERS")
        print(f"{'='*40}")
        for index, player in sorted(self.players.connected().items()):
            team = player.team or 'spectating'
            print(f"  [{index:2}] {player.name} ({team})")

        if self.goals:
            print(f"\n{'='*40}")
            print("GOALS")
            print(f"{'='*40}")
            for goal in self.goals:
                assist = f", assist {goal['assist']}" if goal['assist'] else ""
                print(f"  P{goal['period']} {goal['time']}  {goal['team']:4}  {goal['scorer'] or '?'}{assist}")

        if self.chat:
            print(f"\n{'='*40}")
            print("CHAT")
            print(f"{'='*40}")
            for line in self.chat:
                print(f"  {line['sender']}: {line['text']}")

    def to_json(self, include_packets: bool = False) -> dict:
        final = self.final_state
        result = {
            'file': os.path.basename(self.filepath),
            'header': vars(self.header) if self.header else None,
            'raw_size_bytes': len(self.raw_data),
            'total_packets': len(self.states),
            'final_score': {
                'red': final.red_score if final else 0,
                'blue': final.blue_score if final else 0,
            },
            'game_over': final.game_over if final else False,
            'last_period': final.period if final else 0,
            'last_clock_seconds': clock_to_seconds(final.clock) if final else 0,
            'players': self.players.to_dict(),
            'players_seen': {str(i): name for i, name in sorted(self.players.ever_joined.items())},
            'score_changes': score_changes(self.states),
            'goals': self.goals,
            'chat': self.chat,
            'decode_error': str(self.decode_error) if self.decode_error else None,
        }
        if include_packets:
            result['packets'] = [state.to_dict() for state in self.states]
        return result

    def export_json(self, output_path: str, *, include_packets: bool = False):
        """Export the parsed replay to a JSON file"""
        data = self.to_json(include_packets=include_packets)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)
        return output_path


def main(argv=None):
    import argparse

    arg_parser = argparse.ArgumentParser(
        description='Parse HQM replay files',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python parse_hqmreplay.py game.hrp
  python parse_hqmreplay.py game.hrp --timeline
  python parse_hqmreplay.py game.hrp --json --include-packets --output game.json
        """
    )
    arg_parser.add_argument('replay', help='Path to replay file')
    arg_parser.add_argument('--json', action='store_true',
                           help='Export the parsed replay to JSON')
    arg_parser.add_argument('--output', '-o',
                           help='Output JSON file path (default: <replay>.json)')
    arg_parser.add_argument('--include-packets', action='store_true',
                           help='Include every decoded packet (objects, messages) in the JSON')
    arg_parser.add_argument('--timeline', action='store_true',
                           help='Print one line per packet')
    arg_parser.add_argument('--quiet', '-q', action='store_true',
                           help='Suppress console output')
    arg_parser.add_argument('--history-size', type=int, default=DEFAULT_HISTORY_SIZE,
                           help=f'Packets kept as delta bases, 0 for all (default: {DEFAULT_HISTORY_SIZE})')
    arg_parser.add_argument('--strict', action='store_true',
                           help='Fail on truncated data and unexpected record markers')
    arg_parser.add_argument('--keep-partial', action='store_true',
                           help='Keep packets decoded before an error instead of failing')
    arg_parser.add_argument('--verbose', '-v', action='store_true',
                           help='Enable debug logging')

    args = arg_parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if not os.path.exists(args.replay):
        print(f"Error: File not found: {args.replay}")
        sys.exit(1)
    if args.history_size < 0:
        print("Error: --history-size must not be negative")
        sys.exit(1)

    parser = HQMReplayParser(
        args.replay,
        history_size=args.history_size,
        strict=args.strict,
        keep_partial=args.keep_partial,
    )
    try:
        parser.load().parse()
    except ReplayDecodeError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not args.quiet:
        parser.report(timeline=args.timeline)

    if args.json:
        json_path = args.output or args.replay.rsplit('.', 1)[0] + '.json'
        parser.export_json(json_path, include_packets=args.include_packets)
        if not args.quiet:
            print(f"\nExported {len(parser.states):,} packets to: {json_path}")


if __name__ == '__main__':
    main()
