"""Tests for replay analysis functions."""

from types import SimpleNamespace

from message_codec import Chat, Goal, PlayerUpdate
from player_tracker import PlayerTracker
from replay_analyzers import (
    CLOCK_TICKS_PER_SECOND,
    clock_to_seconds,
    clock_to_time,
    describe_chat,
    describe_goal,
    score_changes,
    unseen_messages,
)


class TestClockConversion:
    """Tests for clock conversion functions."""

    def test_clock_to_time_zero(self):
        """Test zero clock."""
        assert clock_to_time(0) == "0:00"

    def test_clock_to_time_full_period(self):
        """Test a five minute period."""
        assert clock_to_time(5 * 60 * CLOCK_TICKS_PER_SECOND) == "5:00"

    def test_clock_to_time_truncates(self):
        """Test that hundredths are dropped."""
        assert clock_to_time(6199) == "1:01"

    def test_clock_to_time_none(self):
        """Test None input."""
        assert clock_to_time(None) == "0:00"

    def test_clock_to_seconds(self):
        """Test seconds conversion."""
        assert clock_to_seconds(150) == 1.5
        assert clock_to_seconds(None) == 0


class TestUnseenMessages:
    """Tests for unseen_messages function."""

    def test_first_packet(self):
        """Test that everything is new at the start."""
        fresh, next_pos = unseen_messages(10, ['a', 'b', 'c'], 0)
        assert fresh == [(10, 'a'), (11, 'b'), (12, 'c')]
        assert next_pos == 13

    def test_overlap(self):
        """Test that already processed positions are dropped."""
        fresh, next_pos = unseen_messages(11, ['b', 'c', 'd'], 13)
        assert fresh == [(13, 'd')]
        assert next_pos == 14

    def test_nothing_new(self):
        """Test a backlog fully seen before."""
        fresh, next_pos = unseen_messages(11, ['b', 'c'], 13)
        assert fresh == []
        assert next_pos == 13

    def test_empty_backlog(self):
        """Test an empty backlog."""
        assert unseen_messages(5, [], 5) == ([], 5)


class TestDescribe:
    """Tests for goal and chat descriptions."""

    def _tracker(self):
        tracker = PlayerTracker()
        tracker.apply(PlayerUpdate(0, 'Alice', ('red', 0), True))
        tracker.apply(PlayerUpdate(1, 'Bob', ('red', 1), True))
        return tracker

    def test_goal(self):
        """Test goal with scorer and assist names."""
        goal = describe_goal(Goal('red', 0, 1), self._tracker(), period=2, clock=12345)
        assert goal == {
            'team': 'red',
            'scorer': 'Alice',
            'assist': 'Bob',
            'period': 2,
            'clock': 12345,
            'time': '2:03',
        }

    def test_goal_unknown_scorer(self):
        """Test goal with nobody credited."""
        goal = describe_goal(Goal('blue', None, 9), self._tracker())
        assert goal['scorer'] is None
        assert goal['assist'] is None

    def test_chat_from_player(self):
        """Test chat sender name."""
        assert describe_chat(Chat(1, 'gg'), self._tracker())['sender'] == 'Bob'

    def test_chat_from_server(self):
        """Test server messages."""
        chat = describe_chat(Chat(None, 'Game over'), self._tracker())
        assert chat['sender'] == '[Server]'
        assert chat['sender_index'] is None


class TestScoreChanges:
    """Tests for score_changes function."""

    def _state(self, red, blue, clock=0, period=1):
        return SimpleNamespace(red_score=red, blue_score=blue, clock=clock, period=period)

    def test_no_goals(self):
        """Test a scoreless game."""
        assert score_changes([self._state(0, 0), self._state(0, 0)]) == []

    def test_changes(self):
        """Test that only packets with a new score are listed."""
        states = [
            self._state(0, 0),
            self._state(1, 0, clock=20000),
            self._state(1, 0),
            self._state(1, 1, clock=100, period=2),
        ]
        changes = score_changes(states)
        assert [(c['red'], c['blue']) for c in changes] == [(1, 0), (1, 1)]
        assert changes[0]['time'] == '3:20'
        assert changes[1]['period'] == 2
