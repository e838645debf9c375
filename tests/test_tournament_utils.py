"""Tests for tournament utility functions."""

import datetime
import unittest

from arenadmin.tournament.utils import (
    as_utc,
    build_live_message,
    parse_start_time,
    run_best_effort,
)

UTC = datetime.timezone.utc


class LiveMessageTestCase(unittest.TestCase):
    """Test case for the go-live message template."""

    def test_message_with_room_details(self) -> None:
        """Room details appear between the headline and the live notice."""
        tournament = {
            "title": "Friday Scrims",
            "roomId": "R-42",
            "roomPassword": "hunter2",
            "registeredTeams": 12,
            "maxTeams": 25,
        }

        self.assertEqual(
            build_live_message(tournament),
            'Tournament "Friday Scrims" has started!\n\n'
            "Room Details:\n"
            "Room ID: R-42\n"
            "Password: hunter2\n\n"
            "Tournament is now LIVE!\n"
            "12/25 teams registered\n\n"
            "Good luck and have fun!",
        )

    def test_room_block_omitted_without_password(self) -> None:
        """A room ID alone does not produce a room block."""
        tournament = {
            "title": "Friday Scrims",
            "roomId": "R-42",
            "registeredTeams": 3,
            "maxTeams": 10,
        }

        message = build_live_message(tournament)

        self.assertNotIn("Room Details", message)
        self.assertEqual(
            message,
            'Tournament "Friday Scrims" has started!\n\n'
            "Tournament is now LIVE!\n"
            "3/10 teams registered\n\n"
            "Good luck and have fun!",
        )

    def test_room_block_omitted_without_room_id(self) -> None:
        """A password alone does not produce a room block."""
        tournament = {
            "title": "Friday Scrims",
            "roomPassword": "pw1",
            "registeredTeams": 3,
            "maxTeams": 10,
        }

        message = build_live_message(tournament)

        self.assertNotIn("Room Details", message)
        self.assertNotIn("pw1", message)


class ParseStartTimeTestCase(unittest.TestCase):
    """Test case for reading stored start times."""

    def test_aware_datetime_unchanged(self) -> None:
        value = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
        self.assertEqual(parse_start_time(value), value)

    def test_naive_datetime_is_utc(self) -> None:
        result = parse_start_time(datetime.datetime(2026, 10, 19, 12, 0))
        self.assertEqual(result.tzinfo, UTC)

    def test_iso_string_with_z(self) -> None:
        """A trailing Z is read as UTC."""
        self.assertEqual(
            parse_start_time("2026-10-19T12:00:00Z"),
            datetime.datetime(2026, 10, 19, 12, 0, tzinfo=UTC),
        )

    def test_epoch_milliseconds(self) -> None:
        """Numbers are epoch milliseconds."""
        self.assertEqual(
            parse_start_time(0), datetime.datetime(1970, 1, 1, tzinfo=UTC)
        )

    def test_timestamp_like_object(self) -> None:
        class Stamp:
            def to_datetime(self):
                return datetime.datetime(2026, 1, 1)

        self.assertEqual(
            parse_start_time(Stamp()), datetime.datetime(2026, 1, 1, tzinfo=UTC)
        )

    def test_unusable_values_raise(self) -> None:
        """Values that are not times raise ValueError."""
        for value in (None, True, "tomorrow", {}):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    parse_start_time(value)

    def test_as_utc(self) -> None:
        naive = datetime.datetime(2026, 10, 19, 12, 0)
        self.assertEqual(as_utc(naive).tzinfo, UTC)
        self.assertIsNotNone(as_utc(None).tzinfo)


class RunBestEffortTestCase(unittest.TestCase):
    """Test case for the best-effort batch helper."""

    def test_collects_failures_and_keeps_going(self) -> None:
        seen = []

        def action(item):
            seen.append(item)
            if item == "b":
                raise RuntimeError("boom")

        result = run_best_effort(["a", "b", "c"], action, key=str)

        self.assertEqual(seen, ["a", "b", "c"])
        self.assertEqual(result.succeeded, ["a", "c"])
        self.assertEqual(result.failed, {"b": "boom"})
        self.assertEqual(result.attempted, 3)

    def test_empty_batch(self) -> None:
        """An empty batch attempts nothing."""
        result = run_best_effort([], lambda item: None, key=str)
        self.assertEqual(result.attempted, 0)


if __name__ == "__main__":
    unittest.main()
