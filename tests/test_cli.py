"""Tests for the tournament CLI commands."""

from __future__ import annotations

import datetime
import json
import unittest

from arenadmin import create_app
from arenadmin.tournament.services import EXTENSION_KEY, TournamentStatusManager
from tests.fakes import (
    InMemoryRegistrationRepository,
    InMemoryTournamentRepository,
    RecordingNotificationSink,
    make_tournament,
)


class TournamentCliTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.app = create_app({"TESTING": True})
        self.tournaments = InMemoryTournamentRepository(
            [
                make_tournament("t1", start=datetime.datetime(2020, 1, 1)),
                make_tournament("t2", status="live"),
            ]
        )
        self.sink = RecordingNotificationSink()
        self.app.extensions[EXTENSION_KEY] = TournamentStatusManager(
            self.tournaments,
            InMemoryRegistrationRepository({"t1": ["alice"]}),
            self.sink,
        )
        self.runner = self.app.test_cli_runner()

    def test_check_tournaments(self) -> None:
        result = self.runner.invoke(args=["check-tournaments"])

        self.assertEqual(result.exit_code, 0)
        report = json.loads(result.stdout)
        self.assertEqual(report["processed"], 2)
        self.assertEqual(self.tournaments.status_of("t1"), "live")

    def test_start_tournament(self) -> None:
        result = self.runner.invoke(args=["start-tournament", "t1"])

        self.assertEqual(result.exit_code, 0)
        self.assertEqual(json.loads(result.stdout)["outcome"], "transitioned")
        self.assertEqual(len(self.sink.notifications_for("t1")), 1)

    def test_start_tournament_wrong_state(self) -> None:
        result = self.runner.invoke(args=["start-tournament", "t2"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("not in upcoming status", result.output)

    def test_start_unknown_tournament(self) -> None:
        result = self.runner.invoke(args=["start-tournament", "nope"])

        self.assertEqual(result.exit_code, 1)
        self.assertIn("not found", result.output)

    def test_notify_tournament(self) -> None:
        result = self.runner.invoke(
            args=[
                "notify-tournament",
                "t1",
                "--title",
                "Delay",
                "--message",
                "Starts late",
                "--priority",
                "high",
            ]
        )

        self.assertEqual(result.exit_code, 0)
        report = json.loads(result.stdout)
        self.assertEqual(report["notifications"]["succeeded"], ["alice"])
        self.assertEqual(self.sink.notifications[0]["priority"], "high")

    def test_notify_tournament_unknown(self) -> None:
        result = self.runner.invoke(
            args=["notify-tournament", "nope", "--title", "Hi", "--message", "There"]
        )

        self.assertEqual(result.exit_code, 1)
        self.assertIn("not found", result.output)


if __name__ == "__main__":
    unittest.main()
