import os
import tempfile
import unittest
from datetime import date, datetime, timezone
from unittest import mock

from config import GlobalConfig
from context import RunContext
from models import BranchNotFoundError, DateRange, RenderError
from orchestrator import ReportOrchestrator
from test_commit_selector import AUTHOR, FakeDataSource, raw


def make_context(output_path: str, **overrides) -> RunContext:
    values = dict(
        repo_path="/tmp/fake-repo",
        output_path=output_path,
        config_path=None,
        date_range=DateRange(date(2024, 1, 1), date(2024, 1, 31)),
        author_email=None,
        branch=None,
        first_parent=False,
        allow_empty=False,
        dry_run=False,
        global_config=GlobalConfig(),
    )
    values.update(overrides)
    return RunContext(**values)


class TestReportOrchestrator(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.output = os.path.join(self._tmp.name, "report.pdf")
        self.source = FakeDataSource([
            raw("a", datetime(2024, 1, 5, tzinfo=timezone.utc), message="Old"),
            raw("b", datetime(2024, 1, 25, tzinfo=timezone.utc), message="New"),
        ])

    def test_defaults_from_repository(self):
        result = ReportOrchestrator(make_context(self.output), self.source).run()
        self.assertEqual(result.output_path, self.output)
        self.assertEqual(result.commit_count, 2)
        self.assertEqual(result.author_email, AUTHOR)
        self.assertEqual(result.branch, "main")
        self.assertTrue(os.path.exists(self.output))
        self.assertTrue(self.source.closed)

    def test_no_commits_returns_without_file(self):
        context = make_context(self.output, author_email="other@example.com")
        result = ReportOrchestrator(context, self.source).run()
        self.assertIsNone(result.output_path)
        self.assertEqual(result.commit_count, 0)
        self.assertFalse(os.path.exists(self.output))

    def test_source_closed_on_error(self):
        context = make_context(self.output, branch="missing")
        with self.assertRaises(BranchNotFoundError):
            ReportOrchestrator(context, self.source).run()
        self.assertTrue(self.source.closed)

    def test_render_error_propagates(self):
        context = make_context(self.output)
        with mock.patch("orchestrator.PDFGenerator") as generator_cls:
            generator_cls.return_value.generate.side_effect = RenderError("磁盘已满")
            with self.assertRaises(RenderError):
                ReportOrchestrator(context, self.source).run()

    def test_dry_run(self):
        context = make_context(self.output, dry_run=True)
        with self.assertLogs("orchestrator", level="INFO") as logs:
            result = ReportOrchestrator(context, self.source).run()
        self.assertIsNone(result.output_path)
        self.assertEqual(result.commit_count, 2)
        self.assertFalse(os.path.exists(self.output))
        self.assertTrue(any("New" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
