import json
import os
import tempfile
import unittest
from dataclasses import FrozenInstanceError
from unittest import mock

from pypdf import PdfReader

import cli
from config_manager import default_config, load_config
from test_git_integration import AUTHOR, GitRepoTestCase


class TestArgumentValidation(unittest.TestCase):
    """日期校验必须在访问仓库之前完成"""

    def test_invalid_date_fails_before_repository_access(self):
        with mock.patch.object(cli, "ReportOrchestrator") as orchestrator:
            with self.assertLogs("cli", level="ERROR") as logs:
                code = cli.run_cli(["-r", "/non/existent/path", "-f", "not-a-date", "-t", "2024-12-31"])
        self.assertEqual(code, 1)
        orchestrator.assert_not_called()
        self.assertEqual(len(logs.records), 1)
        self.assertIn("not-a-date", logs.output[0])

    def test_invalid_to_date(self):
        with mock.patch.object(cli, "ReportOrchestrator") as orchestrator:
            with self.assertLogs("cli", level="ERROR"):
                code = cli.run_cli(["-f", "2024-01-01", "-t", "2024-02-30"])
        self.assertEqual(code, 1)
        orchestrator.assert_not_called()

    def test_from_after_to(self):
        with mock.patch.object(cli, "ReportOrchestrator") as orchestrator:
            with self.assertLogs("cli", level="ERROR"):
                code = cli.run_cli(["-f", "2024-02-01", "-t", "2024-01-31"])
        self.assertEqual(code, 1)
        orchestrator.assert_not_called()

    def test_missing_required_dates(self):
        with mock.patch("sys.stderr"):
            with self.assertRaises(SystemExit) as cm:
                cli.run_cli(["-f", "2024-01-01"])
        self.assertNotEqual(cm.exception.code, 0)

    def test_context_is_built_from_arguments(self):
        args = cli.setup_parser().parse_args(
            ["-r", ".", "-f", "2024-01-01", "-t", "2024-01-31", "-a", "a@b.c", "-b", "dev", "--first-parent"]
        )
        context = cli.build_context(args, cli.GlobalConfig())
        self.assertEqual(context.repo_path, os.path.abspath("."))
        self.assertEqual(context.author_email, "a@b.c")
        self.assertEqual(context.branch, "dev")
        self.assertTrue(context.first_parent)
        self.assertTrue(context.output_path.startswith("report_"))
        self.assertTrue(context.output_path.endswith(".pdf"))
        with self.assertRaises(FrozenInstanceError):
            context.branch = "other"

    def test_init_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "conf", "report.json")
            self.assertEqual(cli.run_cli(["--init-config", path]), 0)
            self.assertEqual(load_config(path), default_config())


class TestEndToEnd(GitRepoTestCase):

    def setUp(self):
        super().setUp()
        self.commit("Add exporter\n\nWrites PDF files", "2024-01-10T10:00:00+00:00")
        self.commit("Fix pagination", "2024-01-31T23:59:00+00:00")
        self.commit("Too late", "2024-02-01T00:00:01+00:00")
        self.output = os.path.join(self.tmp, "reports", "january.pdf")

    def run_cli(self, *extra):
        return cli.run_cli(["-r", self.repo, "-f", "2024-01-01", "-t", "2024-01-31", "-o", self.output, *extra])

    def test_generates_report(self):
        self.assertEqual(self.run_cli(), 0)
        self.assertTrue(os.path.exists(self.output))
        text = "\n".join(p.extract_text() or "" for p in PdfReader(self.output).pages)
        self.assertIn("Fix pagination", text)
        self.assertIn("Add exporter", text)
        self.assertNotIn("Too late", text)
        self.assertIn("Total commits: 2", text)
        self.assertIn(f"Author: {AUTHOR}", text)
        self.assertIn("demo-repo", text)

    def test_custom_config(self):
        config_path = os.path.join(self.tmp, "config.json")
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(
                {"header": {"template": "{{ location }}\nAcceptance of {{ repository_name }}", "location": "Gdansk"}},
                f,
            )
        self.assertEqual(self.run_cli("-c", config_path), 0)
        text = "\n".join(p.extract_text() or "" for p in PdfReader(self.output).pages)
        self.assertIn("Gdansk", text)
        self.assertIn("Acceptance of demo-repo", text)

    def test_no_commits_skips_file(self):
        code = cli.run_cli(["-r", self.repo, "-f", "2020-01-01", "-t", "2020-01-31", "-o", self.output])
        self.assertEqual(code, 0)
        self.assertFalse(os.path.exists(self.output))

    def test_allow_empty_still_renders(self):
        self.assertEqual(self.run_cli("-a", "nobody@example.com", "--allow-empty"), 0)
        text = "\n".join(p.extract_text() or "" for p in PdfReader(self.output).pages)
        self.assertIn("Total commits: 0", text)

    def test_dry_run_writes_nothing(self):
        self.assertEqual(self.run_cli("--dry-run"), 0)
        self.assertFalse(os.path.exists(self.output))

    def test_unknown_branch(self):
        with self.assertLogs("cli", level="ERROR"):
            self.assertEqual(self.run_cli("-b", "missing-branch"), 1)
        self.assertFalse(os.path.exists(self.output))

    def test_not_a_repository(self):
        plain = os.path.join(self.tmp, "plain")
        os.makedirs(plain)
        with self.assertLogs("cli", level="ERROR"):
            code = cli.run_cli(["-r", plain, "-f", "2024-01-01", "-t", "2024-01-31", "-o", self.output])
        self.assertEqual(code, 1)

    def test_invalid_config_fails_before_repository_access(self):
        config_path = os.path.join(self.tmp, "bad.json")
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump({"pdf": {"font_size": -1, "margin_left": -3}}, f)
        with mock.patch("orchestrator.get_data_source") as factory:
            with self.assertLogs("cli", level="ERROR") as logs:
                self.assertEqual(self.run_cli("-c", config_path), 1)
        factory.assert_not_called()
        self.assertIn("pdf.font_size", logs.output[0])
        self.assertIn("pdf.margin_left", logs.output[0])


class TestMissingAuthor(GitRepoTestCase):

    configure_email = False

    def test_missing_user_email_without_author(self):
        with self.assertLogs("cli", level="ERROR") as logs:
            code = cli.run_cli(
                ["-r", self.repo, "-f", "2024-01-01", "-t", "2024-01-31", "-o", os.path.join(self.tmp, "x.pdf")]
            )
        self.assertEqual(code, 1)
        self.assertIn("user.email", logs.output[0])


if __name__ == "__main__":
    unittest.main()
