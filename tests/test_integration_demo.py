"""
Tests for the demo runner.

Tests verify that:
1. The demo saves the sample post and reads it back by slug
2. Running it repeatedly is harmless
3. Data-access failures end with a non-zero exit code
"""

from unittest.mock import MagicMock

import pytest

from blogdata import main as demo
from blogdata.core.config import settings


@pytest.fixture(autouse=True)
def isolated_demo(monkeypatch):
    monkeypatch.setattr(demo, "configure_logging", MagicMock())
    monkeypatch.setattr(settings, "database_url", settings.database_url)


@pytest.mark.integration
class TestDemo:
    def test_run_saves_sample_post(self, repository):
        demo.run(repository)

        post = repository.find_by_slug("hello-world")
        assert post.id == "1234"
        assert post.version == 0

    def test_repeated_runs_keep_one_post(self, repository):
        demo.run(repository)
        demo.run(repository)
        demo.run(repository)

        assert repository.count() == 1
        assert repository.find_by_id("1234").version == 0

    def test_main_creates_schema_and_succeeds(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'demo.db'}"
        argv = ["--database-url", url, "--init-schema", "--plain-logs"]

        assert demo.main(argv) == 0
        assert demo.main(argv) == 0
        assert demo.main(argv) == 0

    def test_main_without_schema_fails(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'empty.db'}"

        assert demo.main(["--database-url", url]) == 1

    def test_main_passes_plain_logs_flag(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'demo.db'}"

        demo.main(["--database-url", url, "--init-schema", "--plain-logs"])

        assert demo.configure_logging.call_args.kwargs["structured"] is False
