"""Unit tests for the knowledge_core command-line interface."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from knowledge_core.cli.knowledge import main
from knowledge_core.models.crawl import CrawlPageResult, CrawlResult, CrawlStatus


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    # Settings() reads .env from the working directory.
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("EMBEDDING_API_KEY", raising=False)


class TestChunkCommand:
    def test_prints_passages(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        source = tmp_path / "notes.txt"
        source.write_text("First sentence here. " * 20, encoding="utf-8")

        exit_code = main(["chunk", str(source), "--chunk-size", "100", "--overlap", "20"])

        passages = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert len(passages) > 1
        assert passages[0]["index"] == 0
        assert set(passages[0]) >= {"text", "start_offset", "end_offset", "length"}

    def test_invalid_overlap_reports_error(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        source = tmp_path / "notes.txt"
        source.write_text("text", encoding="utf-8")

        exit_code = main(["chunk", str(source), "--chunk-size", "10", "--overlap", "10"])

        assert exit_code == 1
        assert "overlap" in capsys.readouterr().err


class TestExtractCommand:
    def test_extracts_with_type_from_extension(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        root = tmp_path / "uploads"
        root.mkdir()
        (root / "readme.md").write_text("Hello extract command", encoding="utf-8")

        exit_code = main(["extract", "readme.md", "--root", str(root)])

        document = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert document["text"] == "Hello extract command"
        assert document["file_type"] == "md"
        assert document["metadata"]["word_count"] == 3

    def test_traversal_is_an_error(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        root = tmp_path / "uploads"
        root.mkdir()
        (tmp_path / "secret.txt").write_text("secret", encoding="utf-8")

        exit_code = main(["extract", "../secret.txt", "--type", "txt", "--root", str(root)])

        assert exit_code == 1
        assert "outside the uploads directory" in capsys.readouterr().err


class TestValidateUrlCommand:
    def test_valid(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = main(["validate-url", "example.com"])
        payload = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert payload == {"valid": True, "normalized": "https://example.com/", "error": None}

    def test_invalid(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = main(["validate-url", "http://localhost/"])
        payload = json.loads(capsys.readouterr().out)

        assert exit_code == 1
        assert payload["error"] == "Private or localhost URLs are not allowed"


class TestCrawlCommand:
    def test_prints_result_without_markdown(self, capsys: pytest.CaptureFixture[str]) -> None:
        result = CrawlResult(
            seed_url="https://site.test/",
            status=CrawlStatus.COMPLETED,
            pages=[
                CrawlPageResult(
                    url="https://site.test/",
                    title="Home",
                    main_text="Welcome",
                    markdown="# Welcome",
                )
            ],
        )

        with patch(
            "knowledge_core.services.crawl.web_crawler.WebCrawler.crawl",
            new_callable=AsyncMock,
            return_value=result,
        ) as crawl:
            exit_code = main(["crawl", "https://site.test/", "--depth", "2", "--max-pages", "5", "--ignore-robots"])

        payload = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert payload["status"] == "completed"
        assert "markdown" not in payload["pages"][0]
        options = crawl.await_args.args[1]
        assert options.max_depth == 2
        assert options.max_pages == 5
        assert options.respect_robots_txt is False
        assert options.user_agent.startswith("CBase-Bot/1.0")

    def test_depth_outside_configured_presets_rejected(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        config_file = tmp_path / "crawl.yaml"
        config_file.write_text("crawl:\n  allowed_depths: [1]\n  allowed_max_pages: [5]\n", encoding="utf-8")

        with patch(
            "knowledge_core.services.crawl.web_crawler.WebCrawler.crawl",
            new_callable=AsyncMock,
        ) as crawl:
            exit_code = main(["--config", str(config_file), "crawl", "https://site.test/", "--depth", "2"])

        assert exit_code == 1
        assert "crawl_depth must be one of (1,)" in capsys.readouterr().err
        crawl.assert_not_awaited()

    def test_configured_presets_extend_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "crawl.yaml"
        config_file.write_text("crawl:\n  allowed_depths: [1, 4]\n  allowed_max_pages: [7]\n", encoding="utf-8")
        result = CrawlResult(seed_url="https://site.test/", status=CrawlStatus.COMPLETED)

        with patch(
            "knowledge_core.services.crawl.web_crawler.WebCrawler.crawl",
            new_callable=AsyncMock,
            return_value=result,
        ) as crawl:
            exit_code = main(
                ["--config", str(config_file), "crawl", "https://site.test/", "--depth", "4", "--max-pages", "7"]
            )

        assert exit_code == 0
        options = crawl.await_args.args[1]
        assert (options.max_depth, options.max_pages) == (4, 7)

    def test_unsupported_default_preset_rejected(self, capsys: pytest.CaptureFixture[str]) -> None:
        exit_code = main(["crawl", "https://site.test/", "--max-pages", "7"])

        assert exit_code == 1
        assert "max_pages must be one of" in capsys.readouterr().err


class TestNoCommand:
    def test_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()
