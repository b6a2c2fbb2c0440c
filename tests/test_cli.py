import pytest

from bankai.cli import BankAICLI, create_parser
from bankai.config import Settings
from bankai.database.repository import PaperRepository
from bankai.database.store import MemoryStore
from bankai.models.paper import Paper


@pytest.fixture()
def cli(tmp_path, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    Settings.reset()
    settings = Settings(db_path=tmp_path / "bankai.db", metadata_dir=tmp_path, gemini_api_key=None)
    repo = PaperRepository(MemoryStore())
    repo.save_paper(
        Paper(
            id="abcdef1234567890",
            title="LLM Agents for Sanctions Screening",
            abstract="Screening with agents.",
            authors=["A"],
            publication_date="2025-02-01",
            source="ArXiv",
            url="https://example.org/s",
        )
    )
    yield BankAICLI(settings, repo)
    Settings.reset()


def test_parser_collect_defaults():
    args = create_parser().parse_args(["collect", "Fraud Detection LLM"])
    assert args.command == "collect"
    assert args.date_range == "Past Year"
    assert args.no_optimize is False


def test_parser_rejects_unknown_range():
    with pytest.raises(SystemExit):
        create_parser().parse_args(["collect", "x", "--range", "Past Decade"])


def test_favorite_and_tag_by_id_prefix(cli):
    assert cli.cmd_favorite("abcdef12") == 0
    assert cli.cmd_tag("abcdef12", " sanctions ") == 0
    paper = cli.repo.find_by_id("abcdef1234567890")
    assert paper.is_favorite is True
    assert paper.tags == ["sanctions"]


def test_unknown_id_fails(cli, capsys):
    assert cli.cmd_favorite("zzz") == 1
    assert "No paper with ID zzz" in capsys.readouterr().out


def test_list_and_stats_render(cli, capsys):
    assert cli.cmd_list(search="sanctions") == 0
    assert cli.cmd_stats() == 0
    out = capsys.readouterr().out
    assert "Library (1)" in out
    assert "Total papers" in out


def test_collect_without_api_key_reports_error(cli, capsys):
    assert cli.cmd_collect("Fraud Detection LLM", "Past Year") == 1
    assert "API Key not configured" in capsys.readouterr().out


def test_chat_without_api_key_replies_unavailable(cli, capsys):
    assert cli.cmd_chat("Which papers cover sanctions?") == 0
    assert "Service unavailable" in capsys.readouterr().out


def test_sources_add_requires_name(cli):
    assert cli.cmd_sources("add") == 1
    assert cli.cmd_sources("add", "Nature") == 0
    assert "Nature" in cli.repo.get_sources()


def test_settings_set_persists(cli, tmp_path):
    assert cli.cmd_settings("set", provider="groq", groq_key="gsk-test", gemini_model="gemini-x") == 0
    stored = cli.repo.get_settings()
    assert stored.provider == "groq"
    assert stored.groq_api_key == "gsk-test"
    assert "gemini-x" in (tmp_path / "config.yaml").read_text(encoding="utf-8")


def test_login_validates_email(cli):
    assert cli.cmd_login("not-an-email") == 1
    assert cli.cmd_login("risk@bank.example") == 0
    assert cli.repo.get_user().name == "risk"
    assert cli.cmd_logout() == 0
    assert cli.repo.get_user() is None


def test_show_includes_citation_count(cli, capsys):
    assert cli.cmd_show("abcdef") == 0
    assert "0 citations" in capsys.readouterr().out
