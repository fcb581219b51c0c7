from pathlib import Path

import httpx
import pytest

from payloads import page_payload
from tmdb_cli import cli
from tmdb_cli.core.container import AppContainer


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch) -> None:
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text("api_key: test-key\n", encoding="utf-8")
    return path


@pytest.fixture()
def stub_api(monkeypatch) -> list[httpx.Request]:
    requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        page = int(request.url.params["page"])
        start = (page - 1) * 20 + 1
        return httpx.Response(200, json=page_payload(page, list(range(start, start + 20)), total_pages=5))

    transport = httpx.MockTransport(_handler)
    monkeypatch.setattr(cli, "AppContainer", lambda settings: AppContainer(settings, transport=transport))
    return requests


def test_info_prints_version(capsys) -> None:
    assert cli.main(["info"]) == 0

    assert "tmdb-cli v1.0.0" in capsys.readouterr().out


def test_no_command_prints_help(capsys) -> None:
    assert cli.main([]) == 0

    assert "discover" in capsys.readouterr().out


def test_discover_without_flags_prints_help(capsys, stub_api) -> None:
    assert cli.main(["discover"]) == 0

    assert "--without-genres" in capsys.readouterr().out
    assert stub_api == []


def test_list_popular(capsys, config_path: Path, stub_api) -> None:
    assert cli.main(["--config", str(config_path), "list", "-p"]) == 0

    out = capsys.readouterr().out
    assert "Movie 1" in out
    assert "Movie 20" in out
    assert len(stub_api) == 1
    assert stub_api[0].url.path == "/3/movie/popular"
    assert stub_api[0].headers["Authorization"] == "Bearer test-key"


def test_list_flags_are_mutually_exclusive(config_path: Path) -> None:
    with pytest.raises(SystemExit):
        cli.main(["--config", str(config_path), "list", "-p", "-t"])


def test_discover_fetches_filters_and_sorts(capsys, config_path: Path, stub_api) -> None:
    code = cli.main(
        ["--config", str(config_path), "discover", "-y=2000,2005", "-g=drama,history", "-m=30", "-s=votes,desc"]
    )

    assert code == 0
    assert len(stub_api) == 2
    params = stub_api[0].url.params
    assert params["primary_release_date.gte"] == "2000-01-01"
    assert params["primary_release_date.lte"] == "2005-12-31"
    assert params["with_genres"] == "18,36"
    out = capsys.readouterr().out
    # vote counts grow with the id, so descending puts the last movie first
    assert out.index("Movie 30") < out.index("Movie 29") < out.index("Movie 10 ")


def test_validation_error_is_reported_without_requests(capsys, config_path: Path, stub_api) -> None:
    code = cli.main(["--config", str(config_path), "discover", "-y=1887"])

    assert code == 1
    err = capsys.readouterr().err
    assert "year_out_of_range" in err
    assert "1888" in err
    assert stub_api == []


def test_bad_sort_is_rejected_before_fetching(capsys, config_path: Path, stub_api) -> None:
    code = cli.main(["--config", str(config_path), "discover", "-g=drama", "-s=rating,desc"])

    assert code == 1
    assert "invalid_sort_field" in capsys.readouterr().err
    assert stub_api == []


def test_too_many_items_is_rejected(capsys, config_path: Path, stub_api) -> None:
    code = cli.main(["--config", str(config_path), "discover", "-g=drama", "-m=401"])

    assert code == 1
    assert "400" in capsys.readouterr().err
    assert stub_api == []


def test_missing_config_file(capsys, tmp_path: Path) -> None:
    code = cli.main(["--config", str(tmp_path / "missing.yaml"), "list", "-n"])

    assert code == 1
    assert "config_unreadable" in capsys.readouterr().err


def test_unexpected_failure_is_reported_not_raised(capsys, config_path: Path, stub_api, monkeypatch) -> None:
    async def _boom(args, container):
        raise RuntimeError("something broke")

    monkeypatch.setattr(cli, "run_list", _boom)

    code = cli.main(["--config", str(config_path), "list", "-p"])

    assert code == 1
    err = capsys.readouterr().err
    assert "internal_error" in err
    assert "RuntimeError" in err
    assert stub_api == []
