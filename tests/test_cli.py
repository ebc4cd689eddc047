"""Integration tests for the command-line interface."""

import json

import pytest

from sitecheck import cli

from conftest import DOMAIN


@pytest.fixture
def config_dir(tmp_path):
    site_dir = tmp_path / "shop"
    site_dir.mkdir()
    (site_dir / "conf.json").write_text(json.dumps({
        "protocol": "https",
        "domain": "example.com",
        "checkUrls": True,
        "urls": [
            {"url": "/", "statusCode": 200, "findElements": [{"def": "h1", "countType": "eq", "count": 1}]},
        ],
    }), encoding="utf-8")
    (site_dir / "sitemap.xml").write_text(
        "<urlset><url><loc>https://example.com/</loc></url></urlset>", encoding="utf-8"
    )
    return tmp_path


def test_parse_args_defaults():
    args, settings = cli.parse_args([])
    assert (args.config_dir, args.config, args.filename, args.file_type) == ("configs", "default", "conf", "json")
    assert settings.verbose is True
    assert settings.timeout == 15.0
    assert settings.max_workers == 16


def test_parse_args_rejects_zero_workers():
    with pytest.raises(SystemExit):
        cli.parse_args(["--workers", "0"])


@pytest.mark.integration
def test_passing_run(config_dir, site, capsys):
    site.add(f"{DOMAIN}/", 200, '<h1>Shop</h1><a href="/cart">cart</a><a href="tel:123">call</a>')
    site.add(f"{DOMAIN}/cart", 200)

    code = cli.main(["--config-dir", str(config_dir), "--config", "shop"])

    assert code == cli.EXIT_OK
    assert site.calls == [("GET", f"{DOMAIN}/"), ("HEAD", f"{DOMAIN}/cart")]
    out, err = capsys.readouterr()
    assert "Success. Requesting https://example.com/cart, expected status code 200 confirmed" in out
    assert "CHECK SUMMARY" in err
    assert "completed" in err


@pytest.mark.integration
def test_failing_run_quiet(config_dir, site, capsys):
    site.add(f"{DOMAIN}/", 200, '<a href="/cart">cart</a>')
    site.add(f"{DOMAIN}/cart", 404)

    code = cli.main(["--config-dir", str(config_dir), "--config", "shop", "--no-verbose"])

    assert code == cli.EXIT_CHECKS_FAILED
    out, err = capsys.readouterr()
    assert "Expected size 'eq 1', received size 0" in out
    assert "expected status code 200, got 404" in out
    assert "Linked from: https://example.com/" in out
    assert "CHECK SUMMARY" not in err


@pytest.mark.integration
def test_sitemap_run(config_dir, site):
    site.add(f"{DOMAIN}/", 200)
    code = cli.main(["--config-dir", str(config_dir), "--config", "shop", "--type", "sitemapxml"])

    assert code == cli.EXIT_OK
    assert site.calls == [("HEAD", f"{DOMAIN}/")]


@pytest.mark.integration
def test_missing_config_is_fatal(tmp_path, site, capsys):
    code = cli.main(["--config-dir", str(tmp_path), "--config", "nothing"])

    assert code == cli.EXIT_CONFIG_ERROR
    assert site.calls == []
    assert "not found" in capsys.readouterr().err
