from __future__ import annotations

from capsforge.cli import main

from conftest import write_config


def test_init_then_check(tmp_path, capsys) -> None:
    config_dir = tmp_path / "conf"

    assert main(["--config-dir", str(config_dir), "init"]) == 0
    assert "created" in capsys.readouterr().out

    assert main(["--config-dir", str(config_dir), "init"]) == 0
    assert "already present" in capsys.readouterr().out

    assert main(["--config-dir", str(config_dir), "check"]) == 0
    assert "rules," in capsys.readouterr().out


def test_check_reports_errors(tmp_path, capsys) -> None:
    write_config(tmp_path, [{"key": "b", "feature": "teleport"}])

    assert main(["--config-dir", str(tmp_path), "check"]) == 1
    assert "RuleFormatError" in capsys.readouterr().err


def test_check_warns_on_duplicates(tmp_path, capsys) -> None:
    write_config(
        tmp_path,
        [{"key": "a", "feature": "input_text", "text": "x"}, {"key": "a", "feature": "multifunctional"}],
    )

    assert main(["--config-dir", str(tmp_path), "check"]) == 0
    captured = capsys.readouterr()
    assert "a\tRotatingText" in captured.out
    assert "bound more than once" in captured.err


def test_check_not_configured(tmp_path, capsys) -> None:
    (tmp_path / "capslock_forge_config.yaml").write_text("language: en\n", encoding="utf-8")

    assert main(["--config-dir", str(tmp_path), "check"]) == 0
    assert "not configured" in capsys.readouterr().out
