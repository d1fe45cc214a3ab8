from __future__ import annotations

import os

from waves.utils.env import load_env_file, parse_env_line


def test_parse_env_line_handles_comments_exports_and_quotes():
  assert parse_env_line("") is None
  assert parse_env_line("# comment") is None
  assert parse_env_line("NO_SEPARATOR") is None
  assert parse_env_line("=value") is None
  assert parse_env_line("WAVES_ENV=staging") == ("WAVES_ENV", "staging")
  assert parse_env_line("export WAVES_TASK_SECRET = 's3cret' ") == ("WAVES_TASK_SECRET", "s3cret")
  assert parse_env_line('NOTIFICATIONS_FROM_EMAIL="Make Waves <a@b.test>"') == ("NOTIFICATIONS_FROM_EMAIL", "Make Waves <a@b.test>")


def test_load_env_file_respects_existing_environment(tmp_path, monkeypatch):
  env_file = tmp_path / ".env"
  env_file.write_text("WAVES_TEST_EXISTING=from-file\nWAVES_TEST_NEW=from-file\n", encoding="utf-8")
  monkeypatch.setenv("WAVES_TEST_EXISTING", "from-shell")
  monkeypatch.delenv("WAVES_TEST_NEW", raising=False)

  applied = load_env_file(env_file)

  assert applied == ["WAVES_TEST_NEW"]
  assert os.environ["WAVES_TEST_EXISTING"] == "from-shell"
  assert os.environ["WAVES_TEST_NEW"] == "from-file"
  monkeypatch.delenv("WAVES_TEST_NEW")


def test_load_env_file_override_and_missing_file(tmp_path, monkeypatch):
  env_file = tmp_path / ".env"
  env_file.write_text("WAVES_TEST_EXISTING=from-file\n", encoding="utf-8")
  monkeypatch.setenv("WAVES_TEST_EXISTING", "from-shell")

  assert load_env_file(env_file, override=True) == ["WAVES_TEST_EXISTING"]
  assert os.environ["WAVES_TEST_EXISTING"] == "from-file"
  assert load_env_file(tmp_path / "missing.env") == []
