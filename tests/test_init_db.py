"""
Pytest test for the init_db command.
"""

from __future__ import annotations


def test_init_db_creates_tables_and_user(tmp_path, capsys):
    from cloudguard.api_server.init_db import main
    from cloudguard.database import get_database

    path = tmp_path / "init.db"
    url = f"sqlite:///{path}"
    assert main(["--database-url", url, "--user", "carol@example.com", "--name", "Carol"]) == 0
    assert main(["--database-url", url, "--user", "carol@example.com"]) == 0
    out = capsys.readouterr().out
    assert "carol@example.com" in out

    user = get_database(url).get_user_by_email("carol@example.com")
    assert user is not None
    assert user.name == "Carol"
