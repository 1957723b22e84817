import logging

import pizzastore
from pizzastore import Config, DatabaseManager


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PIZZASTORE_DB", raising=False)
    config = Config(tmp_path / "absent.ini")
    assert config.database_path == "pizzastore.db"
    assert config.should_bootstrap() and config.should_seed()
    assert config.timeout == 5.0


def test_ini_overrides_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PIZZASTORE_DB", raising=False)
    ini = tmp_path / "pizzastore.ini"
    ini.write_text("[database]\npath = other.db\nseed = false\ntimeout = 1.5\n")
    config = Config(ini)
    assert config.database_path == "other.db"
    assert not config.should_seed()
    assert config.should_bootstrap()
    assert config.timeout == 1.5


def test_environment_wins(tmp_path, monkeypatch):
    monkeypatch.setenv("PIZZASTORE_DB", str(tmp_path / "env.db"))
    ini = tmp_path / "pizzastore.ini"
    ini.write_text("[database]\npath = other.db\n")
    assert Config(ini).database_path == str(tmp_path / "env.db")


def test_database_from_config(tmp_path, monkeypatch):
    monkeypatch.setenv("PIZZASTORE_DB", ":memory:")
    ini = tmp_path / "pizzastore.ini"
    ini.write_text("[database]\nseed = false\n")
    db = DatabaseManager.from_config(Config(ini))
    try:
        assert db.execute_read_count("SELECT * FROM FoodOrder;") == 0
    finally:
        db.close()


def test_setup_logging_writes_to_file(tmp_path, monkeypatch):
    captured = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))
    config = Config(tmp_path / "absent.ini")
    config.config["logging"]["file"] = str(tmp_path / "logs" / "pizzastore.log")
    config.config["logging"]["level"] = "debug"
    config.setup_logging()
    assert (tmp_path / "logs").is_dir()
    assert captured["level"] == logging.DEBUG
    handler = captured["handlers"][0]
    assert isinstance(handler, logging.FileHandler)
    handler.close()


def test_main_fails_cleanly_without_database(tmp_path, monkeypatch):
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: None)
    monkeypatch.setattr(pizzastore.signal, "signal", lambda *args: None)
    ini = tmp_path / "pizzastore.ini"
    ini.write_text(f"[logging]\nfile = {tmp_path / 'app.log'}\n")
    code = pizzastore.main(["--config", str(ini), "--db", str(tmp_path / "no" / "such" / "x.db")])
    assert code == 1
