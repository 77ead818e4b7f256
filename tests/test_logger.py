import logging

from tmops.utils.logger import configure_logger, get_logger


def test_package_logger_does_not_propagate_to_root():
    root = get_logger()

    assert root.name == "tmops"
    assert root.propagate is False
    assert root.handlers


def test_child_logger_reaches_package_handlers_only():
    child = get_logger("tmops.core.containers")

    assert child.parent is get_logger()
    assert child.propagate is True
    assert child.handlers == []


def test_configure_logger_honors_level_env(monkeypatch):
    monkeypatch.setenv("TMOPS_LOG_LEVEL", "debug")
    monkeypatch.delenv("TMOPS_LOG_FILE", raising=False)
    target = logging.getLogger("tmops-test-level")
    target.handlers.clear()

    configure_logger(target)

    assert target.level == logging.DEBUG
    assert target.propagate is False
    assert len(target.handlers) == 1
    target.handlers.clear()


def test_configure_logger_writes_file_when_requested(monkeypatch, tmp_path):
    log_file = tmp_path / "logs" / "tmops.log"
    monkeypatch.setenv("TMOPS_LOG_FILE", str(log_file))
    target = logging.getLogger("tmops-test-file")
    target.handlers.clear()

    configure_logger(target)
    target.warning("container missing")
    for handler in target.handlers:
        handler.flush()

    assert "container missing" in log_file.read_text()
    for handler in target.handlers:
        handler.close()
    target.handlers.clear()
