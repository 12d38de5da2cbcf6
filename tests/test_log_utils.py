# tests/test_log_utils.py
import logging

from utils.log_utils import configure_logging, tail_text_log


def test_configure_logging_writes_rotating_file(tmp_path):
    root = configure_logging("DEBUG", tmp_path)
    try:
        logging.getLogger("alerts.test").info("hej fra testen")
        for h in root.handlers:
            h.flush()
        text = (tmp_path / "broker.log").read_text(encoding="utf-8")
        assert "hej fra testen" in text
        assert " | alerts.test | INFO | " in text
    finally:
        configure_logging("WARNING", None)


def test_configure_logging_replaces_own_handlers(tmp_path):
    configure_logging("INFO", tmp_path)
    root = configure_logging("INFO", tmp_path)
    try:
        own = [h for h in root.handlers if getattr(h, "_alert_broker_handler", False)]
        assert len(own) == 2  # konsol + fil
    finally:
        configure_logging("WARNING", None)


def test_tail_text_log(tmp_path):
    p = tmp_path / "x.log"
    p.write_text("a\nb\nc\nd\n", encoding="utf-8")
    assert tail_text_log(p, n=2) == "c\nd"
    assert tail_text_log(p, n=10) == "a\nb\nc\nd"
    assert tail_text_log(tmp_path / "mangler.log") == ""
