import json
import logging

from captureap.core.logging import setup_logging


def test_console_format_tags_warnings(capsys):
    setup_logging(level="INFO", fmt="text")
    log = logging.getLogger("captureap.test")

    log.info("Enabling routing... [OK]")
    log.warning("Removing old iptables rule")
    log.debug("hidden")

    assert capsys.readouterr().out.splitlines() == [
        "Enabling routing... [OK]",
        "    [WARNING] Removing old iptables rule",
    ]


def test_json_format(monkeypatch, capsys):
    monkeypatch.setenv("CAPTUREAP_LOG_FORMAT", "json")
    monkeypatch.setenv("CAPTUREAP_LOG_LEVEL", "debug")
    setup_logging()

    logging.getLogger("captureap.apply").error("could not launch AP.", extra={"step": "launch beacon"})

    line = json.loads(capsys.readouterr().out.strip())
    assert line["level"] == "ERROR"
    assert line["logger"] == "captureap.apply"
    assert line["step"] == "launch beacon"
