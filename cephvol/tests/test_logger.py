import logging

import cephvol.logger as logger


def test_summarize_short():
    assert logger.summarize("abc", max_length=3) == "abc"


def test_summarize_long():
    assert logger.summarize(["data", "c1"], max_length=8) == "['da..."


def test_set_debug():
    logger.set_debug(True)
    assert logger.log.getEffectiveLevel() == logging.DEBUG

    logger.set_debug(False)
    assert logger.log.getEffectiveLevel() == logging.ERROR


def test_thread_name_in_output():
    formatter = logger.log.handlers[0].formatter
    record = logging.LogRecord("cephvol", logging.ERROR, "", 0, "boom", None, None)

    assert record.threadName in formatter.format(record)
