"""Tests for the key=value log formatter and context logging."""

import logging
import sys

from trainingpulse.core.logging import KeyValueFormatter, get_logger, log_with_context


class CapturingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def _record(msg="Phase saved", **attrs):
    record = logging.LogRecord("trainingpulse.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


def test_context_ids_follow_message_in_fixed_order():
    line = KeyValueFormatter().format(_record(user_id="u1", course_id="c1", details={"status": "alpha_review"}))

    assert line.index("msg=") < line.index("course_id=c1") < line.index("user_id=u1")
    assert line.endswith("status=alpha_review")
    assert 'msg="Phase saved"' in line


def test_exception_is_reduced_to_last_line():
    try:
        raise ValueError("bad date")
    except ValueError:
        record = _record(exc_info=sys.exc_info())

    assert KeyValueFormatter().format(record).endswith('exc="ValueError: bad date"')


def test_log_with_context_splits_ids_from_details():
    logger = get_logger("trainingpulse.test.context")
    handler = CapturingHandler()
    logger.addHandler(handler)
    try:
        log_with_context(logger, logging.WARNING, "Autosave failed", course_id="c1", subtask_id=None, error="boom")
    finally:
        logger.removeHandler(handler)

    (record,) = handler.records
    assert record.course_id == "c1"
    assert not hasattr(record, "subtask_id")
    assert record.details == {"error": "boom"}
