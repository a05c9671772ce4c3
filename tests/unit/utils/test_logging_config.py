import io
import json
import logging

import pytest

from okta_setup.utils.logger import configure, get_logger, logging_context


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def _capture(json_output=True):
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    configure(level=logging.DEBUG, json_output=json_output, handlers=[handler])
    return stream


def test_json_output_carries_keyword_fields():
    stream = _capture()

    get_logger("okta_setup.test").info(
        "Organization verified", event="okta_setup.org.verified", org_url="https://dev-1.okta.com"
    )

    record = json.loads(stream.getvalue().splitlines()[-1])
    assert record["message"] == "Organization verified"
    assert record["service"] == "okta_setup"
    assert record["event"] == "okta_setup.org.verified"
    assert record["org_url"] == "https://dev-1.okta.com"
    assert record["level"] == "INFO"


def test_bound_context_is_added_and_cleared():
    stream = _capture()
    logger = get_logger("okta_setup.test")

    with logging_context(org_identifier="org_1"):
        logger.info("inside")
    logger.info("outside")

    inside, outside = (json.loads(line) for line in stream.getvalue().splitlines()[-2:])
    assert inside["org_identifier"] == "org_1"
    assert "org_identifier" not in outside


def test_console_output_omits_event_name():
    stream = _capture(json_output=False)

    get_logger("okta_setup.test").warning("Group not found", event="x.y", group="Everyone")

    assert stream.getvalue().strip() == "WARNING Group not found group=Everyone"


def test_exception_details_in_json():
    stream = _capture()

    try:
        raise OSError("disk full")
    except OSError:
        get_logger("okta_setup.test").error("write failed", exc_info=True)

    record = json.loads(stream.getvalue().splitlines()[-1])
    assert record["error"]["type"] == "OSError"
    assert record["error"]["message"] == "disk full"


def test_reconfiguring_replaces_root_handlers():
    _capture()
    stream = _capture(json_output=False)

    assert len(logging.getLogger().handlers) == 1
    get_logger("okta_setup.test").info("Configured twice")
    assert stream.getvalue().startswith("INFO Configured twice")
