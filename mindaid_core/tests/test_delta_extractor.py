import pytest

from mindaid_core.domain.exceptions import FrameDecodeError
from mindaid_core.streaming.delta_extractor import DeltaExtractor


def test_extracts_nested_content():
    payload = '{"id": "x", "choices": [{"index": 0, "delta": {"role": "assistant", "content": "hi"}}], "usage": null}'
    assert DeltaExtractor().extract(payload) == "hi"


def test_only_first_choice_is_read():
    payload = '{"choices": [{"delta": {"content": "a"}}, {"delta": {"content": "b"}}]}'
    assert DeltaExtractor().extract(payload) == "a"


@pytest.mark.parametrize(
    "payload",
    [
        "{}",
        "[]",
        "42",
        '{"choices": []}',
        '{"choices": {}}',
        '{"choices": [null]}',
        '{"choices": [{"delta": "text"}]}',
        '{"choices": [{"delta": {}}]}',
        '{"choices": [{"delta": {"content": null}}]}',
        '{"choices": [{"delta": {"content": 5}}]}',
    ],
)
def test_missing_content_is_empty(payload):
    assert DeltaExtractor().extract(payload) == ""


def test_invalid_json_raises():
    with pytest.raises(FrameDecodeError) as exc_info:
        DeltaExtractor().extract('{"choices": [')
    assert exc_info.value.code == "FRAME_DECODE_ERROR"
