from mindaid_core.domain.models import ConversationLog, ConversationMessage
from mindaid_core.streaming.accumulator import MessageAccumulator


def _log():
    return ConversationLog(messages=(ConversationMessage(id="u1", role="user", content="hi"),))


def test_empty_fragment_keeps_state():
    acc = MessageAccumulator()
    state = acc.start(_log())
    assert acc.apply("", state) is state


def test_first_fragment_creates_message_then_appends():
    calls = []

    def factory():
        calls.append(1)
        return f"ai-{len(calls)}"

    acc = MessageAccumulator(id_factory=factory)
    s0 = acc.start(_log())
    s1 = acc.apply("Hel", s0)
    s2 = acc.apply("lo", s1)

    assert len(calls) == 1
    assert s1.in_progress_id == "ai-1"
    assert [m.content for m in s2.log] == ["hi", "Hello"]
    assert s2.log[-1].role == "assistant"
    # 旧快照不受影响
    assert [m.content for m in s1.log] == ["hi", "Hel"]
    assert len(s0.log) == 1


def test_finish_clears_in_progress_but_keeps_message():
    acc = MessageAccumulator(id_factory=lambda: "ai-1")
    state = acc.finish(acc.apply("x", acc.start(_log())))
    assert state.in_progress_id is None
    assert state.message.id == "ai-1"
    assert state.message.content == "x"
