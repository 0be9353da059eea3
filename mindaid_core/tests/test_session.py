import re
import tempfile
from pathlib import Path

from mindaid_core.infrastructure.session import SessionManager, new_session_id


def test_new_session_id_format():
    assert re.fullmatch(r"session_\d+_[a-z0-9]{9}", new_session_id())


def test_session_id_is_persisted_and_reused():
    with tempfile.TemporaryDirectory() as d:
        root = Path(d) / ".storage"
        first = SessionManager(root=root, filename="session_id").get_session_id()
        second = SessionManager(root=root, filename="session_id").get_session_id()
        assert first == second
        assert (root / "session_id").read_text(encoding="utf-8") == first


def test_clear_session_generates_new_id():
    with tempfile.TemporaryDirectory() as d:
        mgr = SessionManager(root=Path(d), filename="session_id")
        first = mgr.get_session_id()
        mgr.clear_session()
        assert not mgr.path.exists()
        second = mgr.get_session_id()
        assert second != first
