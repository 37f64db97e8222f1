import pytest

from streamkit.action_server import ActionServer
from streamkit.actions import FuncActor


def blocking(cancel, value):
    cancel.wait(5)


@pytest.fixture
def server():
    srv = ActionServer("/actions")
    yield srv
    for action in srv.sorted_actions():
        action.stop()


def test_attach_and_sorted(server):
    server.attach_func_action("b", "second", blocking)
    server.attach_action("a", FuncActor("first", blocking))
    actions = server.sorted_actions()
    assert [a.name for a in actions] == ["a", "b"]
    assert [a.description for a in actions] == ["first", "second"]


def test_attach_duplicate_raises(server):
    server.attach_func_action("a", "d", blocking)
    with pytest.raises(ValueError, match="already attached"):
        server.attach_func_action("a", "d", blocking)


def test_start_unknown_action(server):
    assert server.start_action("missing") == "/actions?error=Action 'missing' not found"


def test_stop_unknown_action(server):
    assert server.stop_action("missing") == "/actions?error=Action 'missing' not found"


def test_start_and_stop(server):
    server.attach_func_action("a", "d", blocking)
    assert server.start_action("a", "v") == "/actions"
    action = server.sorted_actions()[0]
    assert action.is_running()

    assert server.start_action("a") == "/actions?error=action already running."

    assert server.stop_action("a") == "/actions"
    assert not action.is_running()
    assert server.stop_action("a") == "/actions?error=action is not running."


def test_index(server):
    server.attach_func_action("z", "d", blocking)
    server.attach_func_action("y", "d", blocking)
    params = server.index()
    assert params["page_title"] == "Actions"
    assert params["base_path"] == "/actions"
    assert params["menu_title"] == "menu title"
    assert [a.name for a in params["actions"]] == ["y", "z"]
    assert params["error"] == []


def test_index_with_error(server):
    params = server.index("something failed")
    assert params["error"] == ["something failed"]