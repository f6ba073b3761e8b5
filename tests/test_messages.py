from studygroups import data, db
from studygroups.models import Messages, Reactions, MESSAGE_RETENTION


def _group(owner="Alice", course="CS101"):
    return data.create_group(course, "Chat", owner)["group"]["id"]


def test_post_requires_membership_and_text(ctx):
    gid = _group()
    assert data.add_message(gid, "Bob", "hi")["error"] == "NOT_MEMBER"
    assert data.add_message(gid, "Alice", "  <b></b> ")["error"] == "EMPTY_MESSAGE"
    msg = data.add_message(gid, "Alice", "<i>hello</i>  there")["message"]
    assert msg["text"] == "hello there"
    assert msg["author"] == "Alice"
    assert isinstance(msg["timestamp"], int)


def test_retention_keeps_newest_fifty(ctx):
    gid = _group()
    for i in range(MESSAGE_RETENTION + 1):
        data.add_message(gid, "Alice", f"msg {i}")
    texts = [m["text"] for m in data.get_messages(gid)["messages"]]
    assert len(texts) == MESSAGE_RETENTION
    assert texts[0] == "msg 1"
    assert texts[-1] == f"msg {MESSAGE_RETENTION}"
    assert Messages.query.filter_by(group_id=gid, text="msg 0").count() == 0


def test_deleted_messages_do_not_count_toward_retention(ctx):
    gid = _group()
    first = data.add_message(gid, "Alice", "doomed")["message"]["id"]
    data.delete_message(gid, first, "Alice")
    for i in range(MESSAGE_RETENTION):
        data.add_message(gid, "Alice", f"msg {i}")
    assert len(data.get_messages(gid)["messages"]) == MESSAGE_RETENTION
    assert Messages.query.filter_by(group_id=gid, deleted=False).count() == MESSAGE_RETENTION


def test_only_owner_deletes_without_privilege(ctx):
    gid = _group()
    data.join_group("CS101", gid, "Bob")
    mid = data.add_message(gid, "Bob", "spam")["message"]["id"]

    assert data.delete_message(gid, mid, "Bob")["error"] == "NOT_OWNER"
    assert data.delete_message(gid, mid, "Bob", privileged=True) == {"success": True}
    assert db.session.get(Messages, mid).state == "deleted"
    assert data.get_messages(gid)["messages"] == []


def test_owner_delete_and_lookups(ctx):
    gid = _group()
    other = _group(owner="Zed", course="MATH201")
    mid = data.add_message(other, "Zed", "elsewhere")["message"]["id"]
    assert data.delete_message(gid, mid, "Alice")["error"] == "MESSAGE_NOT_FOUND"
    assert data.delete_message(999, mid, "Alice")["error"] == "GROUP_NOT_FOUND"
    assert data.delete_message(None, 999, "Root", privileged=True)["error"] == "MESSAGE_NOT_FOUND"

    own = data.add_message(gid, "Alice", "mine")["message"]["id"]
    assert data.delete_message(gid, own, "Alice") == {"success": True}


def test_report_then_resolve(ctx):
    gid = _group()
    mid = data.add_message(gid, "Alice", "questionable")["message"]["id"]
    assert data.report_message(gid, mid, "Alice") == {"success": True}
    assert db.session.get(Messages, mid).state == "reported"

    reported = data.get_reported_messages()
    assert [r["id"] for r in reported] == [mid]
    assert reported[0]["course_code"] == "CS101"
    assert reported[0]["group_id"] == gid

    assert data.resolve_message(mid, "Root")["success"] is True
    assert db.session.get(Messages, mid).state == "active"
    assert data.get_reported_messages() == []


def test_report_wrong_group_or_deleted(ctx):
    gid = _group()
    mid = data.add_message(gid, "Alice", "x")["message"]["id"]
    assert data.report_message(gid + 1, mid, "Alice")["error"] == "MESSAGE_NOT_FOUND"
    data.delete_message(gid, mid, "Alice")
    assert data.report_message(gid, mid, "Alice")["error"] == "MESSAGE_DELETED"
    assert data.resolve_message(mid)["error"] == "MESSAGE_DELETED"
    assert data.resolve_message(424242)["error"] == "MESSAGE_NOT_FOUND"


def test_reaction_toggles(ctx):
    gid = _group()
    mid = data.add_message(gid, "Alice", "nice")["message"]["id"]
    thumbs = "\U0001F44D"

    assert data.toggle_reaction(mid, "Bob", thumbs) == {"action": "added"}
    assert data.get_messages(gid)["messages"][0]["reactions"] == {thumbs: ["Bob"]}
    assert data.toggle_reaction(mid, "Bob", thumbs) == {"action": "removed"}
    assert Reactions.query.filter_by(message_id=mid).count() == 0


def test_reaction_rejects_unknown_emoji_and_missing_message(ctx):
    gid = _group()
    mid = data.add_message(gid, "Alice", "nice")["message"]["id"]
    assert data.toggle_reaction(mid, "Bob", "\U0001F600")["error"] == "INVALID_EMOJI"
    assert data.toggle_reaction(9999, "Bob", "\U0001F44D")["error"] == "MESSAGE_NOT_FOUND"


def test_get_messages_unknown_group(ctx):
    assert data.get_messages(404)["error"] == "GROUP_NOT_FOUND"


def test_reporting_twice_is_still_success(ctx):
    gid = _group()
    mid = data.add_message(gid, "Alice", "hmm")["message"]["id"]
    assert data.report_message(gid, mid, "Alice") == {"success": True}
    assert data.report_message(gid, mid, "Bob") == {"success": True}
    assert db.session.get(Messages, mid).state == "reported"


def test_reaction_on_deleted_message(ctx):
    gid = _group()
    mid = data.add_message(gid, "Alice", "gone soon")["message"]["id"]
    data.delete_message(gid, mid, "Alice")
    assert data.toggle_reaction(mid, "Bob", "\U0001F44D")["error"] == "MESSAGE_NOT_FOUND"
    assert Reactions.query.filter_by(message_id=mid).count() == 0


def test_retention_purge_drops_reactions_too(ctx):
    gid = _group()
    oldest = data.add_message(gid, "Alice", "oldest")["message"]["id"]
    data.toggle_reaction(oldest, "Alice", "\U0001F4A1")
    assert Reactions.query.filter_by(message_id=oldest).count() == 1

    for i in range(MESSAGE_RETENTION):
        data.add_message(gid, "Alice", f"msg {i}")

    assert db.session.get(Messages, oldest) is None
    assert Reactions.query.filter_by(message_id=oldest).count() == 0


def test_long_paste_is_truncated_not_rejected(login):
    alice = login("Alice")
    gid = alice.post("/api/groups", json={"course_code": "CS101", "group_name": "Chat"}).get_json()["group"]["id"]
    res = alice.post(f"/api/groups/{gid}/messages", json={"text": "x" * 20000})
    assert res.status_code == 201
    assert len(res.get_json()["message"]["text"]) == 500
