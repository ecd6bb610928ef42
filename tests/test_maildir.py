import pytest

from barblocks.api import State
from barblocks.maildir import MailType, count_mail, mail_state, total_mail


def _make_maildir(root, new=(), cur=()):
    for sub, names in (("new", new), ("cur", cur), ("tmp", ())):
        directory = root / sub
        directory.mkdir(parents=True)
        for name in names:
            (directory / name).write_text("mail")
    return root


def test_count_new_and_cur(tmp_path):
    new = ["a", "b", "c"]
    cur = ["d"]
    inbox = _make_maildir(tmp_path / "inbox", new=new, cur=cur)
    assert count_mail(inbox, MailType.NEW) == len(new)
    assert count_mail(inbox, MailType.CUR) == len(cur)
    assert count_mail(inbox, MailType.ALL) == len(new) + len(cur)


def test_hidden_files_are_skipped(tmp_path):
    inbox = _make_maildir(tmp_path / "inbox", new=["visible", ".hidden"])
    assert count_mail(inbox) == 1


def test_missing_maildir_counts_zero(tmp_path):
    assert count_mail(tmp_path / "nowhere", MailType.ALL) == 0


def test_total_mail_sums_inboxes(tmp_path):
    first = _make_maildir(tmp_path / "one", new=["a", "b"])
    second = _make_maildir(tmp_path / "two", new=["c"], cur=["d"])
    for mail_type in MailType:
        assert total_mail([first, second], mail_type) == count_mail(first, mail_type) + count_mail(
            second, mail_type
        )


def test_home_is_expanded(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    _make_maildir(tmp_path / "mail", new=["a", "b"])
    assert count_mail("~/mail") == 2


def test_mail_type_from_config_value():
    assert MailType("new") is MailType.NEW
    assert MailType("all") is MailType.ALL
    with pytest.raises(ValueError):
        MailType("sent")


@pytest.mark.parametrize(
    "count,expected",
    [(0, State.IDLE), (1, State.WARNING), (9, State.WARNING), (10, State.CRITICAL)],
)
def test_mail_state_defaults(count, expected):
    assert mail_state(count) is expected


def test_mail_state_custom_thresholds():
    assert mail_state(4, warning=5, critical=8) is State.IDLE
    assert mail_state(5, warning=5, critical=8) is State.WARNING
    assert mail_state(8, warning=5, critical=8) is State.CRITICAL