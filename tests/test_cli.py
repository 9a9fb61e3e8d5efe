import logging

import pytest

from deepgalaxy.cli import build_parser, main


@pytest.fixture
def run(sqlite_url, capsys, monkeypatch):
    monkeypatch.delenv("LOG_FILE", raising=False)

    def invoke(*args):
        code = main(["--database-url", sqlite_url, *args])
        return code, capsys.readouterr().out

    return invoke


def test_init_db(run):
    code, out = run("init-db")

    assert code == 0
    assert "[OK] Database ready" in out


def test_root_logger_is_left_as_found(run):
    root_logger = logging.getLogger()
    handlers, level = root_logger.handlers[:], root_logger.level

    run("-v", "init-db")
    run("stats")

    assert root_logger.handlers == handlers
    assert root_logger.level == level


def test_add_and_review_workflow(run):
    assert "Added deck [1] Spanish" in run("add-deck", "Spanish")[1]
    assert "Added card [1] to deck Spanish" in run("add-card", "1", "hablar", "to speak")[1]

    code, out = run("due")
    assert code == 0
    assert "[1]" in out
    assert "hablar" in out

    code, out = run("review", "--grade", "3")
    assert code == 0
    assert "to speak" in out
    assert "Reviewed 1 card(s), 1 remembered." in out

    assert "No cards due today." in run("due")[1]

    code, out = run("stats")
    assert "Due today:        0" in out
    assert "Total cards:      1" in out
    assert "Retention (7d):   100%" in out
    assert "Forget rate:      0.0%" in out
    assert "Struggling cards: 0" in out


def test_add_card_to_missing_deck(run):
    code, out = run("add-card", "7", "perro", "dog")

    assert code == 0
    assert "No deck with id 7." in out


def test_review_with_nothing_due(run):
    assert "No cards due today." in run("review", "--grade", "4")[1]


def test_list_and_rename_decks(run):
    assert "No decks yet." in run("decks")[1]

    run("add-deck", "Spanish")
    run("add-deck", "German")
    run("add-card", "1", "hablar", "to speak")
    run("add-card", "1", "comer", "to eat")

    out = run("decks")[1]
    assert "[1] Spanish (2 cards)" in out
    assert "[2] German (0 cards)" in out

    assert "Renamed deck [1] Spanish -> Verbos" in run("rename-deck", "1", "Verbos")[1]
    assert "[1] Verbos (2 cards)" in run("decks")[1]
    assert "No deck with id 9." in run("rename-deck", "9", "Nada")[1]


def test_list_and_edit_cards(run):
    run("add-deck", "Spanish")
    run("add-card", "1", "hablar", "to speak")
    run("add-card", "1", "comer", "to eat")

    out = run("cards", "1")[1]
    assert "[1] hablar  EF=2.50 next=new" in out
    assert "[2] comer  EF=2.50 next=new" in out

    run("review", "--grade", "4")
    assert "Updated card [1]" in run("edit-card", "1", "--back", "to talk")[1]

    out = run("cards", "1")[1]
    # Editing content keeps the schedule from the review
    assert "next=new" not in out
    assert "[1] hablar" in out

    assert "No card with id 5." in run("edit-card", "5", "--front", "x")[1]
    assert "No deck with id 4." in run("cards", "4")[1]


def test_edited_text_is_shown_in_review(run):
    run("add-deck", "Spanish")
    run("add-card", "1", "hablar", "to speak")
    run("edit-card", "1", "--front", "charlar", "--back", "to chat")

    out = run("review", "--grade", "3")[1]

    assert "charlar" in out
    assert "to chat" in out


def test_delete_card(run):
    run("add-deck", "Spanish")
    run("add-card", "1", "hablar", "to speak")
    run("add-card", "1", "comer", "to eat")

    assert "Deleted card [2]" in run("delete-card", "2", "--yes")[1]

    out = run("cards", "1")[1]
    assert "hablar" in out
    assert "comer" not in out
    assert "No card with id 2." in run("delete-card", "2", "--yes")[1]


def test_delete_deck_removes_its_cards(run):
    run("add-deck", "Spanish")
    run("add-deck", "German")
    run("add-card", "1", "hablar", "to speak")
    run("add-card", "1", "comer", "to eat")
    run("add-card", "2", "sprechen", "to speak")

    out = run("delete-deck", "1", "--yes")[1]
    assert "Deleted deck [1] Spanish and 2 card(s)" in out

    out = run("decks")[1]
    assert "Spanish" not in out
    assert "[2] German (1 cards)" in out
    assert "Total cards:      1" in run("stats")[1]
    assert "No deck with id 1." in run("delete-deck", "1", "--yes")[1]


def test_declined_confirmation_changes_nothing(run, monkeypatch):
    run("add-deck", "Spanish")
    run("add-card", "1", "hablar", "to speak")
    monkeypatch.setattr("builtins.input", lambda prompt="": "no")

    assert "Cancelled. No changes made." in run("delete-deck", "1")[1]
    assert "Cancelled. No changes made." in run("delete-card", "1")[1]
    assert "[1] Spanish (1 cards)" in run("decks")[1]


def test_grade_choices_are_enforced():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["review", "--grade", "5"])
