from deepgalaxy.scheduling.constants import DUE_PRIORITY_THRESHOLD
from deepgalaxy.scheduling.selector import due_queue, rank_cards
from tests.conftest import NOW, days_ago, make_card, make_log


def settled_card(card_id: int):
    """Well-learned card reviewed yesterday and due in four weeks."""
    return make_card(
        id=card_id,
        repetitions=5,
        interval_days=30,
        ease_factor=2.8,
        last_review_at=days_ago(1),
        next_review_at=days_ago(-29),
        total_successes=5,
    )


def at_risk_card(card_id: int):
    """Not yet due, but its retention has collapsed."""
    return make_card(
        id=card_id,
        repetitions=1,
        interval_days=1,
        ease_factor=1.3,
        last_review_at=days_ago(10),
        next_review_at=days_ago(-1),
        total_successes=1,
    )


def overdue_card(card_id: int):
    return make_card(
        id=card_id,
        repetitions=3,
        interval_days=15,
        ease_factor=2.5,
        last_review_at=days_ago(16),
        next_review_at=days_ago(1),
        total_successes=3,
    )


def test_never_reviewed_card_is_always_due():
    card = make_card(id=7)
    assert due_queue([card], [], NOW) == [card]


def test_lapsed_card_scheduled_tomorrow_is_still_due():
    lapsed = make_card(
        id=2,
        repetitions=0,
        interval_days=1,
        last_review_at=NOW,
        next_review_at=days_ago(-1),
    )
    assert due_queue([lapsed], [], NOW) == [lapsed]


def test_settled_card_is_excluded():
    assert due_queue([settled_card(1)], [], NOW) == []


def test_overdue_card_is_included():
    card = overdue_card(3)
    assert due_queue([card], [], NOW) == [card]


def test_high_priority_card_is_included_early():
    card = at_risk_card(4)

    ranked = rank_cards([card], [], NOW)

    assert [s.card for s in ranked] == [card]
    assert ranked[0].priority_score >= DUE_PRIORITY_THRESHOLD


def test_queue_is_sorted_by_priority():
    cards = [settled_card(1), overdue_card(2), make_card(id=3), at_risk_card(4)]

    ranked = rank_cards(cards, [make_log(1, days_ago(2))], NOW)
    scores = [s.priority_score for s in ranked]

    assert scores == sorted(scores, reverse=True)
    assert ranked[0].card.id == 3  # new card first
    assert {s.card.id for s in ranked} == {2, 3, 4}


def test_every_returned_card_satisfies_inclusion_rule():
    cards = [settled_card(1), overdue_card(2), make_card(id=3), at_risk_card(4)]

    for scored in rank_cards(cards, [], NOW):
        card = scored.card
        assert (
            card.repetitions == 0
            or card.next_review_at is None
            or card.next_review_at <= NOW
            or scored.priority_score >= DUE_PRIORITY_THRESHOLD
        )


def test_ties_keep_input_order():
    cards = [make_card(id=9), make_card(id=2), make_card(id=5)]
    assert [c.id for c in due_queue(cards, [], NOW)] == [9, 2, 5]


def test_forget_rate_is_shared_with_every_card():
    logs = [make_log(1, days_ago(1)), make_log(4, days_ago(1))]

    ranked = rank_cards([make_card(id=1), overdue_card(2)], logs, NOW)

    assert all(s.stats.forget_rate == 0.5 for s in ranked)
