from quiz_live.core.shuffle import shuffle_questions


def test_same_student_and_quiz_always_get_same_order():
    items = list(range(20))

    first = shuffle_questions(items, quiz_id=5, user_id=42)

    assert shuffle_questions(items, quiz_id=5, user_id=42) == first
    assert sorted(first) == items
    assert items == list(range(20))


def test_orders_differ_between_students():
    items = list(range(20))
    orders = {tuple(shuffle_questions(items, quiz_id=5, user_id=user)) for user in range(1, 6)}

    assert len(orders) > 1


def test_short_lists_are_returned_as_copies():
    assert shuffle_questions([], 1, 1) == []
    assert shuffle_questions(["only"], 1, 1) == ["only"]
