import pytest

from sleeplog.habits.habit_key import generate_habit_key


@pytest.mark.parametrize("label, expected", [
    ("Read 20 pages", "read-20-pages"),
    ("  Drink   Water ", "drink-water"),
    ("No coffee!!", "no-coffee"),
    ("Stretch\tdaily", "stretch-daily"),
    ("Зарядка утром", "зарядка-утром"),
    ("Ёжик", "ежик"),
    ("10k-steps", "10k-steps"),
])
def test_generate_habit_key(label, expected):
    assert generate_habit_key(label) == expected


def test_label_without_usable_characters():
    assert generate_habit_key("!!! ???") == "-"
    assert generate_habit_key("!!!") == ""
