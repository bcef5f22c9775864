import pytest

from sleeplog.habits import HabitsManager
from sleeplog.utils.errors import NotFoundError, ValidationError

USER = "u1"


@pytest.fixture
def habits():
    return HabitsManager()


def test_create_and_list(habits):
    habits.create_habit(USER, "Read 20 pages")
    habits.create_habit(USER, "Walk")

    listed = habits.list_habits(USER)

    assert [(h.key, h.label) for h in listed] == [("read-20-pages", "Read 20 pages"), ("walk", "Walk")]
    assert all(h.created_at is not None for h in listed)


def test_create_is_idempotent_by_key(habits):
    first = habits.create_habit(USER, "Walk")
    second = habits.create_habit(USER, "  walk ")

    assert second.key == first.key == "walk"
    assert second.label == "Walk"
    assert len(habits.list_habits(USER)) == 1


@pytest.mark.parametrize("label", ["", "   ", "!!!", None])
def test_create_rejects_unusable_labels(habits, label):
    with pytest.raises(ValidationError):
        habits.create_habit(USER, label)


def test_get_habit(habits):
    habits.create_habit(USER, "Walk")

    assert habits.get_habit(USER, "walk").label == "Walk"
    assert habits.get_habit(USER, "swim") is None
    assert habits.get_habit("someone-else", "walk") is None


def test_update_habit_keeps_key(habits):
    habits.create_habit(USER, "Walk")

    updated = habits.update_habit(USER, "walk", "Evening walk")

    assert updated.key == "walk"
    assert habits.get_habit(USER, "walk").label == "Evening walk"


def test_update_unknown_habit(habits):
    with pytest.raises(NotFoundError):
        habits.update_habit(USER, "walk", "Walk")


def test_delete_habit(habits):
    habits.create_habit(USER, "Walk")

    habits.delete_habit(USER, "walk")

    assert habits.list_habits(USER) == []
    with pytest.raises(NotFoundError):
        habits.delete_habit(USER, "walk")


def test_delete_leaves_daily_values(habits, records):
    habits.create_habit(USER, "Walk")
    records.set_habit(USER, "2024-03-02", "walk", True)

    habits.delete_habit(USER, "walk")

    assert records.get_by_date(USER, "2024-03-02").habits == [{"key": "walk", "value": True}]


def test_view_serialises_with_aliases(habits):
    view = habits.create_habit(USER, "Walk").to_view().model_dump(by_alias=True)

    assert view["key"] == "walk"
    assert view["label"] == "Walk"
    assert isinstance(view["createdAt"], str)
