from snipsearch.core.fields import get_field_value, resolve_field, to_text
from snipsearch.core.schemas import Snippet


def test_known_fields(snippets):
    assert get_field_value(snippets[0], "title") == "Vue Reactive Data"
    assert get_field_value(snippets[0], "usage_count") == "5"
    assert get_field_value(snippets[0], "is_favorite") == "false"


def test_list_fields_are_space_joined(snippets):
    assert get_field_value(snippets[0], "tags") == "vue reactivity"


def test_missing_values_degrade_to_empty_string():
    snippet = Snippet(id=1, title="x")
    assert get_field_value(snippet, "description") == ""
    assert get_field_value(snippet, "nope") == ""
    assert get_field_value(snippet, "meta.author.name") == ""
    assert resolve_field(snippet, "") is None


def test_dotted_path_over_extra_data():
    snippet = Snippet(id=1, title="x", meta={"author": {"name": "ada"}, "ratings": [4, 5]})
    assert get_field_value(snippet, "meta.author.name") == "ada"
    assert get_field_value(snippet, "meta.ratings") == "4 5"
    assert resolve_field(snippet, "meta.ratings.1") == 5


def test_plain_mappings_and_objects():
    class Holder:
        value = 42

    assert get_field_value({"a": {"b": [1, 2]}}, "a.b") == "1 2"
    assert get_field_value({"holder": Holder()}, "holder.value") == "42"
    assert resolve_field({"a": [1]}, "a.3") is None


def test_to_text():
    assert to_text(None) == ""
    assert to_text(True) == "true"
    assert to_text(["a", 1, None]) == "a 1 "
    assert to_text(1.5) == "1.5"
