"""
Test dialog script import.
"""

import pytest

from dialogs.codec import DocumentError
from dialogs.parser import DialogParser, ScriptSyntaxError
from dialogs.validator import validate_tree

MERCHANT_SCRIPT = '''
$id = "merchant_intro"
$character = "Mira"
$portrait = "portraits/mira.png"

// Opening line
# start
Welcome, traveller. Looking to trade?

>> Show me your wares -> shop
>> Who are you? -> about
>> Goodbye

---

# about
@portrait portraits/mira_smile.png "Mira smiling"
Just a merchant
with too many potions.
-> start

# shop
Take a look.
>> Leave -> end
'''


@pytest.fixture
def parser():
    return DialogParser()


def test_parse_script(parser):
    """Headers, nodes and choices compile into a tree."""
    tree = parser.parse_string(MERCHANT_SCRIPT)

    assert tree.id == "merchant_intro"
    assert tree.character_name == "Mira"
    assert tree.portrait.path == "portraits/mira.png"
    assert tree.start_node_id == "start"
    assert list(tree.nodes) == ["start", "about", "shop"]

    start = tree.nodes["start"]
    assert start.message == "Welcome, traveller. Looking to trade?"
    assert [(r.text, r.next_node_id) for r in start.responses] == [
        ("Show me your wares", "shop"),
        ("Who are you?", "about"),
        ("Goodbye", None),
    ]


def test_multiline_message_and_continue(parser):
    """Message lines join and -> adds a Continue response."""
    about = parser.parse_string(MERCHANT_SCRIPT).nodes["about"]

    assert about.message == "Just a merchant\nwith too many potions."
    assert about.portrait.path == "portraits/mira_smile.png"
    assert about.portrait.alt == "Mira smiling"
    assert [(r.text, r.next_node_id) for r in about.responses] == [("Continue", "start")]


def test_end_target_is_terminal(parser):
    """The end target becomes null."""
    shop = parser.parse_string(MERCHANT_SCRIPT).nodes["shop"]
    assert shop.responses[0].next_node_id is None


def test_parsed_script_validates_clean(parser):
    """A well-formed script yields a valid tree."""
    assert validate_tree(parser.parse_string(MERCHANT_SCRIPT)).is_clean


def test_start_header_and_default_id(parser):
    """$start picks the start node; the id falls back to default_id."""
    tree = parser.parse_string("$start = second\n# first\nHi\n# second\nHello\n", default_id="fallback")

    assert tree.id == "fallback"
    assert tree.start_node_id == "second"


def test_parse_file_uses_stem(parser, tmp_path):
    """Files default their id to the file stem."""
    path = tmp_path / "blacksmith.dlg"
    path.write_text("# start\nHot in here.\n>> Bye\n", encoding="utf-8")

    tree = parser.parse_file(path)
    assert tree.id == "blacksmith"


@pytest.mark.parametrize("script, fragment", [
    ("# a\nHi\n# a\nAgain\n", 'Duplicate node "a"'),
    ("Hello there\n# a\nHi\n", "Text outside of a node"),
    ("$mood = happy\n# a\nHi\n", 'Unknown header "$mood"'),
    ("// nothing here\n", "defines no nodes"),
])
def test_syntax_errors(parser, script, fragment):
    """Malformed scripts raise with a readable message."""
    with pytest.raises(ScriptSyntaxError, match=fragment.replace("$", r"\$")):
        parser.parse_string(script)


def test_syntax_error_carries_line_number(parser):
    """Syntax errors report the offending line."""
    with pytest.raises(ScriptSyntaxError) as excinfo:
        parser.parse_string("# a\nHi\n\n# a\n")

    assert excinfo.value.line_number == 4
    assert str(excinfo.value).startswith("Line 4:")
    assert isinstance(excinfo.value, DocumentError)


def test_null_headers_fall_back_to_defaults(parser):
    """A header set to null leaves the name empty and the id at its default."""
    tree = parser.parse_string("$id = null\n$character = null\n# start\nHi\n", default_id="guard")

    assert tree.character_name == ""
    assert tree.id == "guard"
