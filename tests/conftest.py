import pytest

from vccd import Language, MappingSection


@pytest.fixture
def hello_language():
    return Language({"Hello": "World"})


@pytest.fixture
def hello_container(hello_language):
    return hello_language.compile()


@pytest.fixture
def caption_script():
    """Parsed form of a small closecaption_english.txt."""
    return MappingSection({
        "lang": {
            "Language": "english",
            "Tokens": {
                "NPC_Citizen.Hello": "Hello there.",
                "npc_citizen.goodbye": "<clr:255,255,255>Goodbye!",
                "Nested": {"ignored": "value"},
                "Alyx.Hurry": "Come on, hurry!",
            },
        },
    })
