import pytest

from hablar.errors import InvalidInputError
from hablar.normalize import accent_marks, deaccent, has_accent, normalize

PUNCTUATION = set(".,;!¡¿?- ")

SAMPLES = [
    "",
    "Hola!",
    "¿Dónde está la biblioteca?",
    "¡Qué día tan bonito!",
    "Niño-Pequeño; sí, señor.",
    "pingüino",
    "  espacios   entre  palabras  ",
    "ÁRBOL",
    "a\u0301rbol",  # decomposed input
]


@pytest.mark.parametrize("raw", SAMPLES)
def test_folded_has_no_stripped_punctuation(raw):
    folded = normalize(raw).folded
    assert not PUNCTUATION.intersection(folded)


@pytest.mark.parametrize("raw", SAMPLES)
def test_deaccented_is_already_lowercase(raw):
    deaccented = normalize(raw).deaccented
    assert deaccented == deaccented.lower()


def test_question_marks_and_accents():
    n = normalize("¿Dónde está?")
    assert n.folded == "dóndeestá"
    assert n.deaccented == "dondeesta"


def test_enye_and_dieresis_are_deaccented():
    assert normalize("Niño").deaccented == "nino"
    assert deaccent("pingüino") == "pinguino"
    assert normalize("Niño").folded == "niño"


def test_empty_string_is_valid():
    assert normalize("") == ("", "")


@pytest.mark.parametrize("bad", [None, 42, b"hola"])
def test_non_string_input_rejected(bad):
    with pytest.raises(InvalidInputError):
        normalize(bad)


def test_invalid_input_is_a_type_error():
    with pytest.raises(TypeError):
        normalize(None)


def test_decomposed_and_precomposed_fold_the_same():
    assert normalize("a\u0301rbol").folded == normalize("árbol").folded == "árbol"


def test_accent_status_per_character():
    assert accent_marks("fácil") == [False, True, False, False, False]
    assert accent_marks("") == []
    assert has_accent("ñ")
    assert has_accent("ü")
    assert not has_accent("n")
    assert not has_accent("ß")


def test_compatibility_forms_are_kept_apart():
    # ordinal indicator and ligature only match under compatibility decomposition
    assert normalize("1º").folded == "1º"
    assert normalize("ﬁn").folded == "ﬁn"
    assert normalize("ＨＯＬＡ").folded == "ｈｏｌａ"
