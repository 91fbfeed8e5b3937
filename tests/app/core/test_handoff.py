from app.core.handoff import DEFAULT_HANDOFF_MARKER, split_handoff_marker


def test_text_without_marker_is_untouched():
    assert split_handoff_marker("  Hola  ") == ("  Hola  ", False)


def test_marker_is_stripped():
    text, handoff = split_handoff_marker(f"Te paso con soporte {DEFAULT_HANDOFF_MARKER}")
    assert handoff is True
    assert text == "Te paso con soporte"


def test_every_occurrence_is_removed():
    text, handoff = split_handoff_marker(f"{DEFAULT_HANDOFF_MARKER}Listo{DEFAULT_HANDOFF_MARKER}")
    assert handoff is True
    assert text == "Listo"


def test_marker_only_leaves_empty_reply():
    assert split_handoff_marker(DEFAULT_HANDOFF_MARKER) == ("", True)


def test_custom_marker():
    assert split_handoff_marker("ok [[HUMANO]]", "[[HUMANO]]") == ("ok", True)
    assert split_handoff_marker(f"ok {DEFAULT_HANDOFF_MARKER}", "[[HUMANO]]").handoff is False
