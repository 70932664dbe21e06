from __future__ import annotations

from storyloom.prompts.loader import PromptLoader


def test_substitutes_once(tmp_path):
    (tmp_path / "narration").mkdir()
    (tmp_path / "narration" / "T.txt").write_text("At {location}: {history}", encoding="utf-8")
    loader = PromptLoader(tmp_path)

    text = loader.render("narration", "T", location="the {inn}", history="you say {location}")

    assert text == "At the {inn}: you say {location}"


def test_missing_placeholder_is_kept(tmp_path, caplog):
    (tmp_path / "narration").mkdir()
    (tmp_path / "narration" / "U.txt").write_text("{world_name} / {protagonist}", encoding="utf-8")

    text = PromptLoader(tmp_path).render("narration", "U", world_name="Eldmoor")

    assert text == "Eldmoor / {protagonist}"
    assert "protagonist" in caplog.text


def test_packaged_templates_render():
    text = PromptLoader().render(
        "narration", "NARRATE", location="a tavern", characters="(none)", history="..."
    )
    assert "a tavern" in text
    assert "{" not in text
