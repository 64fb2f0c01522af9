import pytest

from skulabels.prompts import load_template, render_label_prompts


def test_frontmatter_requires_is_parsed():
    assert load_template("label_extraction_user").requires == ("document_text",)
    assert load_template("label_extraction_system").requires == ()


def test_frontmatter_is_stripped():
    system_prompt, _ = render_label_prompts("x", include_confidence=False)
    assert not system_prompt.startswith("---")
    assert "JSON" in system_prompt


def test_user_prompt_includes_text_and_shape():
    _, user_prompt = render_label_prompts("seller sku: ABC123", include_confidence=False)
    assert user_prompt.endswith("seller sku: ABC123")
    assert '"records"' in user_prompt
    assert '"scan_payload"' in user_prompt
    assert "confidence" not in user_prompt


def test_user_prompt_with_confidence():
    _, user_prompt = render_label_prompts("x", include_confidence=True)
    assert '"confidence": <integer 0-100>' in user_prompt


def test_missing_required_var():
    with pytest.raises(ValueError, match="document_text"):
        load_template("label_extraction_user").render(include_confidence=False)


def test_unknown_template():
    with pytest.raises(FileNotFoundError):
        load_template("does_not_exist")
