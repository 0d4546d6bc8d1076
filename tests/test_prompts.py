from matching.prompts import build_match_prompt


def test_prompt_contains_both_texts_and_schema():
    prompt = build_match_prompt("Python, FastAPI, 5 years", "Backend engineer, Python required")
    assert "RESUME:\nPython, FastAPI, 5 years" in prompt
    assert "JOB DESCRIPTION:\nBackend engineer, Python required" in prompt
    for key in ("matchPercentage", "matchedSkills", "missingSkills", "suggestions", "explanation"):
        assert key in prompt
    assert "up to 5 matchedSkills" in prompt
    assert "max 3" in prompt


def test_prompt_is_deterministic():
    assert build_match_prompt("a", "b") == build_match_prompt("a", "b")


def test_braces_in_input_are_kept_verbatim():
    prompt = build_match_prompt("uses {curly} braces", "JD with {placeholder}")
    assert "uses {curly} braces" in prompt
    assert "JD with {placeholder}" in prompt
