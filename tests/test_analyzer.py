import pytest
from pydantic import ValidationError

from tutor import analyzer
from tutor.errors import UpstreamTimeout
from tutor.fallback import GREETING_REPLY, HINT_PROGRESSIONS
from tutor.sanitizer import PLACEHOLDER_BLOCK

LEAKY_REPLY = (
    "```python\n"
    "def solve(xs):\n"
    "    total = 0\n"
    "    for x in xs:\n"
    "        total += x\n"
    "    total *= 1\n"
    "    return total\n"
    "```\n"
)


def body(**overrides):
    data = {"code": "for i in range(10)\n  print(i)", "language": "python", "level": "basic", "hintLevel": 1}
    data.update(overrides)
    return data


class TestBuildRequest:
    def test_normalizes_fields(self):
        request = analyzer.build_request(body(language="C++", level="MODERATE", hintLevel="3"))

        assert request.language == "cpp"
        assert request.level == "moderate"
        assert request.hint_level == 3

    def test_hint_level_defaults_to_one(self):
        data = body()
        del data["hintLevel"]

        assert analyzer.build_request(data).hint_level == 1

    def test_blank_question_is_dropped(self):
        assert analyzer.build_request(body(userQuestion="   ")).user_question is None

    def test_learning_state_is_parsed(self):
        request = analyzer.build_request(body(learningState={"masteredConcepts": ["loops"]}))

        assert request.learning_state.mastered_concepts == ["loops"]

    @pytest.mark.parametrize("state", [{"hintsGivenThisSession": "lots"}, "not-a-state", 7])
    def test_malformed_learning_state_is_ignored(self, state):
        assert analyzer.build_request(body(learningState=state)).learning_state is None

    def test_invalid_core_field_still_raises(self):
        with pytest.raises(ValidationError):
            analyzer.build_request(body(language="ruby"))

    @pytest.mark.parametrize(
        "flag, expected",
        [
            (True, True),
            ("true", True),
            (1, True),
            (False, False),
            ("false", False),
            ("0", False),
            ("maybe", False),
            (None, False),
        ],
    )
    def test_include_complexity_is_parsed_leniently(self, flag, expected):
        assert analyzer.build_request(body(includeComplexity=flag)).include_complexity is expected


class TestAnalyzeWithoutLLM:
    def test_missing_colon_walkthrough(self, plain_settings):
        result = analyzer.analyze_code(analyzer.build_request(body()), plain_settings)

        assert result["hint"] == HINT_PROGRESSIONS["syntax"][0]
        assert result["hintLevel"] == 1
        assert result["detectedErrors"][0]["type"] == "syntax"
        assert "colon" in result["detectedErrors"][0]["description"]
        assert result["detectedErrors"][0]["line"] == 1
        assert "complexity" not in result

    def test_greeting_short_circuits(self, plain_settings, monkeypatch):
        monkeypatch.setattr(analyzer, "detect_errors", pytest.fail)

        result = analyzer.analyze_code(analyzer.build_request(body(userQuestion="Hello!", hintLevel=2)), plain_settings)

        assert result["mode"] == "general"
        assert result["reply"] == GREETING_REPLY
        assert result["hintLevel"] == 2

    def test_question_without_code(self, plain_settings):
        result = analyzer.analyze_code(analyzer.build_request(body(code="", userQuestion="give me a hint")), plain_settings)

        assert result["reply"]
        assert result["detectedErrors"] == []

    def test_complexity_on_request(self, plain_settings):
        request = analyzer.build_request(body(code="for x in xs:\n    print(x)\n", includeComplexity=True))

        result = analyzer.analyze_code(request, plain_settings)

        assert result["complexity"]["worst"] == "O(n)"

    def test_next_learning_state_is_returned(self, plain_settings):
        state = {"lastErrorType": "syntax", "hintsGivenThisSession": 1, "masteredConcepts": ["variables"]}
        request = analyzer.build_request(body(hintLevel=2, learningState=state))

        result = analyzer.analyze_code(request, plain_settings)

        updated = result["learningState"]
        assert updated["hintsGivenThisSession"] == 2
        assert updated["errorHistory"] == ["syntax"]
        assert updated["sameErrorRepeated"] is True
        assert updated["strugglingConcepts"] == ["syntax"]
        assert updated["masteredConcepts"] == ["variables"]
        assert updated["currentUnderstanding"] == "struggling"
        assert result["learningSummary"]["topStruggle"] == "syntax"

    def test_question_reply_is_remembered(self, plain_settings):
        request = analyzer.build_request(body(code="", userQuestion="explain this please", learningState={}))

        result = analyzer.analyze_code(request, plain_settings)

        assert result["learningState"]["previousExplanations"] == [result["reply"][:100] + "..."]
        assert result["learningState"]["hintsGivenThisSession"] == 0

    def test_no_learning_state_without_one_sent(self, plain_settings):
        result = analyzer.analyze_code(analyzer.build_request(body()), plain_settings)

        assert "learningState" not in result
        assert "learningSummary" not in result

    def test_llm_not_called_without_key(self, plain_settings, monkeypatch):
        monkeypatch.setattr(analyzer, "call_llm", pytest.fail)

        analyzer.analyze_code(analyzer.build_request(body()), plain_settings)


class TestAnalyzeWithLLM:
    def test_llm_reply_is_sanitized_and_merged(self, llm_settings, monkeypatch):
        prompts = []

        def fake_call(system_prompt, prompt, settings):
            prompts.append(prompt)
            return {"reply": LEAKY_REPLY, "hint": "Check the loop header"}

        monkeypatch.setattr(analyzer, "call_llm", fake_call)

        result = analyzer.analyze_code(analyzer.build_request(body(hintLevel=2)), llm_settings)

        assert result["reply"] == PLACEHOLDER_BLOCK + "\n"
        assert result["hint"] == "Check the loop header"
        assert result["hintLevel"] == 2
        assert result["detectedErrors"][0]["type"] == "syntax"
        assert "for i in range(10)" in prompts[0]

    def test_timeout_falls_back_to_heuristics(self, llm_settings, monkeypatch):
        def fake_call(*args):
            raise UpstreamTimeout("llm", "no answer within 5.0s")

        monkeypatch.setattr(analyzer, "call_llm", fake_call)

        result = analyzer.analyze_code(analyzer.build_request(body()), llm_settings)

        assert result["hint"] == HINT_PROGRESSIONS["syntax"][0]
        assert result["conceptsTaught"] == ["syntax"]
