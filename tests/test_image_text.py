import pytest

from tutor import image_text
from tutor.config import Settings
from tutor.errors import UpstreamFailure, UpstreamTimeout

PY_SNIPPET = "def add(a, b):\n    return a + b\n\nprint(add(1, 2))\n"
PROBLEM_TEXT = "Given an array of integers nums and an integer target, return indices of the two numbers."


@pytest.fixture
def ocr_settings():
    return Settings(ocr_api_key="ocr-key", ocr_api_url="http://ocr.test/parse/image")


def ocr_payload(text):
    return {"IsErroredOnProcessing": False, "ParsedResults": [{"ParsedText": text}]}


class TestClassification:
    def test_python_snippet_is_code(self):
        assert image_text.is_code_content(PY_SNIPPET)
        assert image_text.detect_language(PY_SNIPPET) == "python"

    def test_problem_statement_is_not_code(self):
        assert not image_text.is_code_content(PROBLEM_TEXT)
        assert image_text.looks_like_problem(PROBLEM_TEXT)

    @pytest.mark.parametrize(
        "text, language",
        [
            ('public class Main {\n  System.out.println("x");\n}', "java"),
            ('#include <stdio.h>\nint main() { printf("hi"); }', "c"),
            ("#include <iostream>\nint main() { std::cout << 1; }", "cpp"),
            ("x = [1, 2]", "unknown"),
        ],
    )
    def test_detect_language(self, text, language):
        assert image_text.detect_language(text) == language


class TestCleanText:
    def test_code_keeps_indentation(self):
        raw = "def f(x):\n    return   x  *  2\n\n\n\nprint(f(3))"

        assert image_text.clean_ocr_text(raw, True) == "def f(x):\n    return x * 2\n\nprint(f(3))"

    def test_prose_drops_ui_noise(self):
        raw = "<< | >>\nOK\nGiven an array of numbers\n=== *** ===\nreturn the largest one"

        assert image_text.clean_ocr_text(raw, False) == "Given an array of numbers return the largest one"

    def test_long_text_is_truncated(self):
        assert len(image_text.clean_ocr_text("word " * 2000, False)) == image_text.MAX_TEXT_LENGTH


class TestExtractTextFromImage:
    def test_code_screenshot(self, monkeypatch, ocr_settings, fake_response):
        calls = []

        def fake_post(url, files=None, data=None, timeout=None):
            calls.append({"url": url, "files": files, "data": data})
            return fake_response(ocr_payload(PY_SNIPPET))

        monkeypatch.setattr(image_text.requests, "post", fake_post)

        extracted = image_text.extract_text_from_image(b"png-bytes", "shot.png", ocr_settings)

        assert extracted.is_code is True
        assert extracted.language == "python"
        assert extracted.text.startswith("def add(a, b):")
        assert calls[0]["url"] == "http://ocr.test/parse/image"
        assert calls[0]["files"] == {"file": ("shot.png", b"png-bytes")}
        assert calls[0]["data"]["apikey"] == "ocr-key"

    def test_missing_key(self):
        with pytest.raises(UpstreamFailure):
            image_text.extract_text_from_image(b"png", "a.png", Settings())

    def test_processing_error(self, monkeypatch, ocr_settings, fake_response):
        payload = {"IsErroredOnProcessing": True, "ErrorMessage": ["Unable to recognize the file type"]}
        monkeypatch.setattr(image_text.requests, "post", lambda *a, **kw: fake_response(payload))

        with pytest.raises(UpstreamFailure):
            image_text.extract_text_from_image(b"gif", "a.gif", ocr_settings)

    def test_timeout(self, monkeypatch, ocr_settings):
        def fake_post(*args, **kwargs):
            raise image_text.requests.Timeout("slow")

        monkeypatch.setattr(image_text.requests, "post", fake_post)

        with pytest.raises(UpstreamTimeout):
            image_text.extract_text_from_image(b"png", "a.png", ocr_settings)
