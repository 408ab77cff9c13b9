import pytest
import requests

from tutor import executor
from tutor.config import Settings
from tutor.errors import UpstreamFailure


@pytest.fixture
def settings():
    return Settings(executor_url="http://sandbox.test/api/v2")


@pytest.fixture
def sandbox(monkeypatch, fake_response):
    """Queue a sandbox answer and record what was posted."""
    state = {"answer": {}, "status": 200, "calls": []}

    def fake_post(url, json=None, timeout=None):
        state["calls"].append({"url": url, "json": json, "timeout": timeout})
        if isinstance(state["answer"], Exception):
            raise state["answer"]
        return fake_response(state["answer"], state["status"])

    monkeypatch.setattr(executor.requests, "post", fake_post)
    return state


class TestRunCode:
    def test_successful_run(self, sandbox, settings):
        sandbox["answer"] = {"run": {"stdout": "3\n", "stderr": "", "code": 0, "signal": None}}

        result = executor.run_code("print(1 + 2)", "python", "", settings)

        assert result.success is True
        assert result.output == "3\n"
        assert result.exit_code == 0
        call = sandbox["calls"][0]
        assert call["url"] == "http://sandbox.test/api/v2/execute"
        assert call["json"]["language"] == "python"
        assert call["json"]["files"] == [{"name": "main.py", "content": "print(1 + 2)"}]

    def test_cpp_uses_sandbox_name_and_stdin(self, sandbox, settings):
        sandbox["answer"] = {"compile": {"code": 0}, "run": {"stdout": "hi", "code": 0}}

        executor.run_code("int main() {}", "C++", "42\n", settings)

        assert sandbox["calls"][0]["json"]["language"] == "c++"
        assert sandbox["calls"][0]["json"]["stdin"] == "42\n"

    def test_compile_error(self, sandbox, settings):
        sandbox["answer"] = {"compile": {"code": 1, "stderr": "main.c:2: error: expected ';'"}}

        result = executor.run_code("int main() { return 0 }", "c", "", settings)

        assert result.success is False
        assert result.error == "Compilation Error:\nmain.c:2: error: expected ';'"
        assert result.exit_code == 1

    def test_runtime_error(self, sandbox, settings):
        sandbox["answer"] = {"run": {"stdout": "", "stderr": "ZeroDivisionError", "code": 1}}

        result = executor.run_code("1/0", "python", "", settings)

        assert result.success is False
        assert result.error == "ZeroDivisionError"

    def test_killed_run_reports_timeout(self, sandbox, settings):
        sandbox["answer"] = {"run": {"stdout": "partial", "code": None, "signal": "SIGKILL"}}

        result = executor.run_code("while True: pass", "python", "", settings)

        assert result.timed_out is True
        assert result.error == executor.TIMEOUT_MESSAGE
        assert result.output == "partial"

    def test_request_timeout_reports_timeout(self, sandbox, settings):
        sandbox["answer"] = requests.Timeout("slow")

        result = executor.run_code("x", "java", "", settings)

        assert result.success is False
        assert result.timed_out is True
        assert result.exit_code == -1

    def test_output_is_truncated(self, sandbox, settings):
        sandbox["answer"] = {"run": {"stdout": "x" * (executor.MAX_OUTPUT_SIZE + 50), "code": 0}}

        result = executor.run_code("x", "python", "", settings)

        assert len(result.output) == executor.MAX_OUTPUT_SIZE

    def test_unsupported_language_is_not_sent(self, sandbox, settings):
        result = executor.run_code("puts 1", "ruby", "", settings)

        assert result.success is False
        assert sandbox["calls"] == []

    @pytest.mark.parametrize("answer, status", [({}, 500), (requests.ConnectionError("down"), 200)])
    def test_unreachable_sandbox_raises(self, sandbox, settings, answer, status):
        sandbox["answer"], sandbox["status"] = answer, status

        with pytest.raises(UpstreamFailure):
            executor.run_code("x", "python", "", settings)

    def test_timed_out_flag_is_not_serialized(self):
        result = executor.RunResult(success=False, error="late", timed_out=True)

        assert "timed_out" not in result.model_dump(by_alias=True)


class TestCheckRuntimes:
    def test_maps_runtime_names_and_aliases(self, monkeypatch, settings, fake_response):
        runtimes = [
            {"language": "python", "version": "3.10.0", "aliases": ["py"]},
            {"language": "gcc", "version": "10.2.0", "aliases": ["c", "gcc"]},
            {"language": "java", "version": "15.0.2", "aliases": []},
        ]
        monkeypatch.setattr(executor.requests, "get", lambda url, timeout=None: fake_response(runtimes))

        assert executor.check_runtimes(settings) == {"python": True, "c": True, "cpp": False, "java": True}

    def test_failure_raises(self, monkeypatch, settings, fake_response):
        monkeypatch.setattr(executor.requests, "get", lambda url, timeout=None: fake_response([], 503))

        with pytest.raises(UpstreamFailure):
            executor.check_runtimes(settings)
