import start


def test_check_environment_reports_missing(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.delenv("AUTH_USER", raising=False)
    monkeypatch.setenv("AUTH_PASS", "pw")

    assert start.check_environment() is False


def test_check_environment_all_set(monkeypatch):
    for var in start.REQUIRED_VARS:
        monkeypatch.setenv(var, "value")

    assert start.check_environment() is True


def test_check_dependencies():
    assert start.check_dependencies() is True
