from unittest import mock

import requests

from automart.utils.security_log import SecurityBeacon, alert_level, build_envelope, calculate_risk_score


class TestRiskScore:
    def test_known_events(self):
        assert calculate_risk_score("SIGNIN_FAILED", {}) == 3
        assert calculate_risk_score("UNAUTHORIZED_ACCESS", None) == 10

    def test_unknown_event_scores_one(self):
        assert calculate_risk_score("SOMETHING_ELSE", {}) == 1

    def test_attempts_and_new_location_raise_score(self):
        assert calculate_risk_score("SIGNIN_FAILED", {"attempts": 6}) == 6
        assert calculate_risk_score("SIGNIN_FAILED", {"attempts": 20, "newLocation": True}) == 10

    def test_bad_attempts_ignored(self):
        assert calculate_risk_score("SIGNUP_FAILED", {"attempts": "many"}) == 2

    def test_alert_levels(self):
        assert alert_level(8) == "high"
        assert alert_level(5) == "medium"
        assert alert_level(4) == "low"


def test_envelope_defaults_session():
    env = build_envelope("SIGNIN_FAILED", {"email": "a@b.co"}, user_agent="pytest")
    assert env["session_id"] == "anonymous"
    assert env["user_agent"] == "pytest"
    assert set(env) == {"timestamp", "event", "details", "user_agent", "url", "session_id"}


class TestBeacon:
    def test_no_url_only_logs(self, caplog):
        with mock.patch("automart.utils.security_log.requests.post") as post:
            SecurityBeacon().emit("SIGNIN_FAILED", {"attempts": 1})
        post.assert_not_called()
        assert "Security event SIGNIN_FAILED" in caplog.text

    def test_posts_envelope(self):
        with mock.patch("automart.utils.security_log.requests.post") as post:
            post.return_value.status_code = 200
            env = SecurityBeacon(url="https://logs.example.com/security", timeout=2).emit(
                "RATE_LIMIT_EXCEEDED", {"identifier": "signin_x"}, session_id="s1"
            )
        post.assert_called_once_with("https://logs.example.com/security", json=env, timeout=2.0)
        assert env["session_id"] == "s1"

    def test_network_errors_are_swallowed(self, caplog):
        with mock.patch("automart.utils.security_log.requests.post", side_effect=requests.ConnectionError("down")):
            env = SecurityBeacon(url="https://logs.example.com/security").emit("SIGNUP_FAILED")
        assert env["event"] == "SIGNUP_FAILED"
        assert "Failed to log security event SIGNUP_FAILED" in caplog.text
