"""参数收集与域名转换测试"""

from __future__ import annotations

import pytest

from wpstack.core.exceptions import ValidationError
from wpstack.core.inputs import (
    ADD_SITE_DEFAULTS,
    INSTALL_DEFAULTS,
    InputCollector,
    normalize_domain,
)


class ScriptedPrompt:
    """按顺序返回预设回答，并记录提问"""

    def __init__(self, answers: list[str]) -> None:
        self.answers = list(answers)
        self.asked: list[tuple[str, str, bool]] = []

    def __call__(self, text: str, default: str, secret: bool) -> str:
        self.asked.append((text, default, secret))
        return self.answers.pop(0)


class TestNormalizeDomain:
    def test_cyrillic_to_punycode(self) -> None:
        assert normalize_domain("тест.site") == ("xn--e1aybc.site", "тест.site")

    def test_ascii_kept(self) -> None:
        assert normalize_domain("Example.COM") == ("example.com", "Example.COM")

    def test_trailing_dot_and_spaces(self) -> None:
        assert normalize_domain("  example.com. ") == ("example.com", "example.com")

    @pytest.mark.parametrize("bad", ["", "   ", "a..b", "-bad.com", "bad-.com"])
    def test_invalid(self, bad: str) -> None:
        with pytest.raises(ValidationError):
            normalize_domain(bad)


class TestInputCollector:
    def test_empty_answers_use_defaults(self) -> None:
        prompt = ScriptedPrompt(["", "", "", "pw", ""])
        req = InputCollector(prompt).collect(INSTALL_DEFAULTS)
        assert req.domain == "example.com"
        assert req.db_name == "wordpress_db"
        assert req.db_user == "wordpress_user"
        assert req.db_password == "pw"
        assert req.admin_email == "admin@example.com"

    def test_password_prompt_is_secret(self) -> None:
        prompt = ScriptedPrompt(["", "", "", "pw", ""])
        InputCollector(prompt).collect(INSTALL_DEFAULTS)
        assert prompt.asked[3][2] is True
        assert all(not secret for _, _, secret in prompt.asked[:3])

    def test_empty_password_fails_fast(self) -> None:
        prompt = ScriptedPrompt(["site.com", "", "", ""])
        with pytest.raises(ValidationError, match="密码不能为空"):
            InputCollector(prompt).collect(INSTALL_DEFAULTS)
        # 邮箱不再提问
        assert len(prompt.asked) == 4

    def test_idn_domain_display_kept_for_email(self) -> None:
        prompt = ScriptedPrompt(["тест.site", "", "", "pw", ""])
        req = InputCollector(prompt).collect(INSTALL_DEFAULTS)
        assert req.domain == "xn--e1aybc.site"
        assert req.display_domain == "тест.site"
        assert req.is_idn
        assert req.admin_email == "admin@тест.site"

    def test_add_site_defaults(self) -> None:
        prompt = ScriptedPrompt(["", "", "", "pw", ""])
        req = InputCollector(prompt).collect(ADD_SITE_DEFAULTS)
        assert (req.db_name, req.db_user) == ("wordpress_new", "wp_user_new")
        assert req.admin_email == "admin@example.com"

    def test_provided_values_skip_prompts(self) -> None:
        prompt = ScriptedPrompt([])
        req = InputCollector(prompt).collect(
            INSTALL_DEFAULTS, domain="blog.site", db_name="blog", db_user="bloguser",
            db_password=" pw with spaces ", admin_email="ops@blog.site",
            clean_install=True,
        )
        assert prompt.asked == []
        assert req.db_password == " pw with spaces "
        assert req.clean_install is True

    def test_non_interactive_without_password_fails(self) -> None:
        with pytest.raises(ValidationError):
            InputCollector(interactive=False).collect(INSTALL_DEFAULTS)

    def test_non_interactive_uses_defaults(self) -> None:
        req = InputCollector(interactive=False).collect(INSTALL_DEFAULTS, db_password="pw")
        assert req.domain == "example.com"

    @pytest.mark.parametrize("field", ["db_name", "db_user"])
    def test_rejects_unsafe_identifiers(self, field: str) -> None:
        kwargs = {"db_password": "pw", field: "x`; DROP"}
        with pytest.raises(ValidationError, match="字母、数字和下划线"):
            InputCollector(interactive=False).collect(INSTALL_DEFAULTS, **kwargs)

    def test_rejects_bad_email(self) -> None:
        with pytest.raises(ValidationError, match="邮箱"):
            InputCollector(interactive=False).collect(
                INSTALL_DEFAULTS, db_password="pw", admin_email="nobody",
            )

    def test_password_not_in_repr(self) -> None:
        req = InputCollector(interactive=False).collect(INSTALL_DEFAULTS, db_password="hunter2")
        assert "hunter2" not in repr(req)
        assert "db_password" not in req.to_dict()
