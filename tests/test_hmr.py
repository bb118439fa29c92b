"""Tests for lookout.client.hmr — the browser client script."""

from __future__ import annotations

from lookout.client.hmr import inject_client, render_client_script


class TestRenderClientScript:
    def test_substitutes_port(self) -> None:
        script = render_client_script(4321)
        assert "var PORT = 4321;" in script
        assert "__PORT__" not in script
        assert "__EVENT__" not in script

    def test_contains_state_machine(self) -> None:
        script = render_client_script()
        assert "lookout:fileChange" in script
        assert "always-trigger-hashchange" in script
        assert "window.location.reload()" in script
        assert "new Function(code)" in script
        assert "'?v=' + Date.now()" in script

    def test_stylesheet_match_ignores_query_and_longer_names(self) -> None:
        script = render_client_script()
        assert "target === path || endsWith(target, '/' + path)" in script
        assert "indexOf(path)" not in script

    def test_host_guard_patterns(self) -> None:
        script = render_client_script()
        assert r"/^localhost$/" in script
        assert r"/^127\.0\.0\.1$/" in script
        assert r"/^192\.168\.2\.\d+$/" in script
        assert r"/^172\.\d+\.\d+\.\d+$/" in script

    def test_is_a_script_element(self) -> None:
        script = render_client_script()
        assert script.startswith("<script data-lookout-client>")
        assert script.endswith("</script>\n")


class TestInjectClient:
    def test_injects_before_body_close(self) -> None:
        result = inject_client("<html><body><h1>Hi</h1></body></html>")
        assert result.index("data-lookout-client") < result.index("</body>")

    def test_injects_before_html_close_if_no_body(self) -> None:
        result = inject_client("<html><h1>No body</h1></html>")
        assert result.index("data-lookout-client") < result.index("</html>")

    def test_appends_if_no_closing_tags(self) -> None:
        result = inject_client("<h1>Fragment</h1>")
        assert result.startswith("<h1>Fragment</h1>")
        assert result.endswith("</script>\n")

    def test_idempotent(self) -> None:
        once = inject_client("<body></body>")
        assert inject_client(once) == once

    def test_uses_port(self) -> None:
        assert "var PORT = 8080;" in inject_client("<body></body>", port=8080)
