"""Tests for the Rich console factory."""

from userlayout.output.console import LAYOUT_THEME, create_console, get_output, style_for_type


class TestConsole:
    def test_renders_to_buffer(self) -> None:
        console = create_console()
        console.print("hello")
        assert get_output(console) == "hello\n"

    def test_theme_styles_resolve(self) -> None:
        assert "layout.ok" in LAYOUT_THEME.styles
        console = create_console()
        console.print("[layout.id]n1[/layout.id]")
        assert get_output(console) == "n1\n"

    def test_style_for_type(self) -> None:
        assert style_for_type("folder") == "layout.folder"
        assert style_for_type("channel") == "layout.channel"
        assert style_for_type("unknown") == ""
