"""Unit tests for CLI commands that need no audio or network."""

import sys
from pathlib import Path

import pytest
from typer.testing import CliRunner

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from guidevoice.cli import app, read_text

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(
        f"""
[synthesis]
enabled = true
api_key = "k"
default_voice = "narrator"
cache_dir = "{(tmp_path / 'cache').as_posix()}"

[synthesis.voices]
narrator = {{ id = "ref-1", language = "en" }}
backup = "ref-2"
"""
    )
    return path


class TestReadText:
    """Test text input resolution."""

    def test_argument_wins(self, tmp_path: Path) -> None:
        """Test the argument is used even when a file is given."""
        file = tmp_path / "t.txt"
        file.write_text("from file")

        assert read_text("  from arg ", file) == "from arg"

    def test_file(self, tmp_path: Path) -> None:
        """Test text is read from a file."""
        file = tmp_path / "t.txt"
        file.write_text("from file\n")

        assert read_text(None, file) == "from file"

    def test_empty_text_rejected(self) -> None:
        """Test blank text raises ValueError."""
        with pytest.raises(ValueError, match="No text provided"):
            read_text("   ", None)


class TestCommands:
    """Test commands through the Typer runner."""

    def test_normalize(self) -> None:
        """Test normalize prints the synthesis text."""
        result = runner.invoke(app, ["normalize", "Stack 3rd +50%"])

        assert result.exit_code == 0
        assert result.output.strip() == "Stack third plus fifty percent"

    def test_init_config(self, tmp_path: Path) -> None:
        """Test init-config writes a file once unless forced."""
        path = tmp_path / "new.toml"

        first = runner.invoke(app, ["--config", str(path), "init-config"])
        second = runner.invoke(app, ["--config", str(path), "init-config"])
        forced = runner.invoke(app, ["--config", str(path), "init-config", "--force"])

        assert first.exit_code == 0
        assert path.exists()
        assert second.exit_code == 1
        assert forced.exit_code == 0

    def test_voices(self, config_file: Path, tmp_path: Path) -> None:
        """Test voices lists configured and cache-only voices."""
        (tmp_path / "cache" / "fr" / "ghost").mkdir(parents=True)

        result = runner.invoke(app, ["--config", str(config_file), "voices"])

        assert result.exit_code == 0
        assert "* narrator\ten\tref-1" in result.output
        assert "  backup\t-\tref-2" in result.output
        assert "ghost\tfr\t(cache only)" in result.output

    def test_cache_path(self, config_file: Path, tmp_path: Path) -> None:
        """Test cache-path shows the file location and its state."""
        result = runner.invoke(
            app, ["--config", str(config_file), "cache-path", "Stack on me!"]
        )

        expected = tmp_path / "cache" / "en" / "narrator" / "Stack_on_me.mp3"
        assert result.exit_code == 0
        assert result.output.strip() == f"{expected} (missing)"

    def test_say_without_text_fails(self, config_file: Path) -> None:
        """Test say exits with an error when no text is given."""
        result = runner.invoke(app, ["--config", str(config_file), "say", "  "])

        assert result.exit_code == 1
        assert "No text provided" in result.output
