"""Unit tests for configuration and logging setup."""

import logging
import pytest

from binclean.utils.config_loader import ConfigLoader, get_config_loader
from binclean.utils.exceptions import ConfigurationError
from binclean.utils.logger import parse_level, setup_logger


class TestConfigLoader:
    """Test ConfigLoader."""

    def test_global_section(self, tmp_path):
        (tmp_path / "settings.yaml").write_text("global:\n  parallel: 3\n  extra_tfms: [net8.0-windows]\n")

        loader = ConfigLoader(str(tmp_path))

        assert loader.get_global_section() == {"parallel": 3, "extra_tfms": ["net8.0-windows"]}

    def test_custom_settings_file(self, tmp_path):
        (tmp_path / "ci.yaml").write_text("global:\n  confirm: project\n")

        loader = ConfigLoader(str(tmp_path), "ci.yaml")

        assert loader.get_global_section()["confirm"] == "project"

    def test_missing_file(self, tmp_path):
        loader = ConfigLoader(str(tmp_path))

        with pytest.raises(ConfigurationError, match="not found"):
            loader.load_settings()
        assert loader.get_global_section() == {}

    def test_missing_required_file(self, tmp_path):
        """A settings file named explicitly must exist."""
        loader = ConfigLoader(str(tmp_path), "typo.yaml")

        with pytest.raises(ConfigurationError, match="not found"):
            loader.get_global_section(required=True)

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "settings.yaml").write_text("global: [unclosed\n")

        with pytest.raises(ConfigurationError, match="parse"):
            ConfigLoader(str(tmp_path)).load_settings()
        with pytest.raises(ConfigurationError, match="parse"):
            ConfigLoader(str(tmp_path)).get_global_section()

    def test_global_must_be_mapping(self, tmp_path):
        (tmp_path / "settings.yaml").write_text("global: 5\n")

        with pytest.raises(ConfigurationError):
            ConfigLoader(str(tmp_path)).get_global_section()

    def test_settings_are_cached(self, tmp_path):
        settings = tmp_path / "settings.yaml"
        settings.write_text("global:\n  depth: 1\n")
        loader = ConfigLoader(str(tmp_path))
        assert loader.get_global_section()["depth"] == 1

        settings.write_text("global:\n  depth: 4\n")
        assert loader.get_global_section()["depth"] == 1

    def test_get_config_loader_replaces_instance(self, tmp_path):
        (tmp_path / "settings.yaml").write_text("global:\n  depth: 7\n")

        loader = get_config_loader(str(tmp_path))

        assert get_config_loader() is loader
        assert get_config_loader().get_global_section()["depth"] == 7


class TestLogger:
    """Test logger setup."""

    @pytest.mark.parametrize(
        "name, level",
        [("Debug", logging.DEBUG), ("verbose", logging.DEBUG), ("INFO", logging.INFO),
         ("warning", logging.WARNING), ("Error", logging.ERROR), (logging.INFO, logging.INFO)],
    )
    def test_parse_level(self, name, level):
        assert parse_level(name) == level

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            parse_level("loud")

    def test_file_handler(self, tmp_path):
        logger = setup_logger(level="debug", log_dir=str(tmp_path / "logs"), console=False)
        logger.info("hello")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        file_handlers[0].flush()
        log_files = list((tmp_path / "logs").glob("binclean_*.log"))
        assert len(log_files) == 1
        assert "hello" in log_files[0].read_text(encoding="utf-8")

        for handler in file_handlers:
            handler.close()
            root.removeHandler(handler)
        root.setLevel(logging.WARNING)
