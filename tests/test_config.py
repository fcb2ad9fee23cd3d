"""Tests for chirp_bundle.config — BundleConfig defaults and validation."""

from pathlib import Path

import pytest

from chirp_bundle.config import BundleConfig
from chirp_bundle.errors import ConfigurationError


class TestDefaults:
    def test_defaults(self) -> None:
        config = BundleConfig(source_dir="views")
        assert config.extension == ".html"
        assert config.public_dir is None
        assert config.prefix == "/templates"
        assert config.suffix == ".py"
        assert config.global_name == "Templates"
        assert config.reload is False
        assert config.cache_control == "no-cache"
        assert config.fallback_to_direct is False

    def test_frozen(self) -> None:
        config = BundleConfig(source_dir="views")
        with pytest.raises(AttributeError):
            config.reload = True  # type: ignore[misc]

    def test_source_path(self) -> None:
        assert BundleConfig(source_dir="views").source_path == Path("views")


class TestPrefix:
    @pytest.mark.parametrize(
        ("prefix", "expected"),
        [
            ("/views", "/views"),
            ("views", "/views"),
            ("/views/", "/views"),
            ("/a/b/", "/a/b"),
            ("/", ""),
            ("", ""),
        ],
    )
    def test_normalized(self, prefix: str, expected: str) -> None:
        assert BundleConfig(source_dir="views", prefix=prefix).prefix == expected


class TestOutputDir:
    def test_direct_mode_has_none(self) -> None:
        assert BundleConfig(source_dir="views").output_dir is None

    def test_mirrors_prefix_under_public(self, tmp_path: Path) -> None:
        config = BundleConfig(source_dir="views", public_dir=tmp_path, prefix="/assets/views")
        assert config.output_dir == tmp_path / "assets" / "views"

    def test_root_prefix_is_public_dir(self, tmp_path: Path) -> None:
        config = BundleConfig(source_dir="views", public_dir=str(tmp_path), prefix="/")
        assert config.output_dir == tmp_path


class TestCompileOptions:
    def test_passes_flags_through(self) -> None:
        config = BundleConfig(source_dir="views", autoescape=False, trim_blocks=False)
        assert config.compile_options == {
            "autoescape": False,
            "trim_blocks": False,
            "lstrip_blocks": True,
        }


class TestValidation:
    @pytest.mark.parametrize("name", ["", "my-templates", "1st", "two words"])
    def test_global_name_must_be_identifier(self, name: str) -> None:
        with pytest.raises(ConfigurationError, match="global_name"):
            BundleConfig(source_dir="views", global_name=name)

    @pytest.mark.parametrize("field", ["extension", "suffix"])
    @pytest.mark.parametrize("value", ["html", ".", ""])
    def test_extensions_need_leading_dot(self, field: str, value: str) -> None:
        with pytest.raises(ConfigurationError, match=field):
            BundleConfig(source_dir="views", **{field: value})


class TestVersion:
    def test_matches_package_metadata(self) -> None:
        from importlib.metadata import version

        import chirp_bundle

        assert chirp_bundle.__version__ == version("chirp-bundle")
