"""Tests for imager profile document composition."""

import yaml

from talos_imagegen.imager.compose import (
    compose_imager_config,
    effective_imager_image,
    imager_config_to_yaml,
    parse_image_source,
)
from talos_imagegen.profiles.schema import BuildProfileSchema


def make_profile(**kwargs) -> BuildProfileSchema:
    """Create a test profile with defaults."""
    data = {
        "name": "rpi5",
        "overlay": {
            "name": "rpi_generic",
            "image": "ghcr.io/siderolabs/sbc-raspberrypi:v0.1.5",
        },
    }
    data.update(kwargs)
    return BuildProfileSchema.model_validate(data)


class TestParseImageSource:
    """Tests for parse_image_source."""

    def test_image_ref(self):
        """Plain references are registry images."""
        assert parse_image_source("ghcr.io/x/y:v1") == {"imageRef": "ghcr.io/x/y:v1"}

    def test_tarball(self):
        """tarball: selects tarballPath."""
        assert parse_image_source("tarball:/out/overlay.tar") == {
            "tarballPath": "/out/overlay.tar"
        }

    def test_oci(self):
        """oci: selects ociPath."""
        assert parse_image_source("oci:/out/ext") == {"ociPath": "/out/ext"}


class TestComposeImagerConfig:
    """Tests for compose_imager_config."""

    def test_minimal_document(self):
        """A minimal profile renders the top-level keys and output."""
        config = compose_imager_config(make_profile())

        assert config["arch"] == "arm64"
        assert config["platform"] == "nocloud"
        assert config["secureboot"] is False
        assert config["version"] == "v1.12.1"
        assert "input" not in config
        assert config["overlay"] == {
            "name": "rpi_generic",
            "image": {"imageRef": "ghcr.io/siderolabs/sbc-raspberrypi:v0.1.5"},
        }
        assert config["output"] == {
            "kind": "image",
            "imageOptions": {"diskFormat": "raw", "diskSize": 1306902528},
            "outFormat": ".xz",
        }

    def test_profile_version_wins(self):
        """A profile's imager version overrides the default."""
        profile = make_profile(imager={"version": "v1.11.0"})
        assert compose_imager_config(profile, "v1.12.1")["version"] == "v1.11.0"

    def test_default_version_used(self):
        """The default version applies when the profile has none."""
        assert compose_imager_config(make_profile(), "v1.13.0")["version"] == "v1.13.0"

    def test_input_section(self):
        """Inputs and extensions render under input."""
        profile = make_profile(
            input={
                "kernel": "/out/kernel",
                "initramfs": "/out/initramfs.xz",
                "base_installer": "oci:/out/installer",
            },
            system_extensions=["ghcr.io/x/ext:v1", "tarball:/out/ext.tar"],
        )

        config = compose_imager_config(profile)

        assert config["input"] == {
            "kernel": {"path": "/out/kernel"},
            "initramfs": {"path": "/out/initramfs.xz"},
            "baseInstaller": {"ociPath": "/out/installer"},
            "systemExtensions": [
                {"imageRef": "ghcr.io/x/ext:v1"},
                {"tarballPath": "/out/ext.tar"},
            ],
        }

    def test_no_overlay(self):
        """Profiles without an overlay omit it."""
        profile = BuildProfileSchema(arch="amd64", platform="metal")
        config = compose_imager_config(profile)

        assert "overlay" not in config
        assert config["arch"] == "amd64"

    def test_out_formats(self):
        """Compression maps to the imager outFormat."""
        expected = {"xz": ".xz", "gzip": ".gz", "zstd": ".zst", "none": "raw"}
        for compression, out_format in expected.items():
            profile = make_profile(output={"compression": compression})
            assert compose_imager_config(profile)["output"]["outFormat"] == out_format


class TestImagerYaml:
    """Tests for imager_config_to_yaml and image selection."""

    def test_yaml_preserves_key_order(self):
        """Keys are written in document order."""
        text = imager_config_to_yaml(compose_imager_config(make_profile()))

        assert text.startswith("arch: arm64\n")
        assert yaml.safe_load(text)["output"]["outFormat"] == ".xz"

    def test_effective_image_defaults(self):
        """Profile values win over defaults."""
        assert effective_imager_image(make_profile(), "img", "v1.0") == ("img", "v1.0")
        profile = make_profile(imager={"image": "my/imager", "version": "v2.0"})
        assert effective_imager_image(profile, "img", "v1.0") == ("my/imager", "v2.0")
