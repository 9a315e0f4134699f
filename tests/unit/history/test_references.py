"""Tests for instance and image references."""

import pytest

pytestmark = pytest.mark.unit


class TestInstanceReference:
    def test_parse_resource_path(self):
        from placement_history.history.references import InstanceReference

        ref = InstanceReference.from_string("projects/project-1/zones/us-central1-a/instances/vm-1")

        assert ref.project_id == "project-1"
        assert ref.zone == "us-central1-a"
        assert ref.name == "vm-1"

    def test_parse_api_url(self):
        """Full compute API URLs should be accepted."""
        from placement_history.history.references import InstanceReference

        ref = InstanceReference.from_string(
            "https://www.googleapis.com/compute/v1/projects/p/zones/z/instances/n"
        )

        assert ref == InstanceReference(project_id="p", zone="z", name="n")

    def test_str_formats_resource_path(self):
        from placement_history.history.references import InstanceReference

        ref = InstanceReference(project_id="p", zone="z", name="n")

        assert str(ref) == "projects/p/zones/z/instances/n"
        assert InstanceReference.from_string(str(ref)) == ref

    @pytest.mark.parametrize(
        "path",
        ["", "projects/p/zones/z", "projects/p/global/images/i", "zones/z/instances/n"],
    )
    def test_invalid_path_raises(self, path):
        from placement_history.history.references import InstanceReference

        with pytest.raises(ValueError, match="Not a valid instance reference"):
            InstanceReference.from_string(path)


class TestImageReference:
    def test_parse_resource_path(self):
        from placement_history.history.references import ImageReference

        ref = ImageReference.from_string("projects/project-1/global/images/image-1")

        assert ref.project_id == "project-1"
        assert ref.name == "image-1"
        assert str(ref) == "projects/project-1/global/images/image-1"

    def test_invalid_path_raises(self):
        from placement_history.history.references import ImageReference

        with pytest.raises(ValueError, match="Not a valid image reference"):
            ImageReference.from_string("projects/project-1/zones/z/instances/n")

    def test_references_are_frozen(self):
        from pydantic import ValidationError

        from placement_history.history.references import ImageReference

        ref = ImageReference(project_id="p", name="i")

        with pytest.raises(ValidationError):
            ref.name = "other"
