"""Unit tests for turning evaluated properties into observations."""

import os

from binclean.entities import CleanOptions, OutputKind, ProjectKind
from binclean.msbuild import PropertyOutput, observations_from_properties


def observe(project, options=None, **properties):
    return observations_from_properties(
        PropertyOutput(properties=properties),
        str(project),
        "Debug",
        str(project.parent.parent),
        options or CleanOptions(),
    )


class TestObservationsFromProperties:
    """Test observations_from_properties."""

    def test_out_dir_observed_even_if_missing(self, tmp_path):
        """A deleted OutDir still points at sibling framework folders."""
        project = tmp_path / "App" / "App.csproj"

        observations, files = observe(
            project,
            OutDir=os.path.join("bin", "Debug", "net8.0") + os.sep,
            BaseOutputPath="bin" + os.sep,
            TargetFrameworks="net6.0;net8.0",
            ProjectName="App",
        )

        assert files == []
        assert len(observations) == 1
        observation = observations[0]
        assert observation.output_kind is OutputKind.OUT
        assert observation.output_path == str(tmp_path / "App" / "bin" / "Debug" / "net8.0")
        assert observation.configuration_name == "Debug"
        assert observation.target_framework_ids == {"net6.0", "net8.0"}
        assert observation.parent_container_path == str(tmp_path)
        assert observation.display_name == "App"
        assert observation.project_kind is ProjectKind.CSPROJ

    def test_base_output_only_without_out_dir(self, tmp_path):
        project = tmp_path / "App" / "App.csproj"
        (tmp_path / "App" / "bin").mkdir(parents=True)

        observations, _ = observe(project, BaseOutputPath="bin" + os.sep)

        assert [(o.output_kind, o.output_path) for o in observations] == [
            (OutputKind.BASE_OUTPUT, str(tmp_path / "App" / "bin"))
        ]

    def test_missing_base_output_ignored(self, tmp_path):
        observations, _ = observe(tmp_path / "App" / "App.csproj", BaseOutputPath="bin" + os.sep)
        assert observations == []

    def test_intermediate(self, tmp_path):
        project = tmp_path / "App" / "App.csproj"
        (tmp_path / "App" / "obj").mkdir(parents=True)

        observations, _ = observe(project, BaseIntermediateOutputPath="obj" + os.sep)
        assert [o.output_kind for o in observations] == [OutputKind.BASE_INTERMEDIATE]

        observations, _ = observe(
            project, options=CleanOptions(clean_intermediate=False), BaseIntermediateOutputPath="obj" + os.sep
        )
        assert observations == []

    def test_build_output_disabled(self, tmp_path):
        observations, _ = observe(
            tmp_path / "App" / "App.csproj",
            options=CleanOptions(clean_build_output=False),
            OutDir="bin" + os.sep,
        )
        assert observations == []

    def test_invalid_out_dir_ignored(self, tmp_path):
        observations, _ = observe(tmp_path / "App" / "App.csproj", OutDir="~/bin")
        assert observations == []

    def test_stale_packages(self, tmp_path):
        """Only packages of this project id are collected."""
        project = tmp_path / "App" / "App.csproj"
        packages = tmp_path / "App" / "bin" / "Release"
        packages.mkdir(parents=True)
        for name in ("App.1.0.0.nupkg", "App.1.1.0.nupkg", "Other.1.0.0.nupkg", "App.1.0.0.snupkg"):
            (packages / name).write_bytes(b"")

        options = CleanOptions(clean_nupkg=True, clean_build_output=False)
        _, files = observe(project, options=options, PackageOutputPath=str(packages), ProjectName="App")

        assert files == [str(packages / "App.1.0.0.nupkg"), str(packages / "App.1.1.0.nupkg")]

    def test_packages_off_by_default(self, tmp_path):
        packages = tmp_path / "App" / "bin"
        packages.mkdir(parents=True)
        (packages / "App.1.0.0.nupkg").write_bytes(b"")

        _, files = observe(tmp_path / "App" / "App.csproj", PackageOutputPath=str(packages), PackageId="App")

        assert files == []
